from app.moderation.reports import ReportService
from app.moderation.review import review_spot

__all__ = ["ReportService", "review_spot"]
