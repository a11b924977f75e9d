from __future__ import annotations

from datetime import timedelta

AUTO_FLAG_RECENT_WINDOW = timedelta(hours=24)
AUTO_FLAG_RECENT_REPORTS = 3
AUTO_FLAG_TOTAL_REPORTS = 5
AUTO_FLAG_SAME_REASON_REPORTS = 2
AUTO_FLAG_REASON = "Multiple user reports"

COORDINATED_WINDOW = timedelta(hours=1)
COORDINATED_MIN_REPORTS = 3
COORDINATED_MIN_REPORTERS = 3

REPORTER_ABUSE_WINDOW = timedelta(hours=24)
REPORTER_ABUSE_MAX_REPORTS = 10

REPORT_DESCRIPTION_MAX_LENGTH = 500
REPORT_NOTES_MAX_LENGTH = 1000
LIST_REPORTS_DEFAULT_LIMIT = 50
LIST_REPORTS_MAX_LIMIT = 100
