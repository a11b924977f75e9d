from app.economy.redemptions import RedemptionService, SponsorQrService
from app.economy.xp import BadgeService, XpService

__all__ = [
    "BadgeService",
    "RedemptionService",
    "SponsorQrService",
    "XpService",
]
