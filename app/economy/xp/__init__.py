from app.economy.xp.badges import BadgeService
from app.economy.xp.service import XpService

__all__ = ["BadgeService", "XpService"]
