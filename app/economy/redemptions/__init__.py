from app.economy.redemptions.service import RedemptionService, SponsorQrService

__all__ = ["RedemptionService", "SponsorQrService"]
