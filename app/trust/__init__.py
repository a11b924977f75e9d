from app.trust.service import TrustLedgerService

__all__ = ["TrustLedgerService"]
