from app.verification.service import VerificationService
from app.verification.submission import submit_spot
from app.verification.transitions import transition_spot_status

__all__ = ["VerificationService", "submit_spot", "transition_spot_status"]
