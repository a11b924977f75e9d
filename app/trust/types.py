from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TrustOutcome(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    UNDECIDED = "UNDECIDED"


@dataclass(slots=True)
class TrustSnapshot:
    trust_score: float
    spot_submissions: int
    spot_approved_count: int
    spot_rejected_count: int
    is_shadow_banned: bool


@dataclass(slots=True)
class TrustUpdateResult:
    user_id: int
    previous_trust_score: float
    trust_score: float
    spot_submissions: int
    spot_approved_count: int
    spot_rejected_count: int
    is_shadow_banned: bool
    shadow_banned_now: bool
