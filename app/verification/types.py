from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from app.services.notifications import Notification


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    AUTO_APPROVED = "AUTO_APPROVED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FLAGGED = "FLAGGED"


@dataclass(slots=True)
class SignalResult:
    score: int
    reasons: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SpotSnapshot:
    id: UUID
    creator_user_id: int
    latitude: float
    longitude: float
    created_at: datetime
    title: str
    description: str
    category: str
    gps_accuracy_m: float | None = None
    is_mock_location: bool = False
    has_photo: bool = False
    photo_hash: str | None = None
    exif_taken_at: datetime | None = None
    exif_latitude: float | None = None
    exif_longitude: float | None = None


@dataclass(frozen=True, slots=True)
class SubmissionPoint:
    latitude: float
    longitude: float
    created_at: datetime


@dataclass(frozen=True, slots=True)
class NearbySpot:
    id: UUID
    latitude: float
    longitude: float
    title: str


@dataclass(frozen=True, slots=True)
class TrustProfile:
    trust_score: float
    created_at: datetime
    spot_submissions: int
    spot_approved_count: int
    spot_rejected_count: int
    is_shadow_banned: bool


@dataclass(slots=True)
class VerificationResult:
    status: VerificationStatus
    score: int
    reasons: list[str]
    flags: list[str]
    detailed_scores: dict[str, int]
    idempotent_replay: bool = False
    notifications: list[Notification] = field(default_factory=list)


@dataclass(slots=True)
class SpotSubmissionResult:
    spot_id: UUID
    status: VerificationStatus
    xp_reward: int
    xp_pending: int


@dataclass(slots=True)
class SpotTransitionResult:
    spot_id: UUID
    previous_status: VerificationStatus
    new_status: VerificationStatus
    xp_released: bool
    xp_denied: bool
    xp_amount: int
    notifications: list[Notification] = field(default_factory=list)
