from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from app.services.notifications import Notification


@dataclass(slots=True)
class QrIssueResult:
    sponsor_id: UUID
    qr_data: str
    version: int
    expires_in_seconds: int
    generated_at_ms: int


@dataclass(slots=True)
class QrVerificationResult:
    sponsor_id: UUID
    version: int
    issued_at_ms: int
    expires_at_ms: int
    nonce: str


@dataclass(slots=True)
class QrSettingsResult:
    sponsor_id: UUID
    expiry_minutes: int


@dataclass(slots=True)
class RewardPreview:
    valid: bool
    message: str
    reward_id: UUID | None = None
    title: str | None = None
    xp_required: int | None = None
    is_active: bool | None = None
    expires_at: datetime | None = None
    current_redemptions: int | None = None
    max_redemptions: int | None = None


@dataclass(slots=True)
class RedemptionResult:
    redemption_id: UUID
    reward_id: UUID
    reward_title: str
    sponsor_id: UUID
    xp_deducted: int
    new_xp: int
    new_level: int
    redemption_code: str
    notifications: list[Notification] = field(default_factory=list)


@dataclass(slots=True)
class RedemptionValidationResult:
    redemption_id: UUID
    reward_id: UUID
    user_id: int
    xp_used: int
    redeemed_at: datetime
    used_at: datetime
    notifications: list[Notification] = field(default_factory=list)
