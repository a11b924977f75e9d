from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from app.services.notifications import Notification


class ReportReason(str, Enum):
    FAKE = "FAKE"
    WRONG_LOCATION = "WRONG_LOCATION"
    SPAM = "SPAM"
    OFFENSIVE = "OFFENSIVE"
    DANGEROUS = "DANGEROUS"
    DUPLICATE = "DUPLICATE"


URGENT_REPORT_REASONS = frozenset({ReportReason.DANGEROUS, ReportReason.OFFENSIVE})


class ReportStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"


class ReportAction(str, Enum):
    DISMISS = "DISMISS"
    REMOVE_SPOT = "REMOVE_SPOT"
    WARNING = "WARNING"
    EDIT_SPOT = "EDIT_SPOT"


class ReviewDecision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True, slots=True)
class ReportView:
    reporter_user_id: int
    reason: ReportReason
    created_at: datetime


@dataclass(slots=True)
class AutoFlagDecision:
    should_flag: bool
    recent_reports: int
    total_reports: int
    max_same_reason_reports: int


@dataclass(slots=True)
class CoordinatedReportingCheck:
    suspected: bool
    reports_in_window: int
    distinct_reporters: int
    reasons: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ReportSpotResult:
    report_id: UUID
    spot_id: UUID
    report_count: int
    spot_flagged: bool
    notifications: list[Notification] = field(default_factory=list)


@dataclass(slots=True)
class ResolveReportResult:
    report_id: UUID
    spot_id: UUID
    action: ReportAction
    reviewed_at: datetime
    notifications: list[Notification] = field(default_factory=list)


@dataclass(slots=True)
class ReportSummary:
    report_id: UUID
    spot_id: UUID
    reporter_user_id: int
    reason: str
    description: str
    status: str
    action: str | None
    created_at: datetime
    reviewed_at: datetime | None


@dataclass(slots=True)
class RescanResult:
    spots_scanned: int
    spots_flagged: int
    notifications: list[Notification] = field(default_factory=list)


@dataclass(slots=True)
class SpotReviewResult:
    spot_id: UUID
    previous_status: str
    new_status: str
    xp_released: bool
    xp_denied: bool
    trust_score: float | None
    notifications: list[Notification] = field(default_factory=list)
