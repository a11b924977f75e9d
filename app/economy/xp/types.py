from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class LedgerEntryType(str, Enum):
    AWARD = "AWARD"
    DENIAL = "DENIAL"
    ADMIN = "ADMIN"
    ADJUSTMENT = "ADJUSTMENT"


class BadgeUnlockType(str, Enum):
    XP = "XP"
    LEVEL = "LEVEL"
    MILESTONE = "MILESTONE"


@dataclass(frozen=True, slots=True)
class XpRule:
    max_amount: int
    cooldown_minutes: int = 0
    max_daily: int | None = None
    per_entity_cooldown: bool = False


@dataclass(slots=True)
class CooldownCheck:
    allowed: bool
    remaining_seconds: int | None = None


@dataclass(slots=True)
class DailyLimitCheck:
    allowed: bool
    current_count: int | None = None


@dataclass(slots=True)
class DuplicateAwardCheck:
    exists: bool
    amount: int | None = None


@dataclass(frozen=True, slots=True)
class LedgerEntryView:
    tx_type: str
    amount: int
    created_at: datetime


@dataclass(slots=True)
class BadgeUnlock:
    badge_id: str
    title: str


@dataclass(slots=True)
class XpAwardResult:
    awarded: bool
    idempotent_replay: bool
    xp_awarded: int
    new_total_xp: int
    new_level: int
    leveled_up: bool
    unlocked_badges: list[BadgeUnlock] = field(default_factory=list)


@dataclass(slots=True)
class XpDenialResult:
    recorded: bool
    idempotent_replay: bool
    xp_denied: int
    xp_pending: int


@dataclass(slots=True)
class XpAdjustResult:
    previous_xp: int
    new_xp: int
    applied_delta: int
    requested_delta: int
    new_level: int
    leveled_up: bool


@dataclass(slots=True)
class XpProgress:
    current_xp: int
    pending_xp: int
    total_xp: int
    current_level: int
    next_level: int
    current_level_xp: int
    next_level_xp: int
    progress_in_level: int
    xp_needed_for_next: int
    progress_percentage: float
