from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.economy.xp.constants import DEFAULT_XP_RULE, XP_RULES
from app.economy.xp.levels import level_for_xp, xp_threshold_for_level
from app.economy.xp.types import (
    CooldownCheck,
    DailyLimitCheck,
    LedgerEntryType,
    LedgerEntryView,
    XpProgress,
    XpRule,
)


def rule_for_action(action: str) -> XpRule:
    return XP_RULES.get(action, DEFAULT_XP_RULE)


def idempotency_key_for_award(*, user_id: int, action: str, resource_id: str) -> str:
    return f"xp:award:{user_id}:{action}:{resource_id}"


def idempotency_key_for_denial(*, user_id: int, spot_id: str) -> str:
    return f"xp:deny:{user_id}:{spot_id}"


def idempotency_key_for_redemption(*, redemption_id: str) -> str:
    return f"xp:redeem:{redemption_id}"


def evaluate_cooldown(
    *,
    last_awarded_at: datetime | None,
    now_utc: datetime,
    rule: XpRule,
) -> CooldownCheck:
    if rule.cooldown_minutes <= 0 or last_awarded_at is None:
        return CooldownCheck(allowed=True)

    cooldown = timedelta(minutes=rule.cooldown_minutes)
    remaining = cooldown - (now_utc - last_awarded_at)
    if remaining <= timedelta(0):
        return CooldownCheck(allowed=True)
    return CooldownCheck(
        allowed=False,
        remaining_seconds=math.ceil(remaining.total_seconds()),
    )


def evaluate_daily_limit(*, current_count: int, rule: XpRule) -> DailyLimitCheck:
    if rule.max_daily is None:
        return DailyLimitCheck(allowed=True, current_count=current_count)
    return DailyLimitCheck(allowed=current_count < rule.max_daily, current_count=current_count)


def day_start_utc(now_utc: datetime, *, timezone_name: str) -> datetime:
    zone = timezone.utc if timezone_name.upper() == "UTC" else ZoneInfo(timezone_name)
    local_now = now_utc.astimezone(zone)
    local_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return local_start.astimezone(timezone.utc)


def replay_balance(entries: Iterable[LedgerEntryView]) -> int:
    """Rebuild an XP balance from ledger entries; denials never moved the balance."""
    ordered = sorted(entries, key=lambda entry: entry.created_at)
    return sum(
        entry.amount for entry in ordered if entry.tx_type != LedgerEntryType.DENIAL.value
    )


def build_progress(*, current_xp: int, pending_xp: int, step: int | None = None) -> XpProgress:
    current_level = level_for_xp(current_xp, step=step)
    current_level_xp = xp_threshold_for_level(current_level, step=step)
    next_level_xp = xp_threshold_for_level(current_level + 1, step=step)
    progress_in_level = current_xp - current_level_xp
    span = next_level_xp - current_level_xp
    return XpProgress(
        current_xp=current_xp,
        pending_xp=pending_xp,
        total_xp=current_xp + pending_xp,
        current_level=current_level,
        next_level=current_level + 1,
        current_level_xp=current_level_xp,
        next_level_xp=next_level_xp,
        progress_in_level=progress_in_level,
        xp_needed_for_next=max(0, next_level_xp - current_xp),
        progress_percentage=min(100.0, round(progress_in_level / span * 100, 2)),
    )
