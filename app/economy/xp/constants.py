from __future__ import annotations

from app.economy.xp.types import XpRule

ACTION_VISIT_SPOT = "VISIT_SPOT"
ACTION_RATE_SPOT = "RATE_SPOT"
ACTION_COMPLETE_CHALLENGE = "COMPLETE_CHALLENGE"
ACTION_DAILY_LOGIN = "DAILY_LOGIN"
ACTION_SHARE_SPOT = "SHARE_SPOT"
ACTION_PHOTO_UPLOAD = "PHOTO_UPLOAD"
ACTION_SPOT_APPROVED = "SPOT_APPROVED"
ACTION_SPOT_REJECTED = "SPOT_REJECTED"
ACTION_ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"
ACTION_REWARD_REDEMPTION = "REWARD_REDEMPTION"

DEFAULT_XP_RULE = XpRule(max_amount=100)
XP_RULES: dict[str, XpRule] = {
    ACTION_VISIT_SPOT: XpRule(
        max_amount=50,
        cooldown_minutes=60,
        max_daily=20,
        per_entity_cooldown=True,
    ),
    ACTION_RATE_SPOT: XpRule(max_amount=25, max_daily=20),
    ACTION_COMPLETE_CHALLENGE: XpRule(max_amount=200, max_daily=5),
    ACTION_DAILY_LOGIN: XpRule(max_amount=10, max_daily=1),
    ACTION_SHARE_SPOT: XpRule(max_amount=15, cooldown_minutes=30, max_daily=10),
    ACTION_PHOTO_UPLOAD: XpRule(max_amount=30, max_daily=10),
}

# Actions that are credited only through their own flows.
RESERVED_ACTIONS: frozenset[str] = frozenset(
    {
        ACTION_SPOT_APPROVED,
        ACTION_SPOT_REJECTED,
        ACTION_ADMIN_ADJUSTMENT,
        ACTION_REWARD_REDEMPTION,
    }
)

MILESTONE_SPOTS_DISCOVERED = "spots_discovered"
MILESTONE_CHALLENGES_COMPLETED = "challenges_completed"
COUNTER_BY_ACTION: dict[str, str] = {
    ACTION_VISIT_SPOT: MILESTONE_SPOTS_DISCOVERED,
    ACTION_COMPLETE_CHALLENGE: MILESTONE_CHALLENGES_COMPLETED,
}

XP_REASON_MAX_LENGTH = 500
