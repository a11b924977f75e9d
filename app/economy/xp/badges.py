from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.badges import BadgeDefinition
from app.db.models.users import User
from app.db.repo.badges_repo import BadgesRepo
from app.economy.xp.constants import MILESTONE_CHALLENGES_COMPLETED, MILESTONE_SPOTS_DISCOVERED
from app.economy.xp.types import BadgeUnlock, BadgeUnlockType

logger = structlog.get_logger(__name__)


def milestone_counters(user: User) -> dict[str, int]:
    return {
        MILESTONE_SPOTS_DISCOVERED: int(user.spots_discovered or 0),
        MILESTONE_CHALLENGES_COMPLETED: int(user.challenges_completed or 0),
    }


def badge_is_earned(
    definition: BadgeDefinition,
    *,
    xp: int,
    level: int,
    counters: Mapping[str, int],
) -> bool:
    unlock_type = str(definition.unlock_type)
    if unlock_type == BadgeUnlockType.XP.value:
        return xp >= int(definition.required_xp or 0)
    if unlock_type == BadgeUnlockType.LEVEL.value:
        return level >= int(definition.required_level or 0)
    if unlock_type == BadgeUnlockType.MILESTONE.value:
        if definition.milestone_type not in counters:
            return False
        return counters[definition.milestone_type] >= int(definition.required_count or 0)
    return False


class BadgeService:
    @staticmethod
    async def check_and_unlock_badges(
        session: AsyncSession,
        *,
        user: User,
        xp: int,
        level: int,
        now_utc: datetime,
    ) -> list[BadgeUnlock]:
        """Unlock every earned badge; each insert runs in its own savepoint."""
        definitions = await BadgesRepo.list_active_definitions(session)
        if not definitions:
            return []

        earned_ids = await BadgesRepo.list_earned_badge_ids(session, user_id=user.id)
        counters = milestone_counters(user)
        unlocked: list[BadgeUnlock] = []
        for definition in definitions:
            if definition.id in earned_ids:
                continue
            if not badge_is_earned(definition, xp=xp, level=level, counters=counters):
                continue

            try:
                async with session.begin_nested():
                    await BadgesRepo.create_user_badge(
                        session,
                        user_id=user.id,
                        badge_id=definition.id,
                        earned_at=now_utc,
                    )
            except IntegrityError:
                logger.info("badge_already_unlocked", user_id=user.id, badge_id=definition.id)
                continue
            except SQLAlchemyError:
                logger.exception("badge_unlock_failed", user_id=user.id, badge_id=definition.id)
                continue

            unlocked.append(BadgeUnlock(badge_id=definition.id, title=definition.title))
            logger.info("badge_unlocked", user_id=user.id, badge_id=definition.id)
        return unlocked
