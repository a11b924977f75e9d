from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.badges import BadgeDefinition, UserBadge


class BadgesRepo:
    @staticmethod
    async def list_active_definitions(session: AsyncSession) -> list[BadgeDefinition]:
        stmt = (
            select(BadgeDefinition)
            .where(BadgeDefinition.is_active.is_(True))
            .order_by(BadgeDefinition.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_earned_badge_ids(session: AsyncSession, *, user_id: int) -> set[str]:
        stmt = select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
        result = await session.execute(stmt)
        return {str(badge_id) for badge_id in result.scalars().all()}

    @staticmethod
    async def create_user_badge(
        session: AsyncSession,
        *,
        user_id: int,
        badge_id: str,
        earned_at: datetime,
    ) -> UserBadge:
        user_badge = UserBadge(user_id=user_id, badge_id=badge_id, earned_at=earned_at)
        session.add(user_badge)
        await session.flush()
        return user_badge
