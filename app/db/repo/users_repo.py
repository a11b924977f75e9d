from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: int,
        created_at: datetime,
        trust_score: float = 1.0,
    ) -> User:
        user = User(
            id=user_id,
            xp_points=0,
            xp_pending=0,
            level=1,
            trust_score=trust_score,
            spot_submissions=0,
            spot_approved_count=0,
            spot_rejected_count=0,
            is_shadow_banned=False,
            spots_discovered=0,
            challenges_completed=0,
            created_at=created_at,
        )
        session.add(user)
        await session.flush()
        return user
