from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.redemptions import Redemption


class RedemptionsRepo:
    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        redemption_id: UUID,
    ) -> Redemption | None:
        stmt = select(Redemption).where(Redemption.id == redemption_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_live_for_user_reward(
        session: AsyncSession,
        *,
        user_id: int,
        reward_id: UUID,
    ) -> Redemption | None:
        stmt = (
            select(Redemption)
            .where(
                Redemption.user_id == user_id,
                Redemption.reward_id == reward_id,
                Redemption.used.is_(False),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, redemption: Redemption) -> Redemption:
        session.add(redemption)
        await session.flush()
        return redemption
