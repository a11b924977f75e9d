from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.rewards import Reward


class RewardsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, reward_id: UUID) -> Reward | None:
        return await session.get(Reward, reward_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, reward_id: UUID) -> Reward | None:
        stmt = select(Reward).where(Reward.id == reward_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
