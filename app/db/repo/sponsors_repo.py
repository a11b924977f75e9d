from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.sponsors import Sponsor


class SponsorsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, sponsor_id: UUID) -> Sponsor | None:
        return await session.get(Sponsor, sponsor_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, sponsor_id: UUID) -> Sponsor | None:
        stmt = select(Sponsor).where(Sponsor.id == sponsor_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
