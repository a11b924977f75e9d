from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.xp_history import XpHistory


class XpHistoryRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        entity_id: str | None,
        awarded_at: datetime,
    ) -> XpHistory:
        record = XpHistory(
            user_id=user_id,
            action=action,
            entity_id=entity_id,
            awarded_at=awarded_at,
        )
        session.add(record)
        await session.flush()
        return record

    @staticmethod
    async def get_last_awarded_at(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        entity_id: str | None = None,
    ) -> datetime | None:
        stmt = select(func.max(XpHistory.awarded_at)).where(
            XpHistory.user_id == user_id,
            XpHistory.action == action,
        )
        if entity_id is not None:
            stmt = stmt.where(XpHistory.entity_id == entity_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_since(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        since_utc: datetime,
    ) -> int:
        stmt = select(func.count(XpHistory.id)).where(
            XpHistory.user_id == user_id,
            XpHistory.action == action,
            XpHistory.awarded_at >= since_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
