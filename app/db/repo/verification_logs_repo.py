from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.verification_logs import VerificationLog


class VerificationLogsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, log: VerificationLog) -> VerificationLog:
        session.add(log)
        await session.flush()
        return log

    @staticmethod
    async def list_for_spot(session: AsyncSession, *, spot_id: UUID) -> list[VerificationLog]:
        stmt = (
            select(VerificationLog)
            .where(VerificationLog.spot_id == spot_id)
            .order_by(VerificationLog.created_at.asc(), VerificationLog.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
