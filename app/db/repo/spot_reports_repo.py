from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.spot_reports import SpotReport


class SpotReportsRepo:
    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, report_id: UUID) -> SpotReport | None:
        stmt = select(SpotReport).where(SpotReport.id == report_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_spot_and_reporter(
        session: AsyncSession,
        *,
        spot_id: UUID,
        reporter_user_id: int,
    ) -> SpotReport | None:
        stmt = select(SpotReport).where(
            SpotReport.spot_id == spot_id,
            SpotReport.reported_by_user_id == reporter_user_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, report: SpotReport) -> SpotReport:
        session.add(report)
        await session.flush()
        return report

    @staticmethod
    async def list_for_spot(session: AsyncSession, *, spot_id: UUID) -> list[SpotReport]:
        stmt = (
            select(SpotReport)
            .where(SpotReport.spot_id == spot_id)
            .order_by(SpotReport.created_at.asc(), SpotReport.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_reporter_since(
        session: AsyncSession,
        *,
        reporter_user_id: int,
        since_utc: datetime,
    ) -> int:
        stmt = select(func.count(SpotReport.id)).where(
            SpotReport.reported_by_user_id == reporter_user_id,
            SpotReport.created_at >= since_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_page(
        session: AsyncSession,
        *,
        status: str | None,
        limit: int,
        offset: int,
    ) -> list[SpotReport]:
        stmt = select(SpotReport)
        if status is not None:
            stmt = stmt.where(SpotReport.status == status)
        stmt = (
            stmt.order_by(SpotReport.created_at.desc(), SpotReport.id.desc())
            .limit(max(1, min(100, int(limit))))
            .offset(max(0, int(offset)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_spot_ids_with_pending_reports(
        session: AsyncSession,
        *,
        limit: int,
    ) -> list[UUID]:
        stmt = (
            select(distinct(SpotReport.spot_id))
            .where(SpotReport.status == "PENDING")
            .order_by(SpotReport.spot_id.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
