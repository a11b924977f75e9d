from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.geo import BoundingBox
from app.db.models.spots import Spot


class SpotsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, spot_id: UUID) -> Spot | None:
        return await session.get(Spot, spot_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, spot_id: UUID) -> Spot | None:
        stmt = select(Spot).where(Spot.id == spot_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, spot: Spot) -> Spot:
        session.add(spot)
        await session.flush()
        return spot

    @staticmethod
    async def list_recent_by_creator(
        session: AsyncSession,
        *,
        creator_user_id: int,
        since_utc: datetime,
        until_utc: datetime,
        exclude_spot_id: UUID,
        limit: int,
    ) -> list[Spot]:
        stmt = (
            select(Spot)
            .where(
                Spot.creator_user_id == creator_user_id,
                Spot.created_at >= since_utc,
                Spot.created_at <= until_utc,
                Spot.id != exclude_spot_id,
            )
            .order_by(Spot.created_at.desc(), Spot.id.desc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_creator_since(
        session: AsyncSession,
        *,
        creator_user_id: int,
        since_utc: datetime,
        until_utc: datetime,
        exclude_spot_id: UUID,
    ) -> int:
        stmt = select(func.count(Spot.id)).where(
            Spot.creator_user_id == creator_user_id,
            Spot.created_at >= since_utc,
            Spot.created_at <= until_utc,
            Spot.id != exclude_spot_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def exists_other_with_photo_hash(
        session: AsyncSession,
        *,
        photo_hash: str,
        until_utc: datetime,
        exclude_spot_id: UUID,
    ) -> bool:
        stmt = (
            select(Spot.id)
            .where(
                Spot.photo_hash == photo_hash,
                Spot.created_at <= until_utc,
                Spot.id != exclude_spot_id,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_in_bounding_box(
        session: AsyncSession,
        *,
        box: BoundingBox,
        until_utc: datetime,
        exclude_spot_id: UUID,
        limit: int = 200,
    ) -> list[Spot]:
        stmt = (
            select(Spot)
            .where(
                Spot.latitude >= box.min_latitude,
                Spot.latitude <= box.max_latitude,
                Spot.longitude >= box.min_longitude,
                Spot.longitude <= box.max_longitude,
                Spot.created_at <= until_utc,
                Spot.id != exclude_spot_id,
            )
            .order_by(Spot.created_at.asc(), Spot.id.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_unverified_pending_ids(
        session: AsyncSession,
        *,
        created_before_utc: datetime,
        limit: int,
    ) -> list[UUID]:
        stmt = (
            select(Spot.id)
            .where(
                Spot.verification_status == "PENDING",
                Spot.verified_at.is_(None),
                Spot.created_at <= created_before_utc,
            )
            .order_by(Spot.created_at.asc(), Spot.id.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
