from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.xp_transactions import XpTransaction


class LedgerRepo:
    @staticmethod
    async def get_by_idempotency_key(
        session: AsyncSession, idempotency_key: str
    ) -> XpTransaction | None:
        stmt = select(XpTransaction).where(XpTransaction.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, entry: XpTransaction) -> XpTransaction:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def get_award_for_resource(
        session: AsyncSession,
        *,
        user_id: int,
        action: str,
        resource_id: str,
    ) -> XpTransaction | None:
        stmt = (
            select(XpTransaction)
            .where(
                XpTransaction.user_id == user_id,
                XpTransaction.action == action,
                XpTransaction.resource_id == resource_id,
                XpTransaction.tx_type == "AWARD",
            )
            .order_by(XpTransaction.id.asc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int = 100,
    ) -> list[XpTransaction]:
        resolved_limit = max(1, min(1000, int(limit)))
        stmt = (
            select(XpTransaction)
            .where(XpTransaction.user_id == user_id)
            .order_by(XpTransaction.created_at.asc(), XpTransaction.id.asc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def sum_balance_delta(session: AsyncSession, *, user_id: int) -> int:
        stmt = select(func.coalesce(func.sum(XpTransaction.amount), 0)).where(
            XpTransaction.user_id == user_id,
            XpTransaction.tx_type != "DENIAL",
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
