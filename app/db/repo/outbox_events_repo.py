from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.outbox_events import OutboxEvent


class OutboxEventsRepo:
    @staticmethod
    async def add_many(session: AsyncSession, *, events: Sequence[OutboxEvent]) -> int:
        if not events:
            return 0
        session.add_all(list(events))
        await session.flush()
        return len(events)
