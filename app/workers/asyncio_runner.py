from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.core.config import get_settings
from app.db.session import Database

T = TypeVar("T")


async def _run_with_fresh_database(job: Callable[[Database], Awaitable[T]]) -> T:
    database = Database.from_settings(get_settings())
    try:
        return await job(database)
    finally:
        await database.dispose()


def run_async_job(job: Callable[[Database], Awaitable[T]]) -> T:
    return asyncio.run(_run_with_fresh_database(job))
