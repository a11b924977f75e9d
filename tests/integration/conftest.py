from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from sqlalchemy import text

import app.db.models  # noqa: F401
from app.core.config import get_settings
from app.core.integration_db_safety import assert_safe_integration_db
from app.db.models.base import Base
from app.db.session import Database

TRUNCATE_TABLES = (
    "xp_transactions",
    "xp_history",
    "user_badges",
    "badge_definitions",
    "redemptions",
    "rewards",
    "sponsors",
    "spot_reports",
    "verification_logs",
    "outbox_events",
    "spots",
    "users",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    assert_safe_integration_db(get_settings().database_url)


@pytest.fixture
async def database() -> AsyncIterator[Database]:
    # One engine per test; asyncpg connections must not cross event loops.
    db = Database.from_settings(get_settings())

    try:
        async with db.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        await db.dispose()
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(TRUNCATE_SQL))

    yield db

    await db.dispose()
