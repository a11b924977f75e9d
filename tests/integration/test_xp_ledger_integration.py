from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.db.repo.ledger_repo import LedgerRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.xp.errors import XpCooldownActiveError
from app.economy.xp.service import XpService

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_award_with_resource_is_idempotent(database) -> None:
    async with database.session_factory.begin() as session:
        await UsersRepo.create(session, user_id=501, created_at=NOW)

    for _ in range(2):
        async with database.session_factory.begin() as session:
            result = await XpService.award_xp(
                session,
                user_id=501,
                action="VISIT_SPOT",
                amount=25,
                now_utc=NOW,
                resource_id="spot-1",
            )

    assert result.idempotent_replay is True
    assert result.new_total_xp == 25

    async with database.session_factory() as session:
        user = await UsersRepo.get_by_id(session, 501)
        entries = await LedgerRepo.list_for_user(session, user_id=501)
        balance = await LedgerRepo.sum_balance_delta(session, user_id=501)

    assert user is not None
    assert user.xp_points == 25
    assert len(entries) == 1
    assert balance == 25


@pytest.mark.asyncio
async def test_visit_cooldown_is_per_spot_and_share_cooldown_is_global(database) -> None:
    async with database.session_factory.begin() as session:
        await UsersRepo.create(session, user_id=502, created_at=NOW)
        await XpService.award_xp(
            session,
            user_id=502,
            action="VISIT_SPOT",
            amount=10,
            now_utc=NOW,
            resource_id="spot-a",
        )

    async with database.session_factory.begin() as session:
        other_spot = await XpService.award_xp(
            session,
            user_id=502,
            action="VISIT_SPOT",
            amount=10,
            now_utc=NOW + timedelta(minutes=1),
            resource_id="spot-b",
        )
    assert other_spot.awarded is True

    async with database.session_factory.begin() as session:
        await XpService.award_xp(
            session,
            user_id=502,
            action="SHARE_SPOT",
            amount=5,
            now_utc=NOW,
            resource_id="share-1",
        )

    with pytest.raises(XpCooldownActiveError):
        async with database.session_factory.begin() as session:
            await XpService.award_xp(
                session,
                user_id=502,
                action="SHARE_SPOT",
                amount=5,
                now_utc=NOW + timedelta(minutes=5),
                resource_id="share-2",
            )


@pytest.mark.asyncio
async def test_negative_adjustment_clamps_at_zero(database) -> None:
    async with database.session_factory.begin() as session:
        await UsersRepo.create(session, user_id=503, created_at=NOW)
        await XpService.award_xp(
            session,
            user_id=503,
            action="COMPLETE_CHALLENGE",
            amount=40,
            now_utc=NOW,
            resource_id="challenge-1",
        )

    async with database.session_factory.begin() as session:
        result = await XpService.adjust_xp(
            session,
            user_id=503,
            delta=-100,
            reason="abuse cleanup",
            actor_user_id=1,
            now_utc=NOW,
        )

    assert result.applied_delta == -40
    assert result.requested_delta == -100
    assert result.new_xp == 0

    async with database.session_factory() as session:
        balance = await LedgerRepo.sum_balance_delta(session, user_id=503)
    assert balance == 0
