from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.core.config import get_settings
from app.db.models.redemptions import Redemption
from app.db.models.rewards import Reward
from app.db.models.sponsors import Sponsor
from app.db.repo.ledger_repo import LedgerRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.redemptions.codes import build_reward_code
from app.economy.redemptions.errors import (
    QrVersionSupersededError,
    RedemptionAlreadyExistsError,
    RedemptionAlreadyUsedError,
)
from app.economy.redemptions.service import RedemptionService, SponsorQrService
from app.economy.xp.service import XpService

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
SPONSOR_OWNER_ID = 900
CUSTOMER_ID = 901


async def _seed(database, *, customer_xp: int, xp_required: int) -> Reward:
    sponsor_id = uuid4()
    reward = Reward(
        id=uuid4(),
        sponsor_id=sponsor_id,
        title="Free espresso",
        xp_required=xp_required,
        is_active=True,
        current_redemptions=0,
        created_at=NOW,
        updated_at=NOW,
    )
    async with database.session_factory.begin() as session:
        await UsersRepo.create(session, user_id=SPONSOR_OWNER_ID, created_at=NOW)
        customer = await UsersRepo.create(session, user_id=CUSTOMER_ID, created_at=NOW)
        session.add(
            Sponsor(
                id=sponsor_id,
                owner_user_id=SPONSOR_OWNER_ID,
                name="Harbor Cafe",
                qr_version=1,
                qr_expiry_minutes=5,
            )
        )
        await session.flush()
        session.add(reward)
        if customer_xp:
            await XpService.adjust_xp(
                session,
                user_id=customer.id,
                delta=customer_xp,
                reason="seed balance",
                actor_user_id=SPONSOR_OWNER_ID,
                now_utc=NOW,
            )
    return reward


async def _redeem(database, qr_code: str):
    async with database.session_factory.begin() as session:
        return await RedemptionService.redeem_by_qr(
            session,
            user_id=CUSTOMER_ID,
            qr_code=qr_code,
            now_utc=NOW,
        )


@pytest.mark.asyncio
async def test_concurrent_redemptions_debit_once(database) -> None:
    reward = await _seed(database, customer_xp=300, xp_required=200)
    qr_code = build_reward_code(reward.id, scheme=get_settings().deep_link_scheme)

    outcomes = await asyncio.gather(
        _redeem(database, qr_code),
        _redeem(database, qr_code),
        return_exceptions=True,
    )

    successes = [item for item in outcomes if not isinstance(item, BaseException)]
    failures = [item for item in outcomes if isinstance(item, BaseException)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], RedemptionAlreadyExistsError)
    assert successes[0].new_xp == 100

    async with database.session_factory() as session:
        user = await UsersRepo.get_by_id(session, CUSTOMER_ID)
        stored_reward = await session.get(Reward, reward.id)
        redemption_count = await session.scalar(select(func.count(Redemption.id)))
        balance = await LedgerRepo.sum_balance_delta(session, user_id=CUSTOMER_ID)

    assert user is not None
    assert user.xp_points == 100
    assert stored_reward is not None
    assert stored_reward.current_redemptions == 1
    assert redemption_count == 1
    assert balance == 100


@pytest.mark.asyncio
async def test_redemption_code_validates_once(database) -> None:
    reward = await _seed(database, customer_xp=50, xp_required=50)
    qr_code = build_reward_code(reward.id, scheme=get_settings().deep_link_scheme)
    redeemed = await _redeem(database, qr_code)

    async with database.session_factory.begin() as session:
        validation = await RedemptionService.validate_redemption(
            session,
            caller_user_id=SPONSOR_OWNER_ID,
            redemption_code=redeemed.redemption_code,
            now_utc=NOW + timedelta(minutes=1),
        )
    assert validation.redemption_id == redeemed.redemption_id

    with pytest.raises(RedemptionAlreadyUsedError):
        async with database.session_factory.begin() as session:
            await RedemptionService.validate_redemption(
                session,
                caller_user_id=SPONSOR_OWNER_ID,
                redemption_code=redeemed.redemption_code,
                now_utc=NOW + timedelta(minutes=2),
            )


@pytest.mark.asyncio
async def test_rotated_sponsor_qr_supersedes_previous_code(database) -> None:
    reward = await _seed(database, customer_xp=0, xp_required=10)

    async with database.session_factory.begin() as session:
        first = await SponsorQrService.issue_qr(
            session,
            sponsor_id=reward.sponsor_id,
            caller_user_id=SPONSOR_OWNER_ID,
            now_utc=NOW,
        )
        verified = await SponsorQrService.verify_qr(session, qr_data=first.qr_data, now_utc=NOW)
    assert verified.version == first.version

    async with database.session_factory.begin() as session:
        rotated = await SponsorQrService.rotate_qr(
            session,
            sponsor_id=reward.sponsor_id,
            caller_user_id=SPONSOR_OWNER_ID,
            now_utc=NOW,
        )
    assert rotated.version == first.version + 1

    with pytest.raises(QrVersionSupersededError):
        async with database.session_factory() as session:
            await SponsorQrService.verify_qr(session, qr_data=first.qr_data, now_utc=NOW)
