from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.trust import service as trust_service
from app.trust.service import TrustLedgerService
from app.trust.types import TrustOutcome

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _user(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": 10,
        "trust_score": 0.8,
        "spot_submissions": 4,
        "spot_approved_count": 1,
        "spot_rejected_count": 3,
        "is_shadow_banned": False,
        "last_active_at": None,
        "updated_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _patch_user(monkeypatch: pytest.MonkeyPatch, user: SimpleNamespace | None) -> None:
    async def _fake_get(session, user_id):  # noqa: ARG001
        return user

    monkeypatch.setattr(trust_service.UsersRepo, "get_by_id_for_update", _fake_get)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("AUTO_APPROVED", TrustOutcome.APPROVED),
        ("APPROVED", TrustOutcome.APPROVED),
        ("REJECTED", TrustOutcome.REJECTED),
        ("FLAGGED", TrustOutcome.UNDECIDED),
        ("PENDING", TrustOutcome.UNDECIDED),
    ],
)
def test_outcome_for_status(status: str, expected: TrustOutcome) -> None:
    assert TrustLedgerService.outcome_for_status(status) == expected


@pytest.mark.asyncio
async def test_verification_rejection_triggers_shadow_ban(monkeypatch) -> None:
    user = _user()
    _patch_user(monkeypatch, user)

    result = await TrustLedgerService.apply_verification_outcome(
        object(),  # type: ignore[arg-type]
        user_id=10,
        status="REJECTED",
        now_utc=NOW,
    )

    assert result is not None
    assert result.shadow_banned_now is True
    assert result.trust_score == pytest.approx(0.75)
    assert user.spot_submissions == 5
    assert user.spot_rejected_count == 4
    assert user.is_shadow_banned is True


@pytest.mark.asyncio
async def test_flagged_verification_only_counts_submission(monkeypatch) -> None:
    user = _user(spot_submissions=0, spot_approved_count=0, spot_rejected_count=0)
    _patch_user(monkeypatch, user)

    result = await TrustLedgerService.apply_verification_outcome(
        object(),  # type: ignore[arg-type]
        user_id=10,
        status="FLAGGED",
        now_utc=NOW,
    )

    assert result is not None
    assert result.trust_score == 0.8
    assert user.spot_submissions == 1


@pytest.mark.asyncio
async def test_review_outcome_does_not_recount_submission(monkeypatch) -> None:
    user = _user(spot_submissions=2, spot_approved_count=0, spot_rejected_count=0)
    _patch_user(monkeypatch, user)

    result = await TrustLedgerService.apply_review_outcome(
        object(),  # type: ignore[arg-type]
        user_id=10,
        status="APPROVED",
        now_utc=NOW,
    )

    assert result is not None
    assert user.spot_submissions == 2
    assert user.spot_approved_count == 1
    assert user.trust_score == pytest.approx(0.82)


@pytest.mark.asyncio
async def test_review_outcome_ignores_undecided_status(monkeypatch) -> None:
    _patch_user(monkeypatch, _user())

    result = await TrustLedgerService.apply_review_outcome(
        object(),  # type: ignore[arg-type]
        user_id=10,
        status="FLAGGED",
        now_utc=NOW,
    )

    assert result is None


@pytest.mark.asyncio
async def test_missing_user_is_skipped(monkeypatch) -> None:
    _patch_user(monkeypatch, None)

    result = await TrustLedgerService.apply_verification_outcome(
        object(),  # type: ignore[arg-type]
        user_id=10,
        status="APPROVED",
        now_utc=NOW,
    )

    assert result is None
