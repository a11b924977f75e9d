from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.economy.xp.types import XpAwardResult
from app.services.notifications import NotificationPriority, NotificationType
from app.verification import service as verification_service
from app.verification import transitions
from app.verification.constants import SIGNAL_PHOTO_VERIFICATION
from app.verification.errors import SpotNotFoundError
from app.verification.service import VerificationService, build_review_notifications
from app.verification.types import SignalResult, VerificationResult, VerificationStatus

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class _Ctx:
    def __init__(self, session: object) -> None:
        self._session = session

    async def __aenter__(self) -> object:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:  # type: ignore[override]
        return False


class _Session:
    async def flush(self) -> None:
        return None


class _SessionFactory:
    def __init__(self) -> None:
        self.session = _Session()

    def __call__(self) -> _Ctx:
        return _Ctx(self.session)

    def begin(self) -> _Ctx:
        return _Ctx(self.session)


class _Dispatcher:
    def __init__(self) -> None:
        self.sent: list[object] = []

    async def dispatch(self, notifications) -> int:
        self.sent.extend(notifications)
        return len(notifications)


def _database() -> SimpleNamespace:
    return SimpleNamespace(session_factory=_SessionFactory())


def _spot(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": uuid4(),
        "creator_user_id": 10,
        "latitude": 48.1372,
        "longitude": 11.5756,
        "created_at": NOW - timedelta(seconds=5),
        "title": "Old harbor lighthouse",
        "description": "Quiet viewpoint above the harbor at sunset.",
        "category": "VIEWPOINT",
        "gps_accuracy_m": 75.0,
        "is_mock_location": False,
        "has_photo": True,
        "photo_hash": "a" * 64,
        "exif_taken_at": None,
        "exif_latitude": None,
        "exif_longitude": None,
        "verification_status": "PENDING",
        "verification_score": 0,
        "verification_reasons": [],
        "verification_flags": [],
        "detailed_scores": {},
        "verified_at": None,
        "flagged_at": None,
        "flag_reason": None,
        "xp_reward": 100,
        "xp_released": False,
        "xp_released_at": None,
        "xp_denied": False,
        "xp_denied_at": None,
        "updated_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _signal(score: int, reason: str) -> SignalResult:
    return SignalResult(score=score, reasons=[reason])


def _patch_pipeline(
    monkeypatch: pytest.MonkeyPatch,
    spot: SimpleNamespace | None,
    *,
    photo_reader=None,
) -> dict[str, list[object]]:
    calls: dict[str, list[object]] = {"logs": [], "trust": [], "release": []}

    async def _fake_get_spot(session, spot_id):  # noqa: ARG001
        return spot

    async def _location(session, snapshot):  # noqa: ARG001
        return _signal(80, "movement_pattern_ok")

    async def _photo(session, snapshot):  # noqa: ARG001
        return _signal(80, "unique_image")

    async def _duplicates(session, snapshot):  # noqa: ARG001
        return _signal(80, "no_nearby_duplicates")

    async def _trust(session, snapshot, now_utc):  # noqa: ARG001
        return _signal(100, "established_account")

    async def _fake_log(session, *, log):  # noqa: ARG001
        calls["logs"].append(log)
        return log

    async def _fake_trust(session, *, user_id, status, now_utc):  # noqa: ARG001
        calls["trust"].append(status)
        return None

    async def _fake_release(session, *, user_id, spot_id, amount, description, now_utc):  # noqa: ARG001
        calls["release"].append(amount)
        return XpAwardResult(
            awarded=True,
            idempotent_replay=False,
            xp_awarded=amount,
            new_total_xp=amount,
            new_level=1,
            leveled_up=False,
        )

    service_cls = verification_service.VerificationService
    monkeypatch.setattr(verification_service.SpotsRepo, "get_by_id", _fake_get_spot)
    monkeypatch.setattr(verification_service.SpotsRepo, "get_by_id_for_update", _fake_get_spot)
    monkeypatch.setattr(service_cls, "_read_location", _location)
    monkeypatch.setattr(service_cls, "_read_photo", photo_reader or _photo)
    monkeypatch.setattr(service_cls, "_read_duplicates", _duplicates)
    monkeypatch.setattr(service_cls, "_read_trust", _trust)
    monkeypatch.setattr(verification_service.VerificationLogsRepo, "create", _fake_log)
    monkeypatch.setattr(
        verification_service.TrustLedgerService,
        "apply_verification_outcome",
        _fake_trust,
    )
    monkeypatch.setattr(transitions.XpService, "release_spot_xp", _fake_release)
    return calls


@pytest.mark.asyncio
async def test_verify_spot_auto_approves_and_releases_xp(monkeypatch) -> None:
    spot = _spot()
    calls = _patch_pipeline(monkeypatch, spot)
    dispatcher = _Dispatcher()

    result = await VerificationService.verify_spot(
        _database(),  # type: ignore[arg-type]
        spot_id=spot.id,
        now_utc=NOW,
        dispatcher=dispatcher,  # type: ignore[arg-type]
    )

    assert result.status == VerificationStatus.AUTO_APPROVED
    assert result.score == 83
    assert spot.verification_status == "AUTO_APPROVED"
    assert spot.verification_score == 83
    assert spot.verified_at == NOW
    assert spot.xp_released is True
    assert calls["trust"] == ["AUTO_APPROVED"]
    assert calls["release"] == [100]
    assert calls["logs"][0].score == 83
    assert [item.event_type for item in dispatcher.sent] == [NotificationType.SPOT_APPROVAL]


@pytest.mark.asyncio
async def test_verify_spot_replays_stored_decision(monkeypatch) -> None:
    spot = _spot(
        verification_status="AUTO_APPROVED",
        verification_score=83,
        verification_reasons=["movement_pattern_ok"],
        verified_at=NOW - timedelta(minutes=1),
        xp_released=True,
    )
    calls = _patch_pipeline(monkeypatch, spot)
    dispatcher = _Dispatcher()

    result = await VerificationService.verify_spot(
        _database(),  # type: ignore[arg-type]
        spot_id=spot.id,
        now_utc=NOW,
        dispatcher=dispatcher,  # type: ignore[arg-type]
    )

    assert result.idempotent_replay is True
    assert result.score == 83
    assert result.reasons == ["movement_pattern_ok"]
    assert calls == {"logs": [], "trust": [], "release": []}
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_verify_spot_requires_existing_spot(monkeypatch) -> None:
    _patch_pipeline(monkeypatch, None)

    with pytest.raises(SpotNotFoundError):
        await VerificationService.verify_spot(
            _database(),  # type: ignore[arg-type]
            spot_id=uuid4(),
            now_utc=NOW,
            dispatcher=_Dispatcher(),  # type: ignore[arg-type]
        )


@pytest.mark.asyncio
async def test_failed_signal_read_uses_neutral_score(monkeypatch) -> None:
    async def _broken_photo(session, snapshot):  # noqa: ARG001
        raise OperationalError("select", {}, Exception("connection reset"))

    spot = _spot()
    calls = _patch_pipeline(monkeypatch, spot, photo_reader=_broken_photo)
    dispatcher = _Dispatcher()

    result = await VerificationService.verify_spot(
        _database(),  # type: ignore[arg-type]
        spot_id=spot.id,
        now_utc=NOW,
        dispatcher=dispatcher,  # type: ignore[arg-type]
    )

    assert result.detailed_scores[SIGNAL_PHOTO_VERIFICATION] == 40
    assert "photo_check_error" in result.reasons
    assert result.score == 75
    assert result.status == VerificationStatus.PENDING
    assert calls["release"] == []
    review = dispatcher.sent[0]
    assert review.event_type == NotificationType.SPOT_REVIEW_REQUIRED
    assert review.priority == NotificationPriority.MEDIUM


@pytest.mark.asyncio
async def test_slow_signal_read_times_out(monkeypatch) -> None:
    async def _slow_photo(session, snapshot):  # noqa: ARG001
        await asyncio.sleep(1)
        return _signal(100, "unique_image")

    spot = _spot()
    _patch_pipeline(monkeypatch, spot, photo_reader=_slow_photo)
    monkeypatch.setattr(
        verification_service,
        "get_settings",
        lambda: SimpleNamespace(verification_read_timeout_seconds=0.01),
    )

    result = await VerificationService.verify_spot(
        _database(),  # type: ignore[arg-type]
        spot_id=spot.id,
        now_utc=NOW,
        dispatcher=_Dispatcher(),  # type: ignore[arg-type]
    )

    assert result.detailed_scores[SIGNAL_PHOTO_VERIFICATION] == 40
    assert "photo_check_error" in result.reasons


@pytest.mark.asyncio
async def test_unexpected_error_leaves_spot_pending_for_retry(monkeypatch) -> None:
    def _boom(signals):  # noqa: ARG001
        raise RuntimeError("scoring bug")

    spot = _spot()
    calls = _patch_pipeline(monkeypatch, spot)
    monkeypatch.setattr(verification_service, "combine_signals", _boom)
    dispatcher = _Dispatcher()

    result = await VerificationService.verify_spot(
        _database(),  # type: ignore[arg-type]
        spot_id=spot.id,
        now_utc=NOW,
        dispatcher=dispatcher,  # type: ignore[arg-type]
    )

    assert result.status == VerificationStatus.PENDING
    assert result.score == 0
    assert result.reasons == ["error_during_verification"]
    assert spot.verification_status == "PENDING"
    assert spot.verification_reasons == ["error_during_verification"]
    assert spot.verified_at is None
    assert calls["trust"] == []
    assert dispatcher.sent == []


def test_review_notifications_by_status() -> None:
    snapshot = verification_service._snapshot_from_model(_spot())  # type: ignore[arg-type]

    def _result(status: VerificationStatus) -> VerificationResult:
        return VerificationResult(
            status=status,
            score=40,
            reasons=[],
            flags=["mock_location_detected"] if status == VerificationStatus.FLAGGED else [],
            detailed_scores={},
        )

    flagged = build_review_notifications(snapshot, _result(VerificationStatus.FLAGGED))
    assert flagged[0].priority == NotificationPriority.HIGH
    assert flagged[0].payload["flags"] == ["mock_location_detected"]
    assert build_review_notifications(snapshot, _result(VerificationStatus.AUTO_APPROVED)) == []


@pytest.mark.asyncio
async def test_duplicate_reads_only_consider_spots_created_up_to_the_scored_one(monkeypatch) -> None:
    snapshot = verification_service._snapshot_from_model(_spot())
    calls: dict[str, dict[str, object]] = {}

    async def _fake_hash_lookup(session, **kwargs):  # noqa: ARG001
        calls["photo"] = kwargs
        return False

    async def _fake_nearby(session, **kwargs):  # noqa: ARG001
        calls["nearby"] = kwargs
        return []

    monkeypatch.setattr(
        verification_service.SpotsRepo,
        "exists_other_with_photo_hash",
        _fake_hash_lookup,
    )
    monkeypatch.setattr(verification_service.SpotsRepo, "list_in_bounding_box", _fake_nearby)

    photo = await VerificationService._read_photo(object(), snapshot)
    duplicates = await VerificationService._read_duplicates(object(), snapshot)

    assert calls["photo"]["until_utc"] == snapshot.created_at
    assert calls["photo"]["exclude_spot_id"] == snapshot.id
    assert calls["nearby"]["until_utc"] == snapshot.created_at
    assert "duplicate_image" not in photo.flags
    assert duplicates.flags == []
