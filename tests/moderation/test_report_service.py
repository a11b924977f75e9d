from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.moderation import reports as reports_module
from app.moderation.errors import (
    DuplicateReportError,
    InvalidReportActionError,
    InvalidReportReasonError,
    InvalidReportStatusError,
    ReportAlreadyResolvedError,
    ReportNotFoundError,
    SelfReportError,
)
from app.moderation.reports import ReportService
from app.moderation.types import ReportAction
from app.services.notifications import NotificationPriority, NotificationType
from app.verification.errors import SpotNotFoundError

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class _Session:
    async def flush(self) -> None:
        return None


def _spot(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": uuid4(),
        "creator_user_id": 10,
        "title": "Old harbor lighthouse",
        "verification_status": "PENDING",
        "xp_released": False,
        "xp_denied": False,
        "report_count": 0,
        "last_reported_at": None,
        "flagged_at": None,
        "flag_reason": None,
        "is_active": True,
        "needs_correction": False,
        "correction_notes": None,
        "updated_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _stored_report(spot_id, reporter: int, reason: str, *, minutes_ago: float) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        spot_id=spot_id,
        reported_by_user_id=reporter,
        reason=reason,
        created_at=NOW - timedelta(minutes=minutes_ago),
    )


class _ReportStore:
    def __init__(
        self,
        monkeypatch: pytest.MonkeyPatch,
        *,
        spots: dict[object, SimpleNamespace],
        reports: list[SimpleNamespace] | None = None,
        reporter_daily_count: int = 1,
    ) -> None:
        self.spots = spots
        self.reports = list(reports or [])
        self.page_args: dict[str, object] = {}

        async def _get_spot(session, spot_id):  # noqa: ARG001
            return self.spots.get(spot_id)

        async def _get_existing(session, *, spot_id, reporter_user_id):  # noqa: ARG001
            for report in self.reports:
                if report.spot_id == spot_id and report.reported_by_user_id == reporter_user_id:
                    return report
            return None

        async def _create(session, *, report):  # noqa: ARG001
            self.reports.append(report)
            return report

        async def _list_for_spot(session, *, spot_id):  # noqa: ARG001
            return [report for report in self.reports if report.spot_id == spot_id]

        async def _count_by_reporter(session, *, reporter_user_id, since_utc):  # noqa: ARG001
            return reporter_daily_count

        async def _get_report(session, report_id):  # noqa: ARG001
            return next((report for report in self.reports if report.id == report_id), None)

        async def _list_page(session, *, status, limit, offset):  # noqa: ARG001
            self.page_args = {"status": status, "limit": limit, "offset": offset}
            return []

        async def _pending_spot_ids(session, *, limit):  # noqa: ARG001
            return list(self.spots)[:limit]

        repo = reports_module.SpotReportsRepo
        monkeypatch.setattr(reports_module.SpotsRepo, "get_by_id_for_update", _get_spot)
        monkeypatch.setattr(repo, "get_by_spot_and_reporter", _get_existing)
        monkeypatch.setattr(repo, "create", _create)
        monkeypatch.setattr(repo, "list_for_spot", _list_for_spot)
        monkeypatch.setattr(repo, "count_by_reporter_since", _count_by_reporter)
        monkeypatch.setattr(repo, "get_by_id_for_update", _get_report)
        monkeypatch.setattr(repo, "list_page", _list_page)
        monkeypatch.setattr(repo, "list_spot_ids_with_pending_reports", _pending_spot_ids)


async def _report(spot_id, *, reporter: int = 20, reason: str = "WRONG_LOCATION", description=None):
    return await ReportService.report_spot(
        _Session(),  # type: ignore[arg-type]
        reporter_user_id=reporter,
        spot_id=spot_id,
        reason=reason,
        description=description,
        now_utc=NOW,
    )


@pytest.mark.asyncio
async def test_report_spot_rejects_unknown_reason() -> None:
    with pytest.raises(InvalidReportReasonError):
        await _report(uuid4(), reason="BORING")


@pytest.mark.asyncio
async def test_report_spot_requires_existing_spot(monkeypatch) -> None:
    _ReportStore(monkeypatch, spots={})

    with pytest.raises(SpotNotFoundError):
        await _report(uuid4())


@pytest.mark.asyncio
async def test_report_spot_rejects_own_spot(monkeypatch) -> None:
    spot = _spot()
    _ReportStore(monkeypatch, spots={spot.id: spot})

    with pytest.raises(SelfReportError):
        await _report(spot.id, reporter=10)


@pytest.mark.asyncio
async def test_report_spot_rejects_second_report_from_same_user(monkeypatch) -> None:
    spot = _spot()
    _ReportStore(
        monkeypatch,
        spots={spot.id: spot},
        reports=[_stored_report(spot.id, 20, "FAKE", minutes_ago=60)],
    )

    with pytest.raises(DuplicateReportError):
        await _report(spot.id, reporter=20)


@pytest.mark.asyncio
async def test_first_report_is_recorded_without_flagging(monkeypatch) -> None:
    spot = _spot()
    store = _ReportStore(monkeypatch, spots={spot.id: spot})

    result = await _report(spot.id, description="  Pin is across the river  ")

    assert result.report_count == 1
    assert result.spot_flagged is False
    assert result.notifications == []
    assert spot.last_reported_at == NOW
    stored = store.reports[0]
    assert stored.status == "PENDING"
    assert stored.description == "Pin is across the river"


@pytest.mark.asyncio
async def test_second_report_with_same_reason_flags_spot(monkeypatch) -> None:
    spot = _spot(report_count=1)
    _ReportStore(
        monkeypatch,
        spots={spot.id: spot},
        reports=[_stored_report(spot.id, 21, "WRONG_LOCATION", minutes_ago=600)],
    )

    result = await _report(spot.id)

    assert result.spot_flagged is True
    assert spot.verification_status == "FLAGGED"
    assert spot.flagged_at == NOW
    assert spot.flag_reason == "Multiple user reports"
    flagged = result.notifications[0]
    assert flagged.event_type == NotificationType.SPOT_FLAGGED
    assert flagged.priority == NotificationPriority.HIGH
    assert flagged.recipient == "admin"


@pytest.mark.asyncio
async def test_settled_spot_is_not_auto_flagged(monkeypatch) -> None:
    spot = _spot(verification_status="APPROVED", xp_released=True, report_count=1)
    _ReportStore(
        monkeypatch,
        spots={spot.id: spot},
        reports=[_stored_report(spot.id, 21, "WRONG_LOCATION", minutes_ago=600)],
    )

    result = await _report(spot.id)

    assert result.spot_flagged is False
    assert spot.verification_status == "APPROVED"


@pytest.mark.asyncio
async def test_dangerous_report_alerts_admins_urgently(monkeypatch) -> None:
    spot = _spot()
    _ReportStore(monkeypatch, spots={spot.id: spot})

    result = await _report(spot.id, reason="DANGEROUS")

    assert [item.event_type for item in result.notifications] == [
        NotificationType.URGENT_SPOT_REPORT
    ]
    assert result.notifications[0].priority == NotificationPriority.URGENT


@pytest.mark.asyncio
async def test_prolific_reporter_is_surfaced(monkeypatch) -> None:
    spot = _spot()
    _ReportStore(monkeypatch, spots={spot.id: spot}, reporter_daily_count=11)

    result = await _report(spot.id)

    assert [item.event_type for item in result.notifications] == [
        NotificationType.REPORT_ABUSE_SUSPECTED
    ]


@pytest.mark.asyncio
async def test_coordinated_reports_are_surfaced(monkeypatch) -> None:
    spot = _spot(verification_status="FLAGGED", report_count=2)
    _ReportStore(
        monkeypatch,
        spots={spot.id: spot},
        reports=[
            _stored_report(spot.id, 21, "FAKE", minutes_ago=10),
            _stored_report(spot.id, 22, "FAKE", minutes_ago=20),
        ],
    )

    result = await _report(spot.id, reason="FAKE")

    assert [item.event_type for item in result.notifications] == [
        NotificationType.COORDINATED_REPORTING_SUSPECTED
    ]


def _pending_report(spot_id, **overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": uuid4(),
        "spot_id": spot_id,
        "reported_by_user_id": 20,
        "reason": "OFFENSIVE",
        "status": "PENDING",
        "action": None,
        "reviewed_by_user_id": None,
        "reviewed_at": None,
        "review_notes": "",
        "created_at": NOW - timedelta(hours=2),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


async def _resolve(report_id, action: str, notes: str | None = None):
    return await ReportService.resolve_report(
        _Session(),  # type: ignore[arg-type]
        admin_user_id=1,
        report_id=report_id,
        action=action,
        notes=notes,
        now_utc=NOW,
    )


@pytest.mark.asyncio
async def test_resolve_report_remove_spot_deactivates_it(monkeypatch) -> None:
    spot = _spot()
    report = _pending_report(spot.id)
    _ReportStore(monkeypatch, spots={spot.id: spot}, reports=[report])

    result = await _resolve(report.id, "REMOVE_SPOT", notes="Hate speech in title")

    assert result.action == ReportAction.REMOVE_SPOT
    assert spot.is_active is False
    assert report.status == "REVIEWED"
    assert report.reviewed_by_user_id == 1
    assert report.review_notes == "Hate speech in title"


@pytest.mark.asyncio
async def test_resolve_report_edit_marks_spot_for_correction(monkeypatch) -> None:
    spot = _spot()
    report = _pending_report(spot.id)
    _ReportStore(monkeypatch, spots={spot.id: spot}, reports=[report])

    await _resolve(report.id, "EDIT_SPOT", notes="Move pin north")

    assert spot.needs_correction is True
    assert spot.correction_notes == "Move pin north"


@pytest.mark.asyncio
async def test_resolve_report_warning_notifies_creator(monkeypatch) -> None:
    spot = _spot()
    report = _pending_report(spot.id)
    _ReportStore(monkeypatch, spots={spot.id: spot}, reports=[report])

    result = await _resolve(report.id, "WARNING")

    warning = result.notifications[0]
    assert warning.event_type == NotificationType.USER_WARNING
    assert warning.recipient == "10"


@pytest.mark.asyncio
async def test_resolve_report_dismiss_leaves_spot_untouched(monkeypatch) -> None:
    report = _pending_report(uuid4())
    _ReportStore(monkeypatch, spots={}, reports=[report])

    result = await _resolve(report.id, "DISMISS")

    assert result.notifications == []
    assert report.action == "DISMISS"


@pytest.mark.asyncio
async def test_resolve_report_twice_is_rejected(monkeypatch) -> None:
    report = _pending_report(uuid4(), status="REVIEWED")
    _ReportStore(monkeypatch, spots={}, reports=[report])

    with pytest.raises(ReportAlreadyResolvedError):
        await _resolve(report.id, "DISMISS")


@pytest.mark.asyncio
async def test_resolve_report_errors(monkeypatch) -> None:
    _ReportStore(monkeypatch, spots={})

    with pytest.raises(InvalidReportActionError):
        await _resolve(uuid4(), "BAN")
    with pytest.raises(ReportNotFoundError):
        await _resolve(uuid4(), "DISMISS")


@pytest.mark.asyncio
async def test_list_reports_clamps_paging(monkeypatch) -> None:
    store = _ReportStore(monkeypatch, spots={})

    await ReportService.list_reports(object(), status=None, limit=1000, offset=-5)  # type: ignore[arg-type]

    assert store.page_args == {"status": None, "limit": 100, "offset": 0}


@pytest.mark.asyncio
async def test_list_reports_rejects_unknown_status(monkeypatch) -> None:
    _ReportStore(monkeypatch, spots={})

    with pytest.raises(InvalidReportStatusError):
        await ReportService.list_reports(object(), status="OPEN")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_rescan_flags_spots_that_crossed_threshold(monkeypatch) -> None:
    busy = _spot()
    quiet = _spot()
    _ReportStore(
        monkeypatch,
        spots={busy.id: busy, quiet.id: quiet},
        reports=[
            _stored_report(busy.id, 21, "SPAM", minutes_ago=3000),
            _stored_report(busy.id, 22, "SPAM", minutes_ago=3100),
            _stored_report(quiet.id, 23, "FAKE", minutes_ago=3000),
        ],
    )

    result = await ReportService.rescan_reported_spots(
        _Session(),  # type: ignore[arg-type]
        now_utc=NOW,
        batch_size=50,
    )

    assert result.spots_scanned == 2
    assert result.spots_flagged == 1
    assert busy.verification_status == "FLAGGED"
    assert quiet.verification_status == "PENDING"
