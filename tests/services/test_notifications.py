from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from app.services import notifications
from app.services.notifications import (
    ADMIN_RECIPIENT,
    Notification,
    NotificationDispatcher,
    NotificationPriority,
    NotificationType,
)


class _Ctx:
    async def __aenter__(self) -> object:
        return object()

    async def __aexit__(self, exc_type, exc, tb) -> bool:  # type: ignore[override]
        return False


class _SessionFactory:
    def __init__(self) -> None:
        self.begin_calls = 0

    def begin(self) -> _Ctx:
        self.begin_calls += 1
        return _Ctx()


def _database() -> SimpleNamespace:
    return SimpleNamespace(session_factory=_SessionFactory())


def test_for_user_targets_stringified_user_id() -> None:
    notification = Notification.for_user(
        42,
        NotificationType.SPOT_APPROVAL,
        {"spot_id": "abc"},
    )

    assert notification.recipient == "42"
    assert notification.priority == NotificationPriority.LOW
    assert notification.payload == {"spot_id": "abc"}


def test_for_admins_targets_admin_recipient() -> None:
    notification = Notification.for_admins(
        NotificationType.SPOT_FLAGGED,
        {"spot_id": "abc"},
        NotificationPriority.HIGH,
    )

    assert notification.recipient == ADMIN_RECIPIENT
    assert notification.priority == NotificationPriority.HIGH


@pytest.mark.asyncio
async def test_dispatch_without_notifications_skips_database() -> None:
    database = _database()

    sent = await NotificationDispatcher(database).dispatch([])

    assert sent == 0
    assert database.session_factory.begin_calls == 0


@pytest.mark.asyncio
async def test_dispatch_writes_each_notification_to_outbox(monkeypatch) -> None:
    created: list[object] = []

    async def _fake_add_many(session, *, events):  # noqa: ARG001
        created.extend(events)
        return len(events)

    monkeypatch.setattr(notifications.OutboxEventsRepo, "add_many", _fake_add_many)

    sent = await NotificationDispatcher(_database()).dispatch(
        [
            Notification.for_user(7, NotificationType.BADGE_UNLOCKED, {"badge_id": "first_spot"}),
            Notification.for_admins(
                NotificationType.URGENT_SPOT_REPORT,
                {"spot_id": "s-1"},
                NotificationPriority.URGENT,
            ),
        ]
    )

    assert sent == 2
    assert [item.event_type for item in created] == ["badge_unlocked", "URGENT_SPOT_REPORT"]
    assert [item.recipient for item in created] == ["7", ADMIN_RECIPIENT]
    assert [item.priority for item in created] == ["LOW", "URGENT"]
    assert all(item.status == "PENDING" for item in created)


@pytest.mark.asyncio
async def test_dispatch_failure_is_logged_and_not_raised(monkeypatch) -> None:
    async def _failing_add_many(session, *, events):  # noqa: ARG001
        raise OperationalError("INSERT", {}, Exception("connection lost"))

    monkeypatch.setattr(notifications.OutboxEventsRepo, "add_many", _failing_add_many)

    sent = await NotificationDispatcher(_database()).dispatch(
        [Notification.for_user(7, NotificationType.REWARD_REDEEMED, {})]
    )

    assert sent == 0
