from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.db.models.outbox_events import OutboxEvent
from app.db.repo.outbox_events_repo import OutboxEventsRepo
from app.db.session import Database

logger = structlog.get_logger(__name__)

ADMIN_RECIPIENT = "admin"
NOTIFICATION_STATUS_PENDING = "PENDING"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class NotificationType(str, Enum):
    SPOT_APPROVAL = "spot_approval"
    SPOT_REJECTION = "spot_rejection"
    SPOT_REVIEW_REQUIRED = "SPOT_REVIEW_REQUIRED"
    SPOT_FLAGGED = "SPOT_FLAGGED"
    URGENT_SPOT_REPORT = "URGENT_SPOT_REPORT"
    REPORT_ABUSE_SUSPECTED = "REPORT_ABUSE_SUSPECTED"
    COORDINATED_REPORTING_SUSPECTED = "COORDINATED_REPORTING_SUSPECTED"
    USER_WARNING = "user_warning"
    REWARD_REDEEMED = "reward_redeemed"
    REDEMPTION_USED = "redemption_used"
    BADGE_UNLOCKED = "badge_unlocked"


@dataclass(slots=True)
class Notification:
    event_type: NotificationType
    recipient: str
    payload: dict[str, object] = field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.LOW

    @classmethod
    def for_user(
        cls,
        user_id: int,
        event_type: NotificationType,
        payload: dict[str, object],
        priority: NotificationPriority = NotificationPriority.LOW,
    ) -> Notification:
        return cls(event_type=event_type, recipient=str(user_id), payload=payload, priority=priority)

    def to_outbox_event(self) -> OutboxEvent:
        return OutboxEvent(
            event_type=self.event_type.value,
            recipient=self.recipient,
            priority=self.priority.value,
            payload=self.payload,
            status=NOTIFICATION_STATUS_PENDING,
        )

    @classmethod
    def for_admins(
        cls,
        event_type: NotificationType,
        payload: dict[str, object],
        priority: NotificationPriority,
    ) -> Notification:
        return cls(
            event_type=event_type,
            recipient=ADMIN_RECIPIENT,
            payload=payload,
            priority=priority,
        )


class NotificationDispatcher:
    """Writes notifications to the outbox after the business transaction committed.

    Delivery failures are logged and never surface to the caller.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def dispatch(self, notifications: list[Notification]) -> int:
        if not notifications:
            return 0

        try:
            async with self._database.session_factory.begin() as session:
                written = await OutboxEventsRepo.add_many(
                    session,
                    events=[item.to_outbox_event() for item in notifications],
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "notification_dispatch_failed",
                count=len(notifications),
                event_types=[item.event_type.value for item in notifications],
                error_type=type(exc).__name__,
            )
            return 0

        logger.info("notifications_dispatched", count=written)
        return written
