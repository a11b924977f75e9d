from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.spots import Spot
from app.economy.xp.service import XpService
from app.economy.xp.types import BadgeUnlock
from app.services.notifications import Notification, NotificationType
from app.verification.errors import SpotImmutableError
from app.verification.types import SpotTransitionResult, VerificationStatus

logger = structlog.get_logger(__name__)

APPROVED_STATUSES = frozenset({VerificationStatus.APPROVED, VerificationStatus.AUTO_APPROVED})


def is_spot_immutable(spot: Spot) -> bool:
    return spot.verification_status == VerificationStatus.REJECTED.value or spot.xp_released


def _badge_notifications(user_id: int, unlocked: list[BadgeUnlock]) -> list[Notification]:
    return [
        Notification.for_user(
            user_id,
            NotificationType.BADGE_UNLOCKED,
            {"badge_id": badge.badge_id, "title": badge.title},
        )
        for badge in unlocked
    ]


async def transition_spot_status(
    session: AsyncSession,
    *,
    spot: Spot,
    new_status: VerificationStatus,
    now_utc: datetime,
    reason: str | None = None,
) -> SpotTransitionResult:
    """Move a locked spot to a new status and settle its XP exactly once.

    Approval releases the pending reward, rejection denies it. A rejected spot
    or one whose XP was released no longer changes; repeating its current
    status is a no-op.
    """
    previous_status = VerificationStatus(spot.verification_status)
    if is_spot_immutable(spot):
        if previous_status == new_status:
            return SpotTransitionResult(
                spot_id=spot.id,
                previous_status=previous_status,
                new_status=new_status,
                xp_released=False,
                xp_denied=False,
                xp_amount=0,
            )
        raise SpotImmutableError(
            f"Spot is {previous_status.value.lower()} and can no longer change status"
        )

    spot.verification_status = new_status.value
    spot.updated_at = now_utc
    result = SpotTransitionResult(
        spot_id=spot.id,
        previous_status=previous_status,
        new_status=new_status,
        xp_released=False,
        xp_denied=False,
        xp_amount=0,
    )

    if new_status in APPROVED_STATUSES and not spot.xp_released:
        award = await XpService.release_spot_xp(
            session,
            user_id=spot.creator_user_id,
            spot_id=spot.id,
            amount=spot.xp_reward,
            description=f"Spot approved: {spot.title}",
            now_utc=now_utc,
        )
        spot.xp_released = True
        spot.xp_released_at = now_utc
        result.xp_released = True
        result.xp_amount = award.xp_awarded
        result.notifications.append(
            Notification.for_user(
                spot.creator_user_id,
                NotificationType.SPOT_APPROVAL,
                {
                    "spot_id": str(spot.id),
                    "spot_title": spot.title,
                    "xp_awarded": award.xp_awarded,
                    "status": new_status.value,
                },
            )
        )
        result.notifications.extend(_badge_notifications(spot.creator_user_id, award.unlocked_badges))
    elif new_status == VerificationStatus.REJECTED and not spot.xp_denied:
        denial = await XpService.deny_xp(
            session,
            user_id=spot.creator_user_id,
            spot_id=spot.id,
            amount=spot.xp_reward,
            reason=reason or "Spot rejected",
            now_utc=now_utc,
        )
        spot.xp_denied = True
        spot.xp_denied_at = now_utc
        result.xp_denied = True
        result.xp_amount = denial.xp_denied
        result.notifications.append(
            Notification.for_user(
                spot.creator_user_id,
                NotificationType.SPOT_REJECTION,
                {
                    "spot_id": str(spot.id),
                    "spot_title": spot.title,
                    "reason": reason or "",
                },
            )
        )

    await session.flush()
    logger.info(
        "spot_status_transitioned",
        spot_id=str(spot.id),
        previous_status=previous_status.value,
        new_status=new_status.value,
        xp_released=result.xp_released,
        xp_denied=result.xp_denied,
    )
    return result
