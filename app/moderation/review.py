from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.spots_repo import SpotsRepo
from app.moderation.errors import InvalidReviewDecisionError
from app.moderation.types import ReviewDecision, SpotReviewResult
from app.trust.service import TrustLedgerService
from app.verification.errors import SpotNotFoundError
from app.verification.transitions import transition_spot_status
from app.verification.types import VerificationStatus

logger = structlog.get_logger(__name__)


async def review_spot(
    session: AsyncSession,
    *,
    admin_user_id: int,
    spot_id: UUID,
    decision: str,
    reason: str | None,
    now_utc: datetime,
) -> SpotReviewResult:
    """Apply a moderator decision to a spot and settle its XP and the creator's trust."""
    try:
        review_decision = ReviewDecision(decision)
    except ValueError as exc:
        raise InvalidReviewDecisionError from exc
    new_status = VerificationStatus(review_decision.value)

    spot = await SpotsRepo.get_by_id_for_update(session, spot_id)
    if spot is None:
        raise SpotNotFoundError

    previous_status = spot.verification_status
    first_decision = spot.verified_at is None
    transition = await transition_spot_status(
        session,
        spot=spot,
        new_status=new_status,
        now_utc=now_utc,
        reason=reason,
    )

    trust = None
    if previous_status != new_status.value:
        if first_decision:
            spot.verified_at = now_utc
            trust = await TrustLedgerService.apply_verification_outcome(
                session,
                user_id=spot.creator_user_id,
                status=new_status.value,
                now_utc=now_utc,
            )
        else:
            trust = await TrustLedgerService.apply_review_outcome(
                session,
                user_id=spot.creator_user_id,
                status=new_status.value,
                now_utc=now_utc,
            )

    logger.info(
        "spot_reviewed",
        spot_id=str(spot_id),
        admin_user_id=admin_user_id,
        previous_status=previous_status,
        new_status=new_status.value,
    )
    return SpotReviewResult(
        spot_id=spot_id,
        previous_status=previous_status,
        new_status=new_status.value,
        xp_released=transition.xp_released,
        xp_denied=transition.xp_denied,
        trust_score=trust.trust_score if trust is not None else None,
        notifications=transition.notifications,
    )
