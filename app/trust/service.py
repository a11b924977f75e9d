from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User
from app.db.repo.users_repo import UsersRepo
from app.trust.rules import apply_outcome
from app.trust.types import TrustOutcome, TrustSnapshot, TrustUpdateResult

logger = structlog.get_logger(__name__)

_OUTCOME_BY_STATUS: dict[str, TrustOutcome] = {
    "AUTO_APPROVED": TrustOutcome.APPROVED,
    "APPROVED": TrustOutcome.APPROVED,
    "REJECTED": TrustOutcome.REJECTED,
}


class TrustLedgerService:
    @staticmethod
    def outcome_for_status(status: str) -> TrustOutcome:
        return _OUTCOME_BY_STATUS.get(str(status), TrustOutcome.UNDECIDED)

    @staticmethod
    def _snapshot_from_model(user: User) -> TrustSnapshot:
        return TrustSnapshot(
            trust_score=float(user.trust_score),
            spot_submissions=user.spot_submissions,
            spot_approved_count=user.spot_approved_count,
            spot_rejected_count=user.spot_rejected_count,
            is_shadow_banned=user.is_shadow_banned,
        )

    @staticmethod
    async def _apply(
        session: AsyncSession,
        *,
        user_id: int,
        outcome: TrustOutcome,
        count_submission: bool,
        now_utc: datetime,
    ) -> TrustUpdateResult | None:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            logger.warning("trust_update_user_missing", user_id=user_id, outcome=outcome.value)
            return None

        before = TrustLedgerService._snapshot_from_model(user)
        after = apply_outcome(before, outcome=outcome, count_submission=count_submission)

        user.trust_score = after.trust_score
        user.spot_submissions = after.spot_submissions
        user.spot_approved_count = after.spot_approved_count
        user.spot_rejected_count = after.spot_rejected_count
        user.is_shadow_banned = after.is_shadow_banned
        user.last_active_at = now_utc
        user.updated_at = now_utc

        shadow_banned_now = after.is_shadow_banned and not before.is_shadow_banned
        if shadow_banned_now:
            logger.warning(
                "user_shadow_banned",
                user_id=user_id,
                spot_submissions=after.spot_submissions,
                spot_rejected_count=after.spot_rejected_count,
            )

        return TrustUpdateResult(
            user_id=user_id,
            previous_trust_score=before.trust_score,
            trust_score=after.trust_score,
            spot_submissions=after.spot_submissions,
            spot_approved_count=after.spot_approved_count,
            spot_rejected_count=after.spot_rejected_count,
            is_shadow_banned=after.is_shadow_banned,
            shadow_banned_now=shadow_banned_now,
        )

    @staticmethod
    async def apply_verification_outcome(
        session: AsyncSession,
        *,
        user_id: int,
        status: str,
        now_utc: datetime,
    ) -> TrustUpdateResult | None:
        """Count a first verification decision for the submitter."""
        return await TrustLedgerService._apply(
            session,
            user_id=user_id,
            outcome=TrustLedgerService.outcome_for_status(status),
            count_submission=True,
            now_utc=now_utc,
        )

    @staticmethod
    async def apply_review_outcome(
        session: AsyncSession,
        *,
        user_id: int,
        status: str,
        now_utc: datetime,
    ) -> TrustUpdateResult | None:
        """Apply a moderator decision on a spot whose submission is already counted."""
        outcome = TrustLedgerService.outcome_for_status(status)
        if outcome == TrustOutcome.UNDECIDED:
            return None
        return await TrustLedgerService._apply(
            session,
            user_id=user_id,
            outcome=outcome,
            count_submission=False,
            now_utc=now_utc,
        )
