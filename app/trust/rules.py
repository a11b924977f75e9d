from __future__ import annotations

from dataclasses import replace

from app.trust.constants import (
    SHADOW_BAN_MIN_SUBMISSIONS,
    SHADOW_BAN_REJECTION_RATE,
    TRUST_APPROVAL_DELTA,
    TRUST_REJECTION_DELTA,
    TRUST_SCORE_MAX,
    TRUST_SCORE_MIN,
)
from app.trust.types import TrustOutcome, TrustSnapshot


def clamp_trust(value: float) -> float:
    return max(TRUST_SCORE_MIN, min(TRUST_SCORE_MAX, round(value, 4)))


def approval_rate(*, approved: int, submissions: int) -> float | None:
    if submissions <= 0:
        return None
    return approved / submissions


def rejection_rate(*, rejected: int, submissions: int) -> float | None:
    if submissions <= 0:
        return None
    return rejected / submissions


def is_shadow_ban_candidate(*, submissions: int, rejected: int) -> bool:
    if submissions < SHADOW_BAN_MIN_SUBMISSIONS:
        return False
    rate = rejection_rate(rejected=rejected, submissions=submissions)
    return rate is not None and rate >= SHADOW_BAN_REJECTION_RATE


def apply_outcome(
    snapshot: TrustSnapshot,
    *,
    outcome: TrustOutcome,
    count_submission: bool,
) -> TrustSnapshot:
    """Apply one decision to the trust counters. Shadow ban never clears."""
    updated = snapshot
    if count_submission:
        updated = replace(updated, spot_submissions=updated.spot_submissions + 1)

    if outcome == TrustOutcome.APPROVED:
        updated = replace(
            updated,
            spot_approved_count=updated.spot_approved_count + 1,
            trust_score=clamp_trust(updated.trust_score + TRUST_APPROVAL_DELTA),
        )
    elif outcome == TrustOutcome.REJECTED:
        updated = replace(
            updated,
            spot_rejected_count=updated.spot_rejected_count + 1,
            trust_score=clamp_trust(updated.trust_score - TRUST_REJECTION_DELTA),
        )

    if not updated.is_shadow_banned and is_shadow_ban_candidate(
        submissions=updated.spot_submissions,
        rejected=updated.spot_rejected_count,
    ):
        updated = replace(updated, is_shadow_banned=True)
    return updated
