from __future__ import annotations

from datetime import datetime

from app.trust.rules import approval_rate, is_shadow_ban_candidate
from app.verification.constants import (
    FLAG_RATE_LIMIT_EXCEEDED,
    FLAG_SHADOW_BAN_CANDIDATE,
    FLAG_SHADOW_BANNED_USER,
    TRUST_ACCOUNT_GRACE_PERIOD,
    TRUST_DAILY_SUBMISSION_CAP,
    TRUST_ESTABLISHED_ACCOUNT_BONUS,
    TRUST_HIGH_APPROVAL_BONUS,
    TRUST_HIGH_APPROVAL_RATE,
    TRUST_LOW_APPROVAL_PENALTY,
    TRUST_LOW_APPROVAL_RATE,
    TRUST_RATE_LIMITED_SCORE_CAP,
    TRUST_UNKNOWN_USER_SCORE,
)
from app.verification.scoring import clamp_score, round_half_up
from app.verification.types import SignalResult, TrustProfile


def score_user_trust(
    profile: TrustProfile | None,
    *,
    submissions_today: int,
    now_utc: datetime,
) -> SignalResult:
    if profile is None:
        return SignalResult(score=TRUST_UNKNOWN_USER_SCORE, reasons=["new_user_account"])

    if profile.is_shadow_banned:
        return SignalResult(
            score=0,
            reasons=["shadow_banned_user"],
            flags=[FLAG_SHADOW_BANNED_USER],
        )

    score = round_half_up(profile.trust_score * 100)
    reasons: list[str] = []
    flags: list[str] = []

    if now_utc - profile.created_at > TRUST_ACCOUNT_GRACE_PERIOD:
        score += TRUST_ESTABLISHED_ACCOUNT_BONUS
        reasons.append("established_account")

    rate = approval_rate(
        approved=profile.spot_approved_count,
        submissions=profile.spot_submissions,
    )
    if rate is not None:
        if rate > TRUST_HIGH_APPROVAL_RATE:
            score += TRUST_HIGH_APPROVAL_BONUS
            reasons.append("high_approval_rate")
        elif rate < TRUST_LOW_APPROVAL_RATE:
            score -= TRUST_LOW_APPROVAL_PENALTY
            reasons.append("low_approval_rate")
            if is_shadow_ban_candidate(
                submissions=profile.spot_submissions,
                rejected=profile.spot_rejected_count,
            ):
                flags.append(FLAG_SHADOW_BAN_CANDIDATE)

    if submissions_today >= TRUST_DAILY_SUBMISSION_CAP:
        flags.append(FLAG_RATE_LIMIT_EXCEEDED)
        reasons.append("too_many_submissions_today")
        score = min(score, TRUST_RATE_LIMITED_SCORE_CAP)

    return SignalResult(score=clamp_score(score), reasons=reasons, flags=flags)
