from __future__ import annotations

from collections.abc import Mapping

from app.verification.constants import (
    AUTO_APPROVE_THRESHOLD,
    DUPLICATE_CONTENT_FLAGS,
    SIGNAL_WEIGHTS,
)
from app.verification.types import SignalResult, VerificationResult, VerificationStatus


def clamp_score(value: float) -> int:
    return int(max(0, min(100, round_half_up(value))))


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def weighted_total(detailed_scores: Mapping[str, int]) -> int:
    weighted_sum = sum(
        int(detailed_scores.get(signal, 0)) * weight for signal, weight in SIGNAL_WEIGHTS.items()
    )
    return (weighted_sum + 50) // 100


def decide_status(*, score: int, flags: list[str]) -> VerificationStatus:
    if flags:
        return VerificationStatus.FLAGGED
    if score >= AUTO_APPROVE_THRESHOLD:
        return VerificationStatus.AUTO_APPROVED
    return VerificationStatus.PENDING


def combine_signals(signals: Mapping[str, SignalResult]) -> VerificationResult:
    """Fold per-signal results into the final outcome, keeping signal order."""
    detailed_scores = {signal: signals[signal].score for signal in SIGNAL_WEIGHTS if signal in signals}
    reasons: list[str] = []
    flags: list[str] = []
    for signal in SIGNAL_WEIGHTS:
        result = signals.get(signal)
        if result is None:
            continue
        reasons.extend(reason for reason in result.reasons if reason)
        for flag in result.flags:
            if flag not in flags:
                flags.append(flag)

    score = weighted_total(detailed_scores)
    if DUPLICATE_CONTENT_FLAGS.intersection(flags):
        score = 0

    return VerificationResult(
        status=decide_status(score=score, flags=flags),
        score=score,
        reasons=reasons,
        flags=flags,
        detailed_scores=detailed_scores,
    )
