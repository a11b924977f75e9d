from __future__ import annotations

import pytest

from app.verification.constants import (
    FLAG_DUPLICATE_IMAGE,
    FLAG_MOCK_LOCATION,
    SIGNAL_CONTENT_QUALITY,
    SIGNAL_DUPLICATE_DETECTION,
    SIGNAL_LOCATION_ACCURACY,
    SIGNAL_PHOTO_VERIFICATION,
    SIGNAL_USER_TRUST,
)
from app.verification.scoring import (
    clamp_score,
    combine_signals,
    decide_status,
    round_half_up,
    weighted_total,
)
from app.verification.types import SignalResult, VerificationStatus


def signals(
    *,
    location: int = 80,
    photo: int = 80,
    duplicates: int = 80,
    trust: int = 100,
    content: int = 70,
) -> dict[str, SignalResult]:
    return {
        SIGNAL_LOCATION_ACCURACY: SignalResult(score=location, reasons=["movement_pattern_ok"]),
        SIGNAL_PHOTO_VERIFICATION: SignalResult(score=photo, reasons=["photo_provided"]),
        SIGNAL_DUPLICATE_DETECTION: SignalResult(score=duplicates, reasons=["no_nearby_duplicates"]),
        SIGNAL_USER_TRUST: SignalResult(score=trust, reasons=["established_account"]),
        SIGNAL_CONTENT_QUALITY: SignalResult(score=content, reasons=["title_length_ok"]),
    }


def test_reference_submission_is_auto_approved() -> None:
    result = combine_signals(signals())

    assert result.score == 83
    assert result.status == VerificationStatus.AUTO_APPROVED
    assert result.flags == []
    assert result.detailed_scores == {
        SIGNAL_LOCATION_ACCURACY: 80,
        SIGNAL_PHOTO_VERIFICATION: 80,
        SIGNAL_DUPLICATE_DETECTION: 80,
        SIGNAL_USER_TRUST: 100,
        SIGNAL_CONTENT_QUALITY: 70,
    }
    assert result.reasons == [
        "movement_pattern_ok",
        "photo_provided",
        "no_nearby_duplicates",
        "established_account",
        "title_length_ok",
    ]


def test_score_below_threshold_stays_pending() -> None:
    result = combine_signals(signals(location=79, photo=79, duplicates=79, trust=79, content=79))

    assert result.score == 79
    assert result.status == VerificationStatus.PENDING


def test_duplicate_image_forces_zero_score() -> None:
    inputs = signals()
    inputs[SIGNAL_PHOTO_VERIFICATION] = SignalResult(
        score=0,
        reasons=["photo_provided", "duplicate_image_detected"],
        flags=[FLAG_DUPLICATE_IMAGE],
    )

    result = combine_signals(inputs)

    assert result.score == 0
    assert result.status == VerificationStatus.FLAGGED
    assert result.flags == [FLAG_DUPLICATE_IMAGE]


def test_other_flags_keep_weighted_score() -> None:
    inputs = signals()
    inputs[SIGNAL_LOCATION_ACCURACY] = SignalResult(
        score=10,
        reasons=["mock_location_detected"],
        flags=[FLAG_MOCK_LOCATION],
    )

    result = combine_signals(inputs)

    assert result.score == 62
    assert result.status == VerificationStatus.FLAGGED


def test_flags_are_deduplicated_in_signal_order() -> None:
    inputs = signals()
    inputs[SIGNAL_LOCATION_ACCURACY] = SignalResult(score=0, flags=["b", "a"])
    inputs[SIGNAL_USER_TRUST] = SignalResult(score=0, flags=["a", "c"])

    assert combine_signals(inputs).flags == ["b", "a", "c"]


def test_missing_signals_contribute_nothing() -> None:
    result = combine_signals({SIGNAL_LOCATION_ACCURACY: SignalResult(score=100)})

    assert result.score == 30
    assert result.detailed_scores == {SIGNAL_LOCATION_ACCURACY: 100}


@pytest.mark.parametrize(
    ("location", "expected"),
    [(81, 24), (85, 26), (100, 30)],
)
def test_weighted_total_rounds_half_up(location: int, expected: int) -> None:
    assert weighted_total({SIGNAL_LOCATION_ACCURACY: location}) == expected


def test_decide_status_boundaries() -> None:
    assert decide_status(score=80, flags=[]) == VerificationStatus.AUTO_APPROVED
    assert decide_status(score=79, flags=[]) == VerificationStatus.PENDING
    assert decide_status(score=100, flags=["rate_limit_exceeded"]) == VerificationStatus.FLAGGED


def test_clamp_and_round_helpers() -> None:
    assert clamp_score(-5) == 0
    assert clamp_score(130) == 100
    assert clamp_score(49.5) == 50
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -3
