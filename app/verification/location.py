from __future__ import annotations

from collections.abc import Sequence

from app.core.geo import haversine_distance_m
from app.verification.constants import (
    FLAG_MOCK_LOCATION,
    FLAG_SUSPICIOUS_MOVEMENT,
    GPS_ACCURACY_EXCELLENT_M,
    GPS_ACCURACY_GOOD_M,
    GPS_ACCURACY_MISSING_M,
    GPS_ACCURACY_POOR_M,
    LOCATION_FIRST_SUBMISSION_SCORE,
    LOCATION_MAX_SPEED_MPS,
    LOCATION_MIN_SUBMISSION_GAP,
    LOCATION_MOCK_SCORE_CAP,
    LOCATION_MOVEMENT_OK_SCORE,
    LOCATION_TELEPORT_DISTANCE_M,
    LOCATION_TELEPORT_WINDOW,
)
from app.verification.scoring import clamp_score
from app.verification.types import SignalResult, SpotSnapshot, SubmissionPoint


def detect_suspicious_movement(
    spot: SpotSnapshot,
    recent: Sequence[SubmissionPoint],
) -> str | None:
    """Return the movement anomaly against the latest prior submission, if any."""
    if not recent:
        return None

    last_submission = max(recent, key=lambda point: point.created_at)
    elapsed_seconds = abs((spot.created_at - last_submission.created_at).total_seconds())
    if elapsed_seconds < LOCATION_MIN_SUBMISSION_GAP.total_seconds():
        return "too_fast_submission"

    distance_m = haversine_distance_m(
        last_submission.latitude,
        last_submission.longitude,
        spot.latitude,
        spot.longitude,
    )
    if (
        distance_m > LOCATION_TELEPORT_DISTANCE_M
        and elapsed_seconds < LOCATION_TELEPORT_WINDOW.total_seconds()
    ):
        return "teleportation_detected"

    if distance_m / elapsed_seconds > LOCATION_MAX_SPEED_MPS:
        return "unrealistic_speed"
    return None


def score_location(spot: SpotSnapshot, recent: Sequence[SubmissionPoint]) -> SignalResult:
    reasons: list[str] = []
    flags: list[str] = []

    suspicious = False
    if recent:
        anomaly = detect_suspicious_movement(spot, recent)
        if anomaly is not None:
            suspicious = True
            score = 0
            flags.append(FLAG_SUSPICIOUS_MOVEMENT)
            reasons.extend(("unrealistic_movement_detected", anomaly))
        else:
            score = LOCATION_MOVEMENT_OK_SCORE
            reasons.append("movement_pattern_ok")
    else:
        score = LOCATION_FIRST_SUBMISSION_SCORE
        reasons.append("first_submission")

    if not suspicious:
        accuracy_m = spot.gps_accuracy_m if spot.gps_accuracy_m is not None else GPS_ACCURACY_MISSING_M
        if accuracy_m <= GPS_ACCURACY_EXCELLENT_M:
            score += 20
            reasons.append("excellent_gps_accuracy")
        elif accuracy_m <= GPS_ACCURACY_GOOD_M:
            score += 10
            reasons.append("good_gps_accuracy")
        elif accuracy_m > GPS_ACCURACY_POOR_M:
            score -= 20
            reasons.append("poor_gps_accuracy")

    if spot.is_mock_location:
        flags.append(FLAG_MOCK_LOCATION)
        reasons.append("mock_location_detected")
        score = min(score, LOCATION_MOCK_SCORE_CAP)

    return SignalResult(score=clamp_score(score), reasons=reasons, flags=flags)
