from __future__ import annotations

from collections.abc import Sequence

from app.core.geo import haversine_distance_m
from app.core.text_similarity import text_similarity
from app.verification.constants import (
    DUPLICATE_BASE_SCORE,
    DUPLICATE_CLOSE_RADIUS_M,
    DUPLICATE_NEARBY_PENALTY,
    DUPLICATE_NEARBY_RADIUS_M,
    DUPLICATE_TITLE_SIMILARITY_THRESHOLD,
    DUPLICATE_VERY_CLOSE_PENALTY,
    DUPLICATE_VERY_CLOSE_RADIUS_M,
    FLAG_POTENTIAL_DUPLICATE,
)
from app.verification.scoring import clamp_score
from app.verification.types import NearbySpot, SignalResult, SpotSnapshot


def score_duplicates(spot: SpotSnapshot, nearby: Sequence[NearbySpot]) -> SignalResult:
    score = DUPLICATE_BASE_SCORE
    reasons: list[str] = []
    flags: list[str] = []
    close_spots = 0
    title = spot.title.lower()

    for candidate in nearby:
        if candidate.id == spot.id:
            continue

        distance_m = haversine_distance_m(
            candidate.latitude,
            candidate.longitude,
            spot.latitude,
            spot.longitude,
        )
        if distance_m < DUPLICATE_CLOSE_RADIUS_M:
            close_spots += 1
            similarity = text_similarity(title, candidate.title.lower())
            if similarity > DUPLICATE_TITLE_SIMILARITY_THRESHOLD:
                flags.append(FLAG_POTENTIAL_DUPLICATE)
                reasons.append("duplicate_spot_detected")
                score = 0
                break
            if distance_m < DUPLICATE_VERY_CLOSE_RADIUS_M:
                score -= DUPLICATE_VERY_CLOSE_PENALTY
                reasons.append("very_close_spot_exists")
        elif distance_m < DUPLICATE_NEARBY_RADIUS_M:
            score -= DUPLICATE_NEARBY_PENALTY
            reasons.append("nearby_spot_exists")

    if close_spots == 0:
        reasons.append("no_nearby_duplicates")

    return SignalResult(score=clamp_score(score), reasons=reasons, flags=flags)
