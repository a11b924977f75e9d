from __future__ import annotations

from app.core.geo import haversine_distance_m
from app.verification.constants import (
    FLAG_DUPLICATE_IMAGE,
    PHOTO_BASE_SCORE,
    PHOTO_EXIF_LOCATION_DELTA,
    PHOTO_EXIF_LOCATION_RADIUS_M,
    PHOTO_MISSING_SCORE,
    PHOTO_RECENT_EXIF_BONUS,
    PHOTO_RECENT_EXIF_WINDOW,
    PHOTO_UNIQUE_HASH_BONUS,
)
from app.verification.scoring import clamp_score
from app.verification.types import SignalResult, SpotSnapshot


def score_photo(spot: SpotSnapshot, *, hash_collision: bool) -> SignalResult:
    if not spot.has_photo:
        return SignalResult(score=PHOTO_MISSING_SCORE, reasons=["no_photo_provided"])

    score = PHOTO_BASE_SCORE
    reasons = ["photo_provided"]

    if spot.photo_hash:
        if hash_collision:
            return SignalResult(
                score=0,
                reasons=[*reasons, "duplicate_image_detected"],
                flags=[FLAG_DUPLICATE_IMAGE],
            )
        score += PHOTO_UNIQUE_HASH_BONUS
        reasons.append("unique_image")

    if spot.exif_taken_at is not None:
        drift = abs(spot.exif_taken_at - spot.created_at)
        if drift < PHOTO_RECENT_EXIF_WINDOW:
            score += PHOTO_RECENT_EXIF_BONUS
            reasons.append("recent_photo")

    if spot.exif_latitude is not None and spot.exif_longitude is not None:
        exif_distance_m = haversine_distance_m(
            spot.exif_latitude,
            spot.exif_longitude,
            spot.latitude,
            spot.longitude,
        )
        if exif_distance_m < PHOTO_EXIF_LOCATION_RADIUS_M:
            score += PHOTO_EXIF_LOCATION_DELTA
            reasons.append("exif_location_match")
        else:
            score -= PHOTO_EXIF_LOCATION_DELTA
            reasons.append("exif_location_mismatch")

    return SignalResult(score=clamp_score(score), reasons=reasons)
