from __future__ import annotations

from datetime import timedelta

AUTO_APPROVE_THRESHOLD = 80
MANUAL_REVIEW_THRESHOLD = 50

WEIGHT_LOCATION_ACCURACY = 30
WEIGHT_PHOTO_VERIFICATION = 20
WEIGHT_DUPLICATE_DETECTION = 20
WEIGHT_USER_TRUST = 20
WEIGHT_CONTENT_QUALITY = 10

SIGNAL_LOCATION_ACCURACY = "location_accuracy"
SIGNAL_PHOTO_VERIFICATION = "photo_verification"
SIGNAL_DUPLICATE_DETECTION = "duplicate_detection"
SIGNAL_USER_TRUST = "user_trust"
SIGNAL_CONTENT_QUALITY = "content_quality"

SIGNAL_WEIGHTS: dict[str, int] = {
    SIGNAL_LOCATION_ACCURACY: WEIGHT_LOCATION_ACCURACY,
    SIGNAL_PHOTO_VERIFICATION: WEIGHT_PHOTO_VERIFICATION,
    SIGNAL_DUPLICATE_DETECTION: WEIGHT_DUPLICATE_DETECTION,
    SIGNAL_USER_TRUST: WEIGHT_USER_TRUST,
    SIGNAL_CONTENT_QUALITY: WEIGHT_CONTENT_QUALITY,
}

# Scores used when a signal's reads fail.
NEUTRAL_SIGNAL_SCORES: dict[str, int] = {
    SIGNAL_LOCATION_ACCURACY: 50,
    SIGNAL_PHOTO_VERIFICATION: 40,
    SIGNAL_DUPLICATE_DETECTION: 60,
    SIGNAL_USER_TRUST: 40,
}
SIGNAL_ERROR_REASONS: dict[str, str] = {
    SIGNAL_LOCATION_ACCURACY: "location_check_error",
    SIGNAL_PHOTO_VERIFICATION: "photo_check_error",
    SIGNAL_DUPLICATE_DETECTION: "duplicate_check_error",
    SIGNAL_USER_TRUST: "trust_check_error",
}

LOCATION_HISTORY_WINDOW = timedelta(hours=24)
LOCATION_HISTORY_LIMIT = 5
LOCATION_FIRST_SUBMISSION_SCORE = 60
LOCATION_MOVEMENT_OK_SCORE = 80
LOCATION_MOCK_SCORE_CAP = 10
LOCATION_MIN_SUBMISSION_GAP = timedelta(seconds=60)
LOCATION_TELEPORT_DISTANCE_M = 10_000.0
LOCATION_TELEPORT_WINDOW = timedelta(minutes=5)
LOCATION_MAX_SPEED_MPS = 50.0
GPS_ACCURACY_EXCELLENT_M = 20.0
GPS_ACCURACY_GOOD_M = 50.0
GPS_ACCURACY_POOR_M = 100.0
GPS_ACCURACY_MISSING_M = 999.0

PHOTO_MISSING_SCORE = 20
PHOTO_BASE_SCORE = 60
PHOTO_UNIQUE_HASH_BONUS = 20
PHOTO_RECENT_EXIF_WINDOW = timedelta(hours=1)
PHOTO_RECENT_EXIF_BONUS = 10
PHOTO_EXIF_LOCATION_RADIUS_M = 100.0
PHOTO_EXIF_LOCATION_DELTA = 10

DUPLICATE_BASE_SCORE = 80
DUPLICATE_SEARCH_DELTA_DEGREES = 0.001
DUPLICATE_CLOSE_RADIUS_M = 50.0
DUPLICATE_VERY_CLOSE_RADIUS_M = 25.0
DUPLICATE_NEARBY_RADIUS_M = 100.0
DUPLICATE_TITLE_SIMILARITY_THRESHOLD = 0.8
DUPLICATE_VERY_CLOSE_PENALTY = 30
DUPLICATE_NEARBY_PENALTY = 10

TRUST_UNKNOWN_USER_SCORE = 30
TRUST_ACCOUNT_GRACE_PERIOD = timedelta(days=7)
TRUST_ESTABLISHED_ACCOUNT_BONUS = 10
TRUST_HIGH_APPROVAL_RATE = 0.8
TRUST_HIGH_APPROVAL_BONUS = 15
TRUST_LOW_APPROVAL_RATE = 0.3
TRUST_LOW_APPROVAL_PENALTY = 20
TRUST_DAILY_SUBMISSION_CAP = 3
TRUST_RATE_LIMITED_SCORE_CAP = 20

CONTENT_BASE_SCORE = 70
CONTENT_TITLE_MIN_LENGTH = 5
CONTENT_TITLE_MAX_LENGTH = 100
CONTENT_DESCRIPTION_MIN_LENGTH = 10
CONTENT_DESCRIPTION_MAX_LENGTH = 500
CONTENT_SHORT_TITLE_PENALTY = 30
CONTENT_LONG_TITLE_PENALTY = 10
CONTENT_SPAM_PENALTY = 20
CONTENT_SHORT_DESCRIPTION_PENALTY = 15
CONTENT_LONG_DESCRIPTION_PENALTY = 5
CONTENT_BLOCKLIST_PENALTY = 15
CONTENT_INVALID_CATEGORY_PENALTY = 10
CONTENT_SPAM_PATTERNS: tuple[str, ...] = (
    r"(.)\1{5,}",
    r"[0-9]{10,}",
    r"www\.|http|\.com",
    r"buy|sale|cheap|free|win|prize",
)
CONTENT_BLOCKLIST: tuple[str, ...] = ("spam", "test", "fake")
SPOT_CATEGORIES: frozenset[str] = frozenset(
    {"CAFE", "VIEWPOINT", "ART", "PARK", "HISTORICAL", "HIDDEN_GEM"}
)

FLAG_SUSPICIOUS_MOVEMENT = "suspicious_movement"
FLAG_MOCK_LOCATION = "mock_location_detected"
FLAG_DUPLICATE_IMAGE = "duplicate_image"
FLAG_POTENTIAL_DUPLICATE = "potential_duplicate"
FLAG_SHADOW_BANNED_USER = "shadow_banned_user"
FLAG_SHADOW_BAN_CANDIDATE = "shadow_ban_candidate"
FLAG_RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"

# Flags that mark the submission as a copy of existing content.
DUPLICATE_CONTENT_FLAGS: frozenset[str] = frozenset({FLAG_DUPLICATE_IMAGE, FLAG_POTENTIAL_DUPLICATE})

REASON_ERROR_DURING_VERIFICATION = "error_during_verification"
