from __future__ import annotations

import re

from app.verification.constants import (
    CONTENT_BASE_SCORE,
    CONTENT_BLOCKLIST,
    CONTENT_BLOCKLIST_PENALTY,
    CONTENT_DESCRIPTION_MAX_LENGTH,
    CONTENT_DESCRIPTION_MIN_LENGTH,
    CONTENT_INVALID_CATEGORY_PENALTY,
    CONTENT_LONG_DESCRIPTION_PENALTY,
    CONTENT_LONG_TITLE_PENALTY,
    CONTENT_SHORT_DESCRIPTION_PENALTY,
    CONTENT_SHORT_TITLE_PENALTY,
    CONTENT_SPAM_PATTERNS,
    CONTENT_SPAM_PENALTY,
    CONTENT_TITLE_MAX_LENGTH,
    CONTENT_TITLE_MIN_LENGTH,
    SPOT_CATEGORIES,
)
from app.verification.scoring import clamp_score
from app.verification.types import SignalResult

_SPAM_PATTERNS = tuple(re.compile(pattern, re.IGNORECASE) for pattern in CONTENT_SPAM_PATTERNS)


def has_spam_pattern(text: str) -> bool:
    return any(pattern.search(text) for pattern in _SPAM_PATTERNS)


def score_content(*, title: str | None, description: str | None, category: str | None) -> SignalResult:
    score = CONTENT_BASE_SCORE
    reasons: list[str] = []

    normalized_title = (title or "").strip()
    if len(normalized_title) < CONTENT_TITLE_MIN_LENGTH:
        score -= CONTENT_SHORT_TITLE_PENALTY
        reasons.append("title_too_short")
    elif len(normalized_title) > CONTENT_TITLE_MAX_LENGTH:
        score -= CONTENT_LONG_TITLE_PENALTY
        reasons.append("title_too_long")
    else:
        reasons.append("title_length_ok")

    if has_spam_pattern(normalized_title.lower()):
        score -= CONTENT_SPAM_PENALTY
        reasons.append("spam_detected_in_title")

    normalized_description = (description or "").strip()
    if len(normalized_description) < CONTENT_DESCRIPTION_MIN_LENGTH:
        score -= CONTENT_SHORT_DESCRIPTION_PENALTY
        reasons.append("description_too_short")
    elif len(normalized_description) > CONTENT_DESCRIPTION_MAX_LENGTH:
        score -= CONTENT_LONG_DESCRIPTION_PENALTY
        reasons.append("description_too_long")
    else:
        reasons.append("description_length_ok")

    full_text = f"{normalized_title} {normalized_description}".lower()
    if any(term in full_text for term in CONTENT_BLOCKLIST):
        score -= CONTENT_BLOCKLIST_PENALTY
        reasons.append("inappropriate_content")

    if category not in SPOT_CATEGORIES:
        score -= CONTENT_INVALID_CATEGORY_PENALTY
        reasons.append("invalid_category")

    return SignalResult(score=clamp_score(score), reasons=reasons)
