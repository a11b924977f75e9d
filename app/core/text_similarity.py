from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(left: str, right: str) -> int:
    return int(Levenshtein.distance(left, right))


def text_similarity(left: str, right: str) -> float:
    """Normalized Levenshtein similarity in [0, 1]; 1 means identical."""
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    return float(Levenshtein.normalized_similarity(left, right))
