"""String and numeric similarity scores, as percentages in [0, 100]."""

from typing import Optional

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str) -> float:
    """Edit-distance similarity: (1 - levenshtein(a, b) / max_len) * 100.

    Two empty strings are identical (100).
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100.0
    return (1 - Levenshtein.distance(a, b) / max_len) * 100


def location_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Case-insensitive similarity of two locations; 0 if either is missing."""
    if not a or not b:
        return 0.0
    return similarity(a.strip().lower(), b.strip().lower())


def area_similarity(candidate_area: Optional[float], existing_area: Optional[float]) -> float:
    """(1 - |a - b| / a) * 100 relative to the candidate's area.

    Returns 0 when either area is missing or non-positive. Can be negative
    when the areas differ by more than the candidate's area.
    """
    if not candidate_area or not existing_area or candidate_area <= 0:
        return 0.0
    return (1 - abs(existing_area - candidate_area) / candidate_area) * 100
