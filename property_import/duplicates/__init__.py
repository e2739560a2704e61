"""Duplicate detection for imported properties."""

from .checker import DuplicateChecker, PropertyLookup
from .models import DuplicateCheckResult, DuplicateMatch, ExistingProperty
from .similarity import area_similarity, location_similarity, similarity

__all__ = [
    "DuplicateChecker",
    "PropertyLookup",
    "DuplicateCheckResult",
    "DuplicateMatch",
    "ExistingProperty",
    "similarity",
    "location_similarity",
    "area_similarity",
]
