"""Data models for the extraction layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from property_import.domain.models import ExtractedProperty


class ExtractionMethod(str, Enum):
    """Which extractor produced a result."""

    REGEX = "regex"
    LLM = "llm"
    CACHE = "cache"


@dataclass
class ExtractionResult:
    """Outcome of extracting one post.

    Attributes:
        extracted: Candidate record, or None when nothing usable was found
        confidence: Heuristic score in [0, 1]
        warnings: Non-blocking observations
        errors: Blocking problems; a result with errors is skipped
        raw_response: Raw model output (LLM path only), kept for debugging
        method: Which extractor produced this result
    """

    extracted: Optional[ExtractedProperty] = None
    confidence: float = 0.0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    raw_response: Optional[str] = None
    method: ExtractionMethod = ExtractionMethod.REGEX

    @property
    def succeeded(self) -> bool:
        """Whether a record was extracted without blocking errors."""
        return self.extracted is not None and not self.errors


def score_confidence(candidate: ExtractedProperty) -> float:
    """Heuristic confidence from which key fields are present.

    0.5 base, +0.2 price, +0.1 location, +0.05 bedrooms, +0.05 area,
    +0.1 phone, capped at 1.0.
    """
    confidence = 0.5
    if candidate.price:
        confidence += 0.2
    if candidate.location:
        confidence += 0.1
    if candidate.bedrooms:
        confidence += 0.05
    if candidate.area:
        confidence += 0.05
    if candidate.contact_phone:
        confidence += 0.1
    return round(min(confidence, 1.0), 4)
