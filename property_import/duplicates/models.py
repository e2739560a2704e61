"""Data models for duplicate detection."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class ExistingProperty:
    """The slice of a stored property the duplicate checker compares against.

    Attributes:
        id: Property id
        title: Stored title
        location: Stored normalized location
        price: Stored price in rupees
        area: Built-up area in sq ft, if known
        source_contact_phone: Stored contact phone, if known
        created_at: Insert time, used to pick the oldest of several URL matches
    """

    id: str
    title: str
    location: str
    price: int
    area: Optional[float] = None
    source_contact_phone: Optional[str] = None
    created_at: Optional[datetime] = None

    def summary(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "location": self.location,
            "price": self.price,
            "area": self.area,
        }


@dataclass
class DuplicateMatch:
    """One stored property that the candidate may duplicate.

    Attributes:
        candidate_id: Id of the stored property
        confidence: Likelihood in [0, 1] that it is the same listing
        reason: Human-readable explanation
        matched_field: Which strategy matched (source_url, source_contact_phone, ...)
        existing_summary: {title, location, price, area} of the stored property
    """

    candidate_id: str
    confidence: float
    reason: str
    matched_field: str
    existing_summary: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DuplicateCheckResult:
    """Outcome of checking one candidate against stored properties.

    Attributes:
        is_duplicate: highest_confidence reached the duplicate threshold
        matches: Best match per stored property, highest confidence first
        highest_confidence: Confidence of the top match (0.0 when none)
    """

    is_duplicate: bool = False
    matches: List[DuplicateMatch] = field(default_factory=list)
    highest_confidence: float = 0.0

    @property
    def top_match(self) -> Optional[DuplicateMatch]:
        return self.matches[0] if self.matches else None

    @property
    def source_url_match(self) -> Optional[DuplicateMatch]:
        """The exact source-URL match, if that strategy fired."""
        top = self.top_match
        if top is not None and top.matched_field == "source_url":
            return top
        return None
