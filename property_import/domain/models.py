"""Core domain models for posts, properties and import jobs.

This module defines the data structures used throughout the pipeline:
- RawPost: one scraped Instagram post, the immutable pipeline input
- ExtractedProperty: candidate listing produced by an extractor
- PropertyRecord: a listing as persisted in the properties table
- ImportJob: bookkeeping for one batch, with its status state machine
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from property_import.utils.timestamps import ensure_utc, parse_iso_datetime


class PropertyType(str, Enum):
    """Canonical property categories."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    AGRICULTURAL = "agricultural"
    UNDEVELOPED = "undeveloped"


class ListingType(str, Enum):
    """Canonical listing categories."""

    SALE = "sale"
    RENT = "rent"
    DEVELOPMENT_PARTNERSHIP = "development_partnership"


class JobStatus(str, Enum):
    """Import job lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.COMPLETED_WITH_ERRORS)


class JobStateError(ValueError):
    """Raised on an illegal ImportJob status transition."""

    pass


def _coerce_utc(v: Any) -> Optional[datetime]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return ensure_utc(v)
    if isinstance(v, str):
        parsed = parse_iso_datetime(v)
        if parsed is None:
            raise ValueError(f"Invalid ISO 8601 timestamp: {v!r}")
        return parsed
    raise ValueError(f"Unsupported timestamp value: {v!r}")


class RawPost(BaseModel):
    """A scraped Instagram post.

    Accepts the camelCase wire keys (postUrl, accountHandle) as well as the
    short keys used by the scraper export (url, handle).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(..., description="Caption text")
    post_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("post_url", "postUrl", "url", "sourceUrl"),
        description="Permalink of the post",
    )
    account_handle: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("account_handle", "accountHandle", "handle"),
        description="Instagram handle of the poster",
    )
    timestamp: Optional[datetime] = Field(None, description="When the post was published (UTC)")
    images: List[str] = Field(default_factory=list, description="Image URLs attached to the post")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Post text cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("post_url", "account_handle")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Optional[datetime]:
        return _coerce_utc(v)

    @field_validator("images", mode="before")
    @classmethod
    def drop_empty_images(cls, v: Any) -> List[str]:
        if v is None:
            return []
        return [url.strip() for url in v if isinstance(url, str) and url.strip()]


class ExtractedProperty(BaseModel):
    """Candidate property record produced by an extractor.

    Every field is optional: extractors fill what they can and the
    normalizer decides whether the record is usable. `price` may still be a
    raw string such as "1.5 Cr" until normalization converts it.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    price: Optional[Union[int, float, str]] = None
    bedrooms: Optional[int] = Field(None, description="Bedroom count (BHK)")
    bathrooms: Optional[int] = None
    area: Optional[float] = Field(None, description="Built-up area in sq ft")
    land_size: Optional[float] = Field(None, description="Land size in sq ft")
    property_type: Optional[str] = None
    listing_type: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    amenities: Dict[str, bool] = Field(default_factory=dict)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    rental_duration: Optional[str] = None
    rental_terms: Optional[str] = None
    roi_potential: Optional[float] = None
    source_url: Optional[str] = None
    source_handle: Optional[str] = None
    images: List[str] = Field(default_factory=list)

    @field_validator("contact_phone", mode="before")
    @classmethod
    def phone_as_string(cls, v: Any) -> Optional[str]:
        # LLMs occasionally return phone numbers as JSON numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("features", mode="before")
    @classmethod
    def features_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("amenities", mode="before")
    @classmethod
    def amenities_map(cls, v: Any) -> Dict[str, bool]:
        if v is None:
            return {}
        if isinstance(v, list):
            return {str(item).strip().lower(): True for item in v if str(item).strip()}
        return v


class PropertyRecord(BaseModel):
    """A property row as stored in the properties table."""

    id: str
    title: str
    description: Optional[str] = None
    location: str
    price: int
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    land_size: Optional[float] = None
    property_type: PropertyType = PropertyType.RESIDENTIAL
    listing_type: ListingType = ListingType.SALE
    features: List[str] = Field(default_factory=list)
    amenities: Dict[str, bool] = Field(default_factory=dict)
    source_platform: Optional[str] = None
    source_url: Optional[str] = None
    source_instagram_handle: Optional[str] = None
    source_contact_name: Optional[str] = None
    source_contact_phone: Optional[str] = None
    source_contact_email: Optional[str] = None
    rental_duration: Optional[str] = None
    rental_terms: Optional[str] = None
    roi_potential: Optional[float] = None
    status: str = "available"
    import_job_id: Optional[str] = None
    duplicate_of: Optional[str] = None
    duplicate_confidence: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def parse_timestamps(cls, v: Any) -> Optional[datetime]:
        return _coerce_utc(v)

    model_config = {"use_enum_values": True}


_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.COMPLETED_WITH_ERRORS},
    JobStatus.COMPLETED: set(),
    JobStatus.COMPLETED_WITH_ERRORS: set(),
}


class ImportJob(BaseModel):
    """Bookkeeping for one import batch.

    Lifecycle: pending -> running -> completed | completed_with_errors.
    Counters are written once, when the job is finished.
    """

    id: str
    platform: str = "instagram"
    status: JobStatus = JobStatus.PENDING
    triggered_by: Optional[str] = None
    properties_found: int = Field(0, ge=0)
    properties_added: int = Field(0, ge=0)
    properties_updated: int = Field(0, ge=0)
    properties_skipped: int = Field(0, ge=0)
    properties_failed: int = Field(0, ge=0)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_messages: List[str] = Field(default_factory=list)

    @field_validator("started_at", "completed_at", mode="before")
    @classmethod
    def parse_timestamps(cls, v: Any) -> Optional[datetime]:
        return _coerce_utc(v)

    def transition_to(self, status: JobStatus) -> None:
        """Move to a new status, enforcing the lifecycle.

        Raises:
            JobStateError: If the transition is not allowed
        """
        current = JobStatus(self.status)
        target = JobStatus(status)
        if target not in _TRANSITIONS[current]:
            raise JobStateError(
                f"Cannot move import job {self.id} from {current.value} to {target.value}"
            )
        self.status = target

    def start(self, started_at: datetime) -> None:
        self.transition_to(JobStatus.RUNNING)
        self.started_at = ensure_utc(started_at)

    def finish(
        self,
        completed_at: datetime,
        added: int,
        updated: int,
        skipped: int,
        failed: int,
        error_messages: Optional[List[str]] = None,
    ) -> None:
        """Record final counters and move to the terminal status.

        The job ends completed_with_errors iff at least one record failed.
        """
        target = JobStatus.COMPLETED_WITH_ERRORS if failed else JobStatus.COMPLETED
        self.transition_to(target)
        self.properties_added = added
        self.properties_updated = updated
        self.properties_skipped = skipped
        self.properties_failed = failed
        self.error_messages = list(error_messages or [])
        self.completed_at = ensure_utc(completed_at)
