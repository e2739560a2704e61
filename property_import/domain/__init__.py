"""Domain models for the property importer."""

from .models import (
    ExtractedProperty,
    ImportJob,
    JobStateError,
    JobStatus,
    ListingType,
    PropertyRecord,
    PropertyType,
    RawPost,
)

__all__ = [
    "RawPost",
    "ExtractedProperty",
    "PropertyRecord",
    "ImportJob",
    "JobStatus",
    "JobStateError",
    "PropertyType",
    "ListingType",
]
