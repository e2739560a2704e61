"""Normalization of extracted property fields."""

from .fields import (
    DEFAULT_CITY,
    LOCATION_ALIASES,
    normalize_email,
    normalize_listing_type,
    normalize_location,
    normalize_phone,
    normalize_price,
    normalize_property_type,
    validate_bounds,
)
from .models import FieldResult, PropertyNormalization
from .service import normalize_property

__all__ = [
    "DEFAULT_CITY",
    "LOCATION_ALIASES",
    "FieldResult",
    "PropertyNormalization",
    "normalize_price",
    "normalize_phone",
    "normalize_email",
    "normalize_location",
    "normalize_property_type",
    "normalize_listing_type",
    "validate_bounds",
    "normalize_property",
]
