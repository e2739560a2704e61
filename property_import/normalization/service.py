"""Whole-record normalization.

normalize_property runs every field normalizer over a candidate record and
gathers their diagnostics. Whether the record gets persisted is the
caller's decision (see PropertyNormalization.is_persistable).
"""

import re
from typing import Mapping, Optional

from property_import.domain.models import ExtractedProperty

from .fields import (
    DEFAULT_CITY,
    normalize_email,
    normalize_listing_type,
    normalize_location,
    normalize_phone,
    normalize_price,
    normalize_property_type,
    validate_bounds,
)
from .models import FieldResult, PropertyNormalization


def _collapse(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    collapsed = re.sub(r"\s+", " ", text).strip()
    return collapsed or None


def normalize_property(
    candidate: ExtractedProperty,
    default_city: str = DEFAULT_CITY,
    aliases: Optional[Mapping[str, str]] = None,
) -> PropertyNormalization:
    """Normalize a candidate record.

    Price and location are always checked, so a missing required value is
    reported as an error. Optional fields are normalized when present and
    property/listing types fall back to their defaults with a warning.

    The input is not mutated; a normalized copy is returned. Running the
    function on its own output yields the same record.

    Args:
        candidate: Record produced by an extractor
        default_city: City appended to locations without one
        aliases: Extra locality aliases

    Returns:
        PropertyNormalization with the normalized copy and all diagnostics
    """
    warnings = []
    errors = []

    def collect(field_result: FieldResult):
        warnings.extend(field_result.warnings)
        errors.extend(field_result.errors)
        return field_result.data

    price = collect(normalize_price(candidate.price))
    location = collect(normalize_location(candidate.location, default_city, aliases))
    phone = collect(normalize_phone(candidate.contact_phone))
    email = collect(normalize_email(candidate.contact_email))
    property_type = collect(normalize_property_type(candidate.property_type))
    listing_type = collect(normalize_listing_type(candidate.listing_type))

    # Price errors are already reported; only bound-check a converted price
    collect(
        validate_bounds(
            price=price,
            bedrooms=candidate.bedrooms,
            bathrooms=candidate.bathrooms,
            area=candidate.area,
            land_size=candidate.land_size,
        )
    )

    title = _collapse(candidate.title)
    if title is None and location:
        title = f"Property in {location}"

    normalized = candidate.model_copy(
        deep=True,
        update={
            "title": title,
            "price": price,
            "location": location,
            "contact_phone": phone,
            "contact_email": email,
            "contact_name": _collapse(candidate.contact_name),
            "property_type": property_type,
            "listing_type": listing_type,
            "features": list(dict.fromkeys(f.strip() for f in candidate.features if f.strip())),
        },
    )

    return PropertyNormalization(property=normalized, warnings=warnings, errors=errors)
