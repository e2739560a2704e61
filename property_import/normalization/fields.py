"""Field-level normalizers.

Each function takes one raw field value and returns a FieldResult. None of
them raise: unusable input is reported through the result's warnings and
errors.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Mapping, Optional, Union

from email_validator import EmailNotValidError, validate_email

from property_import.domain.models import ListingType, PropertyType

from .models import FieldResult

DEFAULT_CITY = "Hyderabad"

# Keys are lowercase with whitespace removed; matched as substrings
LOCATION_ALIASES: Dict[str, str] = {
    "gachi": "Gachibowli",
    "gachibowli": "Gachibowli",
    "hitech": "Hi-Tech City",
    "hitechcity": "Hi-Tech City",
    "hi-techcity": "Hi-Tech City",
    "kondapur": "Kondapur",
    "madhapur": "Madhapur",
    "banjara": "Banjara Hills",
    "banjarahills": "Banjara Hills",
    "jubilee": "Jubilee Hills",
    "jubileehills": "Jubilee Hills",
    "financial": "Financial District",
    "financialdistrict": "Financial District",
    "nanakramguda": "Nanakramguda",
    "kukatpally": "Kukatpally",
    "miyapur": "Miyapur",
    "begumpet": "Begumpet",
    "secunderabad": "Secunderabad",
    "hitec": "Hi-Tech City",
    "kokapet": "Kokapet",
    "tellapur": "Tellapur",
    "pocharam": "Pocharam",
    "ghatkesar": "Ghatkesar",
    "uppal": "Uppal",
    "lbnagar": "LB Nagar",
    "nizampet": "Nizampet",
    "shamshabad": "Shamshabad",
    "manikonda": "Manikonda",
    "narsingi": "Narsingi",
}

_PRICE_UNITS = {
    "crores": Decimal("10000000"),
    "crore": Decimal("10000000"),
    "cr": Decimal("10000000"),
    "lakhs": Decimal("100000"),
    "lakh": Decimal("100000"),
    "lacs": Decimal("100000"),
    "lac": Decimal("100000"),
    "l": Decimal("100000"),
    "thousand": Decimal("1000"),
    "k": Decimal("1000"),
}

_PRICE_PREFIX_RE = re.compile(r"^(?:rs\.?|inr)")
_PRICE_RE = re.compile(
    r"^(-)?(\d+(?:\.\d+)?)(crores|crore|cr|lakhs|lakh|lacs|lac|l|thousand|k)?(?![a-z\d.])"
)

# Exact synonyms first, then substring keywords by category precedence
_PROPERTY_TYPE_SYNONYMS = {
    "apartment": PropertyType.RESIDENTIAL,
    "flat": PropertyType.RESIDENTIAL,
    "house": PropertyType.RESIDENTIAL,
    "villa": PropertyType.RESIDENTIAL,
    "bhk": PropertyType.RESIDENTIAL,
    "residential": PropertyType.RESIDENTIAL,
    "office": PropertyType.COMMERCIAL,
    "shop": PropertyType.COMMERCIAL,
    "showroom": PropertyType.COMMERCIAL,
    "warehouse": PropertyType.COMMERCIAL,
    "commercial": PropertyType.COMMERCIAL,
    "farm": PropertyType.AGRICULTURAL,
    "farmland": PropertyType.AGRICULTURAL,
    "agricultural": PropertyType.AGRICULTURAL,
    "plot": PropertyType.UNDEVELOPED,
    "land": PropertyType.UNDEVELOPED,
    "undeveloped": PropertyType.UNDEVELOPED,
}

_PROPERTY_TYPE_KEYWORDS = (
    (PropertyType.AGRICULTURAL, ("agricultur", "farm", "orchard")),
    (PropertyType.COMMERCIAL, ("commercial", "office", "shop", "showroom", "warehouse", "retail")),
    (PropertyType.UNDEVELOPED, ("undeveloped", "plot", "land", "open site")),
    (
        PropertyType.RESIDENTIAL,
        ("residential", "apartment", "flat", "house", "villa", "bhk", "duplex", "penthouse"),
    ),
)

_LISTING_TYPE_KEYWORDS = (
    (
        ListingType.DEVELOPMENT_PARTNERSHIP,
        ("development", "joint venture", "jv", "partnership"),
    ),
    (ListingType.RENT, ("rent", "lease", "to-let", "to let", "tolet")),
    (ListingType.SALE, ("sale", "sell", "buy", "purchase")),
)


def _to_integer(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_price(value: Union[int, float, Decimal, str, None]) -> FieldResult:
    """Convert a price to integer rupees.

    Accepts numbers or strings with currency symbols and Indian units:
    "1.5 Cr" -> 15000000, "75L" -> 7500000, "₹10,000,000" -> 10000000.

    Args:
        value: Raw price as extracted

    Returns:
        FieldResult with integer rupees in data, or an error
    """
    result = FieldResult()

    if value is None or (isinstance(value, str) and not value.strip()):
        result.errors.append("Price is required")
        return result

    if isinstance(value, bool):
        result.errors.append("Invalid price format")
        return result

    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            result.errors.append("Invalid price format")
            return result
        if not amount.is_finite():
            result.errors.append("Invalid price format")
            return result
    else:
        cleaned = re.sub(r"[₹$,\s]", "", str(value)).lower()
        cleaned = _PRICE_PREFIX_RE.sub("", cleaned)
        match = _PRICE_RE.match(cleaned)
        if not match:
            result.errors.append("Invalid price format")
            return result

        sign, number, unit = match.groups()
        amount = Decimal(number) * _PRICE_UNITS.get(unit, Decimal("1"))
        if sign:
            amount = -amount

    rupees = _to_integer(amount)
    if rupees <= 0:
        result.errors.append("Price must be positive")
        return result

    result.data = rupees
    return result


def normalize_phone(value: Optional[str]) -> FieldResult:
    """Normalize a phone number towards E.164.

    Keeps digits and '+', drops a single leading trunk '0' and prefixes
    bare 10-digit numbers with +91.
    """
    result = FieldResult()
    if value is None or not str(value).strip():
        return result

    cleaned = re.sub(r"[^\d+]", "", str(value))
    if not cleaned.strip("+"):
        result.warnings.append(f"Phone number has no digits: {value}")
        return result

    if cleaned.startswith("0"):
        cleaned = cleaned[1:]

    if not cleaned.startswith("+") and len(cleaned) == 10:
        cleaned = "+91" + cleaned

    if len(cleaned) < 10 or len(cleaned) > 15:
        result.warnings.append(f"Phone number length unusual: {len(cleaned)} digits")

    result.data = cleaned
    return result


def normalize_email(value: Optional[str]) -> FieldResult:
    """Validate and normalize a contact email address.

    Deliverability (DNS) is not checked. An invalid address is dropped with
    a warning rather than blocking the record.
    The whole address is lowercased.
    """
    result = FieldResult()
    if value is None or not value.strip():
        return result

    try:
        validated = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        result.warnings.append(f"Invalid contact email '{value.strip()}': {e}")
        return result

    result.data = validated.normalized.lower()
    return result


def _title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def normalize_location(
    value: Optional[str],
    default_city: str = DEFAULT_CITY,
    aliases: Optional[Mapping[str, str]] = None,
) -> FieldResult:
    """Normalize a location to "Area, City".

    The area (text before the first comma) is matched against the locality
    alias table on its lowercase, space-free form; alias targets are used
    verbatim. Anything else is title-cased. A city given after the comma is
    kept; otherwise default_city is appended unless already present.

    Args:
        value: Raw location text
        default_city: City appended when none is given
        aliases: Extra aliases, checked before the built-in table

    Returns:
        FieldResult with the normalized location, or an error when empty
    """
    result = FieldResult()
    if value is None or not value.strip():
        result.errors.append("Location is required")
        return result

    area_part, _, city_part = value.strip().partition(",")
    area_part = area_part.strip()
    city_part = city_part.strip()

    table = dict(aliases or {})
    for key, canonical in LOCATION_ALIASES.items():
        table.setdefault(key, canonical)

    compact = "".join(area_part.lower().split())

    area = None
    for key, canonical in table.items():
        if key in compact:
            area = canonical
            break

    if area is None:
        area = _title_case(area_part)

    if not area:
        # Input like ", Hyderabad"
        if city_part:
            result.warnings.append("Location has no area, only a city")
            result.data = _title_case(city_part)
        else:
            result.errors.append("Location is required")
        return result

    if city_part:
        result.data = f"{area}, {_title_case(city_part)}"
    elif default_city.lower() in area.lower():
        result.data = area
    else:
        result.data = f"{area}, {default_city}"

    return result


def normalize_property_type(value: Optional[str]) -> FieldResult:
    """Map free text to one of the four property categories.

    Unknown or missing input falls back to residential with a warning.
    """
    result = FieldResult()
    if value is None or not str(value).strip():
        result.warnings.append("Property type not specified, defaulting to residential")
        result.data = PropertyType.RESIDENTIAL.value
        return result

    lowered = str(value).strip().lower()

    for member in PropertyType:
        if lowered == member.value:
            result.data = member.value
            return result

    if lowered in _PROPERTY_TYPE_SYNONYMS:
        result.data = _PROPERTY_TYPE_SYNONYMS[lowered].value
        return result

    for category, keywords in _PROPERTY_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            result.data = category.value
            return result

    result.warnings.append(f"Unknown property type: {value}, defaulting to residential")
    result.data = PropertyType.RESIDENTIAL.value
    return result


def normalize_listing_type(value: Optional[str]) -> FieldResult:
    """Map free text to sale, rent or development_partnership (default sale)."""
    result = FieldResult()
    if value is None or not str(value).strip():
        result.warnings.append("Listing type not specified, defaulting to sale")
        result.data = ListingType.SALE.value
        return result

    lowered = str(value).strip().lower().replace("-", "_")
    for member in ListingType:
        if lowered == member.value:
            result.data = member.value
            return result

    lowered = lowered.replace("_", " ")
    for category, keywords in _LISTING_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            result.data = category.value
            return result

    result.warnings.append(f"Unknown listing type: {value}, defaulting to sale")
    result.data = ListingType.SALE.value
    return result


def _format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def validate_bounds(
    price: Optional[int] = None,
    bedrooms: Optional[int] = None,
    bathrooms: Optional[int] = None,
    area: Optional[float] = None,
    land_size: Optional[float] = None,
) -> FieldResult:
    """Check numeric fields against plausible ranges.

    Out-of-range values are warnings; impossible values (negative counts,
    non-positive price/area/land size) are errors. None values are skipped.
    """
    result = FieldResult()

    if price is not None:
        if price <= 0:
            result.errors.append("Price must be positive")
        elif price < 100_000:
            result.warnings.append(f"Price unusually low: ₹{_format_number(price)}")
        elif price > 1_000_000_000:
            result.warnings.append(f"Price unusually high: ₹{_format_number(price)}")

    for label, count in (("Bedroom", bedrooms), ("Bathroom", bathrooms)):
        if count is None:
            continue
        if count < 0:
            result.errors.append(f"{label}s cannot be negative")
        elif count > 20:
            result.warnings.append(f"Unusually high {label.lower()} count: {count}")

    if area is not None:
        if area <= 0:
            result.errors.append("Area must be positive")
        elif area < 100:
            result.warnings.append(f"Area unusually small: {_format_number(area)} sq ft")
        elif area > 100_000:
            result.warnings.append(f"Area unusually large: {_format_number(area)} sq ft")

    if land_size is not None:
        if land_size <= 0:
            result.errors.append("Land size must be positive")
        elif land_size < 100:
            result.warnings.append(f"Land size unusually small: {_format_number(land_size)} sq ft")
        elif land_size > 1_000_000:
            result.warnings.append(f"Land size unusually large: {_format_number(land_size)} sq ft")

    return result
