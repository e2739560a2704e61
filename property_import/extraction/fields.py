"""Regex field extractors for Instagram captions.

Each extractor takes the caption text and returns one field value, or None
when the field is not found. They are independent of each other and are
run in FIELD_EXTRACTORS order by RegexExtractor.

Values are returned close to how they appear in the caption (e.g. price as
"1.5 Cr"); unit conversion and canonicalization happen in normalization.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from property_import.normalization.fields import LOCATION_ALIASES

_UNIT = r"(crores?|cr|lakhs?|lacs?|lac|l|k|thousand)"
_NUMBER = r"(\d+(?:[.,]\d+)*)"

_PRICE_PATTERNS = [
    # ₹1.5 Cr, Rs. 75 lakhs, INR 45,00,000
    re.compile(rf"(?:₹|\brs\.?|\binr)\s*{_NUMBER}\s*{_UNIT}?\b", re.IGNORECASE),
    # 1.5 Cr, 75L
    re.compile(rf"(?<![\w.]){_NUMBER}\s*{_UNIT}\b", re.IGNORECASE),
    # Price: 4500000
    re.compile(
        rf"\b(?:price|cost|asking|budget)\s*[:\-]?\s*(?:is|of|around|approx\.?)?\s*{_NUMBER}\s*{_UNIT}?\b",
        re.IGNORECASE,
    ),
]

# Alias keys that are ordinary words in captions ("financial freedom")
_AMBIGUOUS_ALIASES = {"financial"}


def _build_locality_patterns() -> List[Tuple[re.Pattern, str]]:
    patterns = []
    seen = set()
    names = [(canonical.lower(), canonical) for canonical in LOCATION_ALIASES.values()]
    names += [
        (alias, canonical)
        for alias, canonical in LOCATION_ALIASES.items()
        if alias not in _AMBIGUOUS_ALIASES
    ]
    # Longer names first so "banjara hills" wins over "banjara"
    for needle, canonical in sorted(names, key=lambda item: (-len(item[0]), item[0])):
        if needle in seen:
            continue
        seen.add(needle)
        patterns.append((re.compile(rf"\b{re.escape(needle)}\b", re.IGNORECASE), canonical))
    return patterns


_LOCALITY_PATTERNS = _build_locality_patterns()

_LOCATION_PHRASES = [
    re.compile(r"📍\s*([^\n|•#]+)"),
    re.compile(r"\b(?:location|address|loc)\s*[:\-]\s*([^\n|•#]+)", re.IGNORECASE),
    re.compile(
        r"(?:\b(?i:in|at)|@)\s+([A-Z][A-Za-z]+(?:[ -][A-Z][A-Za-z]+)*(?:,\s*[A-Z][A-Za-z]+)?)"
    ),
]

# Phrases made only of these words are not places ("at Best Price")
_NON_PLACE_WORDS = {
    "affordable", "amazing", "attractive", "best", "deal", "deals", "great", "good", "just",
    "location", "low", "lowest", "offer", "only", "premium", "price", "prices", "prime",
    "rate", "rates", "reasonable", "the", "unbeatable", "value",
}

_BEDROOMS_RE = re.compile(r"\b(\d{1,2})\s*(?:bhk|bed(?:room)?s?|br)\b", re.IGNORECASE)
_BATHROOMS_RE = re.compile(r"\b(\d{1,2})\s*(?:bath(?:room)?s?|toilets?)\b", re.IGNORECASE)
_AREA_RE = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*(?:sq\.?\s*ft\.?|sqft|sft|square\s*f(?:ee|oo)t)", re.IGNORECASE
)
_SQ_YARDS_RE = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*(?:sq\.?\s*y(?:ar)?ds?|square\s*yards?|syds?|gajs?|gaj)\b",
    re.IGNORECASE,
)
_ACRES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*acres?\b", re.IGNORECASE)

_PROPERTY_TYPE_RE = re.compile(
    r"\b(apartment|flat|villa|independent house|house|duplex|penthouse|open plot|plot|"
    r"farmland|farm house|farmhouse|agricultural land|land|commercial space|commercial|"
    r"office space|office|showroom|shop|warehouse)s?\b",
    re.IGNORECASE,
)

_LISTING_TYPE_PATTERNS = [
    (re.compile(r"\b(?:joint venture|jv|development partnership)\b", re.IGNORECASE), "development_partnership"),
    (re.compile(r"\b(?:for rent|to[- ]let|rent|rental|lease)\b", re.IGNORECASE), "rent"),
    (re.compile(r"\b(?:for sale|sale|resale|sell|selling)\b", re.IGNORECASE), "sale"),
]

_PHONE_RE = re.compile(r"(?<![\d+])(?:\+91[\s-]?|0)?[6-9]\d{4}[\s-]?\d{5}(?!\d)")
_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# amenity key -> (display name, keywords)
_FEATURE_KEYWORDS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "parking": ("Parking", ("parking", "car park")),
    "lift": ("Lift", ("lift", "elevator")),
    "security": ("Security", ("security", "gated community", "gated")),
    "gym": ("Gym", ("gym", "fitness")),
    "swimming_pool": ("Swimming Pool", ("swimming pool", "pool")),
    "power_backup": ("Power Backup", ("power backup", "generator")),
    "clubhouse": ("Clubhouse", ("clubhouse", "club house")),
    "cctv": ("CCTV", ("cctv",)),
    "garden": ("Garden", ("garden", "landscaped")),
    "play_area": ("Play Area", ("play area", "kids play")),
    "furnished": ("Furnished", ("furnished",)),
}

_EMOJI_RE = re.compile("[\U0001F000-\U0001FAFF\u2600-\u27BF\u2B00-\u2BFF\uFE0F\u200D\u20E3]")
_HASHTAG_RE = re.compile(r"[#@]\w+")


def _to_number(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def extract_price(text: str) -> Optional[str]:
    """Return the first price mention, e.g. "1.5 Cr" or "4500000"."""
    for pattern in _PRICE_PATTERNS:
        match = pattern.search(text)
        if match:
            number, unit = match.group(1), match.group(2)
            return f"{number} {unit}" if unit else number
    return None


def _is_generic_phrase(phrase: str) -> bool:
    words = [word for word in re.split(r"[\s,-]+", phrase.lower()) if word]
    return all(word in _NON_PLACE_WORDS for word in words)


def extract_location(text: str) -> Optional[str]:
    """Return a locality name, preferring known Hyderabad localities."""
    for pattern, canonical in _LOCALITY_PATTERNS:
        if pattern.search(text):
            return canonical

    for pattern in _LOCATION_PHRASES:
        for match in pattern.finditer(text):
            location = match.group(1).strip(" .,-!:;")
            if len(location) < 3:
                continue
            if _is_generic_phrase(location):
                continue
            return location[:60].strip()
    return None


def extract_bedrooms(text: str) -> Optional[int]:
    match = _BEDROOMS_RE.search(text)
    return int(match.group(1)) if match else None


def extract_bathrooms(text: str) -> Optional[int]:
    match = _BATHROOMS_RE.search(text)
    return int(match.group(1)) if match else None


def extract_area(text: str) -> Optional[float]:
    """Built-up area in square feet."""
    match = _AREA_RE.search(text)
    return _to_number(match.group(1)) if match else None


def extract_land_size(text: str) -> Optional[float]:
    """Land size converted to square feet (1 sq yd = 9 sq ft, 1 acre = 43,560 sq ft)."""
    match = _SQ_YARDS_RE.search(text)
    if match:
        yards = _to_number(match.group(1))
        return yards * 9 if yards is not None else None

    match = _ACRES_RE.search(text)
    if match:
        acres = _to_number(match.group(1))
        return acres * 43_560 if acres is not None else None
    return None


def extract_property_type(text: str) -> Optional[str]:
    """Return the first property-type word as written (mapped later)."""
    match = _PROPERTY_TYPE_RE.search(text)
    if match:
        return match.group(1).lower()
    if _BEDROOMS_RE.search(text):
        return "bhk"
    return None


def extract_listing_type(text: str) -> Optional[str]:
    for pattern, listing_type in _LISTING_TYPE_PATTERNS:
        if pattern.search(text):
            return listing_type
    return None


def extract_contact_phone(text: str) -> Optional[str]:
    match = _PHONE_RE.search(text)
    return match.group(0).strip() if match else None


def extract_contact_email(text: str) -> Optional[str]:
    match = _EMAIL_RE.search(text)
    return match.group(0) if match else None


def _matched_feature_keys(text: str) -> List[str]:
    lowered = text.lower()
    return [
        key
        for key, (_, keywords) in _FEATURE_KEYWORDS.items()
        if any(re.search(rf"\b{re.escape(keyword)}\b", lowered) for keyword in keywords)
    ]


def extract_features(text: str) -> Optional[List[str]]:
    keys = _matched_feature_keys(text)
    return [_FEATURE_KEYWORDS[key][0] for key in keys] or None


def extract_amenities(text: str) -> Optional[Dict[str, bool]]:
    keys = _matched_feature_keys(text)
    return {key: True for key in keys} or None


def extract_title(text: str) -> Optional[str]:
    """First meaningful caption line, without emoji or hashtags, max 80 chars."""
    for line in text.splitlines():
        cleaned = _HASHTAG_RE.sub("", _EMOJI_RE.sub("", line))
        cleaned = re.sub(r"\s+", " ", cleaned).strip(" -|•*:")
        if sum(ch.isalpha() for ch in cleaned) >= 3:
            if len(cleaned) > 80:
                cleaned = cleaned[:77].rstrip() + "..."
            return cleaned
    return None


Extractor = Callable[[str], object]

FIELD_EXTRACTORS: List[Tuple[str, Extractor]] = [
    ("title", extract_title),
    ("price", extract_price),
    ("location", extract_location),
    ("bedrooms", extract_bedrooms),
    ("bathrooms", extract_bathrooms),
    ("area", extract_area),
    ("land_size", extract_land_size),
    ("property_type", extract_property_type),
    ("listing_type", extract_listing_type),
    ("contact_phone", extract_contact_phone),
    ("contact_email", extract_contact_email),
    ("features", extract_features),
    ("amenities", extract_amenities),
]
