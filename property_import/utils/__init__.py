"""Utility helpers for time handling and caching."""

from .cache import TTLCache
from .timestamps import ensure_utc, format_timestamp, parse_iso_datetime, utc_now

__all__ = [
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "format_timestamp",
    # Caching
    "TTLCache",
]
