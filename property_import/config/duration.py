"""Duration parsing for timeouts, rate-limit spacing and cache lifetimes."""

import re


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}

_HUMAN_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)")
_ISO_PATTERN = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$"
)


def parse_duration(value) -> float:
    """
    Parse a duration to seconds.

    Accepts bare numbers (already seconds), human-readable strings such as
    "12s", "500ms", "1h30m", and ISO-8601 durations such as "PT12S".

    Args:
        value: Duration as number or string

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the value is empty, malformed or negative

    Examples:
        >>> parse_duration("12s")
        12.0
        >>> parse_duration("PT1H")
        3600.0
    """
    if isinstance(value, bool):
        raise DurationParseError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        if value < 0:
            raise DurationParseError(f"Duration cannot be negative: {value}")
        return float(value)

    if not isinstance(value, str) or not value.strip():
        raise DurationParseError("Duration string cannot be empty")

    text = value.strip()

    if text.upper().startswith("P"):
        return _parse_iso8601(text.upper())

    try:
        return parse_duration(float(text))
    except ValueError:
        pass

    return _parse_human_readable(text.lower())


def _parse_iso8601(text: str) -> float:
    match = _ISO_PATTERN.match(text)
    if not match or text in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{text}'. "
            "Expected format like 'PT12S', 'PT5M' or 'PT1H'"
        )

    days, hours, minutes, seconds = match.groups()
    total = 0.0
    if days:
        total += int(days) * 86400
    if hours:
        total += int(hours) * 3600
    if minutes:
        total += int(minutes) * 60
    if seconds:
        total += float(seconds)
    return total


def _parse_human_readable(text: str) -> float:
    matches = _HUMAN_PATTERN.findall(text)
    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{text}'. "
            "Expected format like '500ms', '12s', '5m', '1h' or '1h30m'"
        )

    consumed = "".join(f"{num}{unit}" for num, unit in matches)
    if consumed != re.sub(r"\s+", "", text):
        raise DurationParseError(
            f"Invalid characters in duration: '{text}'. "
            "Use only numbers and units: ms, s, m, h, d"
        )

    return sum(float(num) * _UNIT_SECONDS[unit] for num, unit in matches)


def validate_duration_range(
    seconds: float,
    min_seconds: float = 0.0,
    max_seconds: float = 86400.0,
    label: str = "Duration",
) -> None:
    """
    Validate that a parsed duration is within an acceptable range.

    Raises:
        DurationParseError: If the duration is outside [min_seconds, max_seconds]
    """
    if seconds < min_seconds:
        raise DurationParseError(f"{label} too short: {seconds}s. Minimum is {min_seconds}s.")
    if seconds > max_seconds:
        raise DurationParseError(f"{label} too long: {seconds}s. Maximum is {max_seconds}s.")
