"""Duration parsing for the daemon sync interval."""

import re

UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}

_ISO_PATTERN = re.compile(
    r"^P(?:(?P<d>\d+)D)?(?:T(?:(?P<h>\d+)H)?(?:(?P<m>\d+)M)?(?:(?P<s>\d+(?:\.\d+)?)S)?)?$"
)
_HUMAN_PATTERN = re.compile(r"^(?:\d+[smhd])+$")
_HUMAN_PART = re.compile(r"(\d+)([smhd])")


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Accepts human-readable values ("30s", "15m", "1h30m", "2d") and ISO-8601
    durations ("PT15M", "PT1H30M", "P1D").

    Args:
        duration_str: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the string is empty, malformed or zero

    Examples:
        >>> parse_duration("15m")
        900
        >>> parse_duration("PT1H")
        3600
    """
    cleaned = re.sub(r"\s+", "", duration_str or "")
    if not cleaned:
        raise DurationParseError("Duration string cannot be empty")

    if cleaned.upper().startswith("P"):
        total = _parse_iso8601(cleaned.upper())
    else:
        total = _parse_human_readable(cleaned.lower())

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return total


def _parse_iso8601(value: str) -> int:
    match = _ISO_PATTERN.match(value)
    if not match or value in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{value}'. "
            "Expected format like 'P1D', 'PT1H30M', 'PT15M', or 'PT30S'"
        )
    parts = match.groupdict()
    return (
        int(parts["d"] or 0) * UNIT_SECONDS["d"]
        + int(parts["h"] or 0) * UNIT_SECONDS["h"]
        + int(parts["m"] or 0) * UNIT_SECONDS["m"]
        + int(float(parts["s"] or 0))
    )


def _parse_human_readable(value: str) -> int:
    if not _HUMAN_PATTERN.match(value):
        raise DurationParseError(
            f"Invalid duration format: '{value}'. "
            "Expected format like '15m', '1h', '30s', '2d', or combinations like '1h30m'"
        )
    return sum(int(num) * UNIT_SECONDS[unit] for num, unit in _HUMAN_PART.findall(value))


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 60,
    max_seconds: int = 86400,
) -> None:
    """
    Validate that a sync interval is within the accepted range.

    Raises:
        DurationParseError: If duration is outside the valid range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Sync interval too short: {humanize_seconds(duration_seconds)}. "
            f"Minimum is {humanize_seconds(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Sync interval too long: {humanize_seconds(duration_seconds)}. "
            f"Maximum is {humanize_seconds(max_seconds)}."
        )


def humanize_seconds(seconds: int) -> str:
    """Convert seconds to a rough human-readable form ("15 minutes", "1 hour")."""
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
