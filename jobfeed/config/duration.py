"""Duration parsing for the import schedule interval."""

import re

_ISO_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$")
_HUMAN_PART_RE = re.compile(r"(\d+)\s*([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to seconds.

    Accepts ISO-8601 (``PT6H``, ``P1D``, ``PT1H30M``) and human-readable
    forms (``6h``, ``90m``, ``1h30m``).

    Raises:
        DurationParseError: If the value is empty, malformed or zero

    Examples:
        >>> parse_duration("6h")
        21600
        >>> parse_duration("PT30M")
        1800
    """
    value = duration_str.strip()
    if not value:
        raise DurationParseError("Duration string cannot be empty")

    if value.upper().startswith("P"):
        total = _parse_iso8601(value.upper())
    else:
        total = _parse_human(value)

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return total


def _parse_iso8601(value: str) -> int:
    match = _ISO_RE.match(value)
    if not match:
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{value}'. "
            "Expected format like 'P1D', 'PT6H', 'PT1H30M'"
        )
    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * 86400
        + int(hours or 0) * 3600
        + int(minutes or 0) * 60
        + int(float(seconds or 0))
    )


def _parse_human(value: str) -> int:
    lowered = value.lower()
    parts = _HUMAN_PART_RE.findall(lowered)
    if not parts:
        raise DurationParseError(
            f"Invalid duration format: '{value}'. "
            "Expected format like '30m', '6h', '1d' or combinations like '1h30m'"
        )
    # Every character must belong to a number+unit pair
    if "".join(num + unit for num, unit in parts) != re.sub(r"\s+", "", lowered):
        raise DurationParseError(
            f"Invalid characters in duration: '{value}'. "
            "Use only digits and units: s, m, h, d"
        )
    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in parts)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 300,
    max_seconds: int = 7 * 86400,
) -> None:
    """Raise DurationParseError unless ``min_seconds <= duration <= max_seconds``."""
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Import interval too short: {describe_seconds(duration_seconds)}. "
            f"Minimum is {describe_seconds(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Import interval too long: {describe_seconds(duration_seconds)}. "
            f"Maximum is {describe_seconds(max_seconds)}."
        )


def describe_seconds(seconds: int) -> str:
    """Render seconds in the largest whole unit, e.g. ``"6 hours"``."""
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            amount = seconds // size
            return f"{amount} {unit}{'s' if amount != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
