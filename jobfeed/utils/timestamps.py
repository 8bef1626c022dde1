"""Timestamp utilities for UTC handling and feed date parsing."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted. Returns
    None when the conversion falls outside the supported date range.

    Example:
        >>> ensure_utc(datetime(2025, 11, 4, 12, 0)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError:
        return None


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 string (``Z`` suffix or date-only allowed) to UTC.

    Returns None when the value is empty or not ISO 8601.
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except (ValueError, OverflowError):
        pass
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return ensure_utc(datetime.strptime(iso_string.strip(), fmt))
        except ValueError:
            continue
    return None


def parse_feed_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a date as found in job feeds.

    Feeds mix ISO 8601 (``2025-11-04T12:00:00Z``) and RFC 822
    (``Tue, 04 Nov 2025 12:00:00 +0100``) dates.
    """
    parsed = parse_iso_datetime(value)
    if parsed is not None or not value:
        return parsed
    try:
        return ensure_utc(parsedate_to_datetime(value.strip()))
    except (TypeError, ValueError, IndexError, OverflowError):
        return None


def format_timestamp(dt: Optional[datetime]) -> str:
    """Format a datetime as ISO 8601 UTC with a ``Z`` suffix."""
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_log_timestamp(dt: datetime) -> str:
    """Format a datetime for run log lines, e.g. ``04-Nov-2025 12:00:00 UTC``."""
    return ensure_utc(dt).strftime("%d-%b-%Y %H:%M:%S UTC")
