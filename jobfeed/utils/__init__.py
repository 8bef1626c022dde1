"""Utility functions for hashing and time handling."""

from .hashing import (
    FINGERPRINT_FIELDS,
    FINGERPRINT_VERSION,
    compute_fingerprint,
    derive_guid,
    fingerprint_version,
    hash_string,
)
from .timestamps import (
    ensure_utc,
    format_log_timestamp,
    format_timestamp,
    parse_feed_datetime,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    # Hashing
    "FINGERPRINT_FIELDS",
    "FINGERPRINT_VERSION",
    "compute_fingerprint",
    "derive_guid",
    "fingerprint_version",
    "hash_string",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "parse_feed_datetime",
    "format_timestamp",
    "format_log_timestamp",
]
