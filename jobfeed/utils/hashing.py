"""Deterministic hashing for record fingerprints and fallback GUIDs.

Fingerprints carry an algorithm version prefix (``v1:<sha256>``); values of
different versions never compare equal.
"""

import hashlib
import json
import re
from typing import Any, Mapping, Optional

FINGERPRINT_VERSION = 1

# Normalized record fields that define "same content"
FINGERPRINT_FIELDS = (
    "guid",
    "title",
    "description",
    "company",
    "city",
    "postal_code",
    "province",
    "function_group",
    "salary_from",
    "salary_to",
    "job_time",
    "apply_link",
    "language",
)

_WHITESPACE_RE = re.compile(r"\s+")
_VERSION_RE = re.compile(r"^v(\d+):[0-9a-f]{64}$")


def compute_fingerprint(fields: Mapping[str, Any]) -> str:
    """Compute the versioned content fingerprint of a record.

    Only ``FINGERPRINT_FIELDS`` participate. Strings are whitespace-collapsed
    and stripped; missing fields and empty strings hash the same.

    Args:
        fields: Mapping of normalized record fields

    Returns:
        ``"v<version>:<sha256 hex>"``

    Example:
        >>> compute_fingerprint({"guid": "G1", "title": "Accountant"})[:3]
        'v1:'
    """
    canonical = {}
    for name in FINGERPRINT_FIELDS:
        value = fields.get(name)
        if isinstance(value, str):
            value = _normalize_text(value)
        if value in (None, ""):
            value = None
        canonical[name] = value

    payload = json.dumps(canonical, sort_keys=True, ensure_ascii=False, default=str)
    return f"v{FINGERPRINT_VERSION}:{hash_string(payload)}"


def fingerprint_version(fingerprint: Optional[str]) -> Optional[int]:
    """Return the algorithm version of a fingerprint, or None if unversioned."""
    if not fingerprint:
        return None
    match = _VERSION_RE.match(fingerprint)
    if not match:
        return None
    return int(match.group(1))


def derive_guid(feed_id: str, link: str) -> str:
    """Derive a stable GUID for items whose source omits one.

    The GUID is a SHA256 of ``feed_id:link``, so it stays stable across
    re-imports as long as the item's link does not change.
    """
    composite = f"{feed_id.strip().lower()}:{link.strip()}"
    return hash_string(composite)


def _normalize_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def hash_string(value: str) -> str:
    """SHA256 hex digest of a UTF-8 string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
