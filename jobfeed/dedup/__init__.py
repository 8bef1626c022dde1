"""GUID-based duplicate resolution."""

from .models import RecordStore, ResolutionResult, SupersededRecord, SupersedeReason
from .resolver import DuplicateResolver, append_reason

__all__ = [
    "DuplicateResolver",
    "RecordStore",
    "ResolutionResult",
    "SupersededRecord",
    "SupersedeReason",
    "append_reason",
]
