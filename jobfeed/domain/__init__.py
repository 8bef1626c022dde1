"""Domain models for the feed importer."""

from .models import (
    FeedDescriptor,
    ImportPhase,
    ImportStatus,
    NormalizedRecord,
    RecordStatus,
    StoredRecord,
)

__all__ = [
    "FeedDescriptor",
    "ImportPhase",
    "ImportStatus",
    "NormalizedRecord",
    "RecordStatus",
    "StoredRecord",
]
