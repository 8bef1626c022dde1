"""Core domain models for feeds, records and import progress.

This module defines the data structures shared across the importer:
- FeedDescriptor: one configured feed (id + source URL)
- NormalizedRecord: one job posting as written to a record stream
- StoredRecord: metadata of a record already held by the content store
- ImportStatus: process-wide progress snapshot surfaced to operators
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from jobfeed.config.models import FEED_ID_PATTERN


def _to_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class FeedDescriptor(BaseModel):
    """A feed as handed to the importer: read-only for the run."""

    id: str = Field(..., description="Filesystem-safe feed slug")
    source_url: str = Field(..., min_length=1, description="Feed URL")

    model_config = {"frozen": True}

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not FEED_ID_PATTERN.match(v):
            raise ValueError(f"Feed id '{v}' is not filesystem-safe")
        return v


class NormalizedRecord(BaseModel):
    """One job posting in the uniform shape written to record streams.

    Records are never mutated after creation; a later import of the same
    GUID produces a new record. ``source_fields`` keeps the cleaned source element
    values so downstream tooling can reach attributes not promoted here.
    """

    guid: str = Field(..., min_length=1)
    feed_id: str
    title: str = Field(..., min_length=1)
    enhanced_title: str = ""
    slug: str = ""
    description: str = ""

    company: Optional[str] = None
    function_group: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    province: Optional[str] = None
    domain: str = ""

    salary_from: Optional[float] = None
    salary_to: Optional[float] = None
    salary_text: str = ""

    job_link: str = ""
    apply_link: Optional[str] = None
    job_icon: str = ""
    job_time: str = ""
    job_description: str = ""
    language: str = "en"

    has_company_car: bool = False
    remote_work: bool = False
    meal_vouchers: bool = False
    flexible_hours: bool = False
    skills: List[str] = Field(default_factory=list)
    languages_html: str = ""
    job_posting: Dict[str, Any] = Field(default_factory=dict)

    source_updated_at: Optional[datetime] = None
    source_fields: Dict[str, str] = Field(default_factory=dict)
    fingerprint: str = Field(..., min_length=1)
    last_seen_at: datetime

    @field_validator("guid", "title")
    @classmethod
    def strip_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("last_seen_at", "source_updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(v)


class RecordStatus(str, Enum):
    """Visibility state of a stored record."""

    PUBLISHED = "publish"
    DRAFT = "draft"


class StoredRecord(BaseModel):
    """Metadata of a record already present in the content store."""

    record_id: int
    guid: str
    title: str
    status: RecordStatus = RecordStatus.PUBLISHED
    fingerprint: Optional[str] = None
    modified_at: datetime

    model_config = {"use_enum_values": True}

    @field_validator("modified_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)


class ImportPhase(str, Enum):
    """Phase of the current (or last) import run."""

    IDLE = "idle"
    FEED_DOWNLOADING = "feed-downloading"
    FEED_PROCESSING = "feed-processing"
    JSONL_COMBINING = "jsonl-combining"
    DUPLICATE_CLEANUP = "duplicate-cleanup"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"


class ImportStatus(BaseModel):
    """Process-wide progress snapshot.

    Updated only through a status store's atomic merge; ``merged`` is the
    pure read-modify-write step a store applies under its lock.
    """

    phase: ImportPhase = ImportPhase.IDLE
    current_feed: Optional[str] = None

    total: int = 0
    processed: int = 0
    published: int = 0
    updated: int = 0
    skipped: int = 0
    duplicates_drafted: int = 0

    feeds_total: int = 0
    feeds_completed: int = 0
    feed_counts: Dict[str, int] = Field(default_factory=dict)

    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    last_update: Optional[datetime] = None
    time_elapsed: float = 0.0

    complete: bool = False
    success: bool = False
    error_message: Optional[str] = None
    logs: List[str] = Field(default_factory=list)

    model_config = {"use_enum_values": True}

    @field_validator("started_at", "finished_at", "last_update")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(v)

    def merged(
        self,
        updates: Mapping[str, Any],
        append_logs: Sequence[str] = (),
        log_limit: int = 100,
    ) -> "ImportStatus":
        """Return a new status with ``updates`` applied and logs appended.

        ``feed_counts`` is merged key by key rather than replaced so that
        concurrent feeds can report independently.

        Raises:
            ValueError: If an update names an unknown field or fails validation
        """
        unknown = set(updates) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown status fields: {', '.join(sorted(unknown))}")

        data = self.model_dump()
        for key, value in updates.items():
            if key == "feed_counts" and value is not None:
                data["feed_counts"] = {**data["feed_counts"], **value}
            else:
                data[key] = value

        logs = list(data["logs"]) + list(append_logs)
        data["logs"] = logs[-log_limit:] if log_limit > 0 else []
        return type(self).model_validate(data)
