"""ORM models for published records and import status.

Timestamps are stored as ISO 8601 UTC strings.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobfeed.domain.models import StoredRecord
from jobfeed.logging import get_logger

logger = get_logger(__name__, component="database")

Base = declarative_base()


class JobPostModel(Base):
    """A job post in the content store.

    Several rows may share a GUID (earlier imports, manual copies); duplicate
    resolution drafts all but one of them.
    """

    __tablename__ = "job_posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    guid = Column(String(128), nullable=False)
    feed_id = Column(String(128), nullable=True)
    title = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="publish")
    fingerprint = Column(String(80), nullable=True)
    created_at = Column(String(50), nullable=False)
    modified_at = Column(String(50), nullable=False)
    payload = Column(Text, nullable=False, default="{}")

    __table_args__ = (
        Index("idx_job_posts_guid", "guid"),
        Index("idx_job_posts_status", "status"),
    )

    def to_stored(self) -> StoredRecord:
        return StoredRecord(
            record_id=self.id,
            guid=self.guid,
            title=self.title,
            status=self.status,
            fingerprint=self.fingerprint,
            modified_at=_parse_datetime(self.modified_at),
        )


class ImportStatusModel(Base):
    """Serialized ImportStatus snapshots keyed by name."""

    __tablename__ = "import_status"

    key = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(String(50), nullable=False)


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    if not dt_str:
        return None
    value = dt_str.rstrip("Z")
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized stored timestamp: {dt_str!r}")


def create_schema(engine: Engine) -> None:
    """Create tables and indexes that do not exist yet (idempotent)."""
    Base.metadata.create_all(engine, checkfirst=True)
    logger.info(
        "Database schema ready",
        extra={"event": "database.schema.ready", "tables": inspect(engine).get_table_names()},
    )
