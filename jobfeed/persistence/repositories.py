"""Repositories for job posts and import status."""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobfeed.domain.models import NormalizedRecord, RecordStatus, StoredRecord
from jobfeed.logging import get_logger
from jobfeed.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import ImportStatusModel, JobPostModel, _format_datetime

logger = get_logger(__name__, component="database")


class JobPostRepository:
    """Job post storage; also the record store used by duplicate resolution."""

    def __init__(self, session: Session):
        self.session = session

    def find_ids_by_guids(self, guids: Sequence[str]) -> Dict[str, List[int]]:
        """Existing post ids grouped by GUID, each group in ascending id order."""
        if not guids:
            return {}
        try:
            stmt = (
                select(JobPostModel.guid, JobPostModel.id)
                .where(JobPostModel.guid.in_(list(set(guids))))
                .order_by(JobPostModel.id)
            )
            grouped: Dict[str, List[int]] = {}
            for guid, post_id in self.session.execute(stmt):
                grouped.setdefault(guid, []).append(post_id)
            return grouped
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to query posts by GUID: {e}") from e

    def get_records(self, record_ids: Sequence[int]) -> List[StoredRecord]:
        if not record_ids:
            return []
        try:
            stmt = select(JobPostModel).where(JobPostModel.id.in_(list(record_ids)))
            return [model.to_stored() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load post metadata: {e}") from e

    def get(self, record_id: int) -> Optional[StoredRecord]:
        model = self.session.get(JobPostModel, record_id)
        return model.to_stored() if model else None

    def supersede(self, record_id: int, title: str) -> None:
        """Retitle a post and move it to draft, leaving its modification time as is."""
        model = self._require(record_id)
        model.title = title
        model.status = RecordStatus.DRAFT.value
        self._flush(f"supersede post {record_id}")

    def create(self, record: NormalizedRecord, now: Optional[datetime] = None) -> int:
        """Insert a published post for ``record`` and return its id."""
        timestamp = _format_datetime(now or utc_now())
        model = JobPostModel(
            guid=record.guid,
            feed_id=record.feed_id,
            title=record.enhanced_title or record.title,
            status=RecordStatus.PUBLISHED.value,
            fingerprint=record.fingerprint,
            created_at=timestamp,
            modified_at=timestamp,
            payload=record.model_dump_json(),
        )
        self.session.add(model)
        self._flush(f"create post for GUID {record.guid}")
        return model.id

    def update(self, record_id: int, record: NormalizedRecord, now: Optional[datetime] = None) -> None:
        """Overwrite a post with ``record`` and (re)publish it."""
        model = self._require(record_id)
        model.feed_id = record.feed_id
        model.title = record.enhanced_title or record.title
        model.status = RecordStatus.PUBLISHED.value
        model.fingerprint = record.fingerprint
        model.modified_at = _format_datetime(now or utc_now())
        model.payload = record.model_dump_json()
        self._flush(f"update post {record_id}")

    def _require(self, record_id: int) -> JobPostModel:
        model = self.session.get(JobPostModel, record_id)
        if model is None:
            raise RecordNotFoundError(f"Job post {record_id} does not exist")
        return model

    def _flush(self, action: str) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise DataIntegrityError(f"Failed to {action}: {e}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to {action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {action}: {e}") from e


class StatusRepository:
    """Raw JSON status snapshots keyed by name."""

    def __init__(self, session: Session):
        self.session = session

    def load(self, key: str, for_update: bool = False) -> Optional[str]:
        try:
            stmt = select(ImportStatusModel).where(ImportStatusModel.key == key)
            if for_update:
                stmt = stmt.with_for_update()
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.payload if model else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load status '{key}': {e}") from e

    def save(self, key: str, payload: str) -> None:
        try:
            model = self.session.get(ImportStatusModel, key)
            now = _format_datetime(utc_now())
            if model is None:
                self.session.add(ImportStatusModel(key=key, payload=payload, updated_at=now))
            else:
                model.payload = payload
                model.updated_at = now
            self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save status '{key}': {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.session.execute(delete(ImportStatusModel).where(ImportStatusModel.key == key))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete status '{key}': {e}") from e
