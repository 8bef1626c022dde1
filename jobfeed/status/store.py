"""Atomic storage for the process-wide ImportStatus."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Sequence, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from jobfeed.domain.models import ImportStatus
from jobfeed.logging import get_logger
from jobfeed.persistence.database import get_session
from jobfeed.persistence.exceptions import PersistenceError
from jobfeed.persistence.repositories import StatusRepository

from .exceptions import StateUpdateError

logger = get_logger(__name__, component="status")

DEFAULT_STATUS_KEY = "job_import_status"

StatusUpdates = Union[Mapping[str, Any], Callable[[ImportStatus], Mapping[str, Any]]]


class StatusStore(ABC):
    """
    Single ImportStatus record with last-write-wins ``set`` and an atomic
    read-modify-write ``set_atomic``.

    Subclasses implement ``_load``/``_save``; the base class serializes
    ``set_atomic`` with one lock per store so concurrent feed workers never
    lose each other's updates.
    """

    def __init__(self, log_limit: int = 100) -> None:
        self.log_limit = log_limit
        self._lock = threading.RLock()

    @abstractmethod
    def _load(self) -> ImportStatus:
        """Return the stored status (a fresh idle one when none exists)."""

    @abstractmethod
    def _save(self, status: ImportStatus) -> None:
        """Persist ``status``."""

    def get(self) -> ImportStatus:
        try:
            return self._load()
        except StateUpdateError:
            raise
        except (PersistenceError, SQLAlchemyError, ValidationError, ValueError) as e:
            raise StateUpdateError(f"Failed to read import status: {e}") from e

    def set(self, status: ImportStatus) -> None:
        with self._lock:
            self._guarded_save(status)

    def set_atomic(
        self, updates: StatusUpdates, append_logs: Sequence[str] = ()
    ) -> ImportStatus:
        """
        Merge ``updates`` into the stored status and append log lines.

        ``updates`` may be a callable receiving the current status, for
        increments that must be computed under the same lock.

        Returns:
            The status as written

        Raises:
            StateUpdateError: If the merge is invalid or storage fails
        """
        with self._lock:
            current = self.get()
            try:
                merged = current.merged(
                    _resolve(updates, current), append_logs, log_limit=self.log_limit
                )
            except (ValidationError, ValueError) as e:
                raise StateUpdateError(f"Invalid status update: {e}") from e
            self._guarded_save(merged)
            return merged

    def reset(self) -> ImportStatus:
        """Replace the stored status with a fresh idle one."""
        status = ImportStatus()
        self.set(status)
        logger.info("Import status reset", extra={"event": "status.reset"})
        return status

    def _guarded_save(self, status: ImportStatus) -> None:
        try:
            self._save(status)
        except StateUpdateError:
            raise
        except (PersistenceError, SQLAlchemyError, ValueError) as e:
            raise StateUpdateError(f"Failed to write import status: {e}") from e


class InMemoryStatusStore(StatusStore):
    """Status kept in process memory (CLI runs and tests)."""

    def __init__(self, log_limit: int = 100) -> None:
        super().__init__(log_limit)
        self._status = ImportStatus()

    def _load(self) -> ImportStatus:
        return self._status.model_copy(deep=True)

    def _save(self, status: ImportStatus) -> None:
        self._status = status.model_copy(deep=True)


class DatabaseStatusStore(StatusStore):
    """Status persisted as JSON in the ``import_status`` table.

    Visible to other processes (for example an operator UI) sharing the
    database. Atomicity across processes relies on the database transaction.
    """

    def __init__(self, key: str = DEFAULT_STATUS_KEY, log_limit: int = 100) -> None:
        super().__init__(log_limit)
        self.key = key

    def _load(self) -> ImportStatus:
        with get_session() as session:
            payload = StatusRepository(session).load(self.key)
        if payload is None:
            return ImportStatus()
        return ImportStatus.model_validate_json(payload)

    def _save(self, status: ImportStatus) -> None:
        with get_session() as session:
            StatusRepository(session).save(self.key, status.model_dump_json())

    def set_atomic(
        self, updates: StatusUpdates, append_logs: Sequence[str] = ()
    ) -> ImportStatus:
        with self._lock:
            try:
                with get_session() as session:
                    repo = StatusRepository(session)
                    payload = repo.load(self.key, for_update=True)
                    current = (
                        ImportStatus.model_validate_json(payload) if payload else ImportStatus()
                    )
                    merged = current.merged(
                        _resolve(updates, current), append_logs, log_limit=self.log_limit
                    )
                    repo.save(self.key, merged.model_dump_json())
                    return merged
            except (PersistenceError, SQLAlchemyError, ValidationError, ValueError) as e:
                raise StateUpdateError(f"Failed to update import status: {e}") from e


def _resolve(updates: StatusUpdates, current: ImportStatus) -> Mapping[str, Any]:
    return updates(current) if callable(updates) else updates
