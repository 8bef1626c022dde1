"""Best-effort status reporting for pipeline stages."""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from jobfeed.domain.models import ImportPhase, ImportStatus
from jobfeed.logging import RunLog, get_logger
from jobfeed.utils.timestamps import utc_now

from .exceptions import StateUpdateError
from .store import StatusStore

logger = get_logger(__name__, component="status")


class StatusReporter:
    """
    The handle pipeline stages use to publish progress.

    Every update is one atomic merge on the store, stamped with
    ``last_update`` and ``time_elapsed`` and carrying the current run-log
    tail. Store failures are logged and swallowed so status reporting never
    aborts an import.
    """

    def __init__(self, store: StatusStore, run_log: Optional[RunLog] = None) -> None:
        self.store = store
        self.run_log = run_log
        self.started_at: Optional[datetime] = None
        self.failures = 0

    def start(self, feeds_total: int) -> None:
        """Overwrite the previous run's status with a fresh one."""
        self.started_at = utc_now()
        fresh = ImportStatus(
            phase=ImportPhase.FEED_DOWNLOADING,
            feeds_total=feeds_total,
            started_at=self.started_at,
            last_update=self.started_at,
        )
        try:
            self.store.set(fresh)
        except StateUpdateError as e:
            self._record_failure(e)

    def update(
        self,
        compute: Optional[Callable[[ImportStatus], Mapping[str, Any]]] = None,
        **fields: Any,
    ) -> Optional[ImportStatus]:
        """Merge ``fields`` (plus whatever ``compute`` derives from the
        current status) into the store in one atomic step."""
        now = utc_now()
        fields.setdefault("last_update", now)
        if self.started_at is not None:
            fields.setdefault("time_elapsed", round((now - self.started_at).total_seconds(), 3))
        if self.run_log is not None:
            fields.setdefault("logs", self.run_log.tail(self.store.log_limit))
        try:
            if compute is None:
                return self.store.set_atomic(fields)
            return self.store.set_atomic(lambda current: {**fields, **compute(current)})
        except StateUpdateError as e:
            self._record_failure(e)
            return None

    def phase(self, phase: ImportPhase, **fields: Any) -> Optional[ImportStatus]:
        return self.update(phase=ImportPhase(phase).value, **fields)

    def feed_completed(self, feed_id: str, item_count: int) -> Optional[ImportStatus]:
        """Fold one finished feed into the totals in a single atomic merge."""
        return self.update(
            compute=lambda current: {
                "feeds_completed": current.feeds_completed + 1,
                "processed": current.processed + item_count,
                "total": current.total + item_count,
            },
            feed_counts={feed_id: item_count},
        )

    def _record_failure(self, error: StateUpdateError) -> None:
        self.failures += 1
        logger.warning(
            f"Status update failed: {error}",
            extra={"event": "status.update_failed", "error": str(error)},
        )
