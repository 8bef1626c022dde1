"""Run-scoped, operator-facing log collection."""

import logging
import threading
from typing import List, Optional

from jobfeed.utils.timestamps import format_log_timestamp, utc_now


class RunLog:
    """
    Append-only buffer of human-readable lines for a single import run.

    Each line is prefixed with ``[dd-Mon-YYYY HH:MM:SS UTC]`` and is also
    forwarded to the Python logger. Safe to share between worker threads.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_lines: Optional[int] = None):
        self._lines: List[str] = []
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger("jobfeed.run")
        self._max_lines = max_lines

    def append(self, message: str, level: int = logging.INFO, **fields) -> str:
        """Record ``message`` and return the timestamped line."""
        line = f"[{format_log_timestamp(utc_now())}] {message}"
        with self._lock:
            self._lines.append(line)
            if self._max_lines is not None and len(self._lines) > self._max_lines:
                del self._lines[: len(self._lines) - self._max_lines]
        extra = {"event": fields.pop("event", "run.log")}
        extra.update(fields)
        self._logger.log(level, message, extra=extra)
        return line

    def warning(self, message: str, **fields) -> str:
        return self.append(message, level=logging.WARNING, **fields)

    def error(self, message: str, **fields) -> str:
        return self.append(message, level=logging.ERROR, **fields)

    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def tail(self, count: int) -> List[str]:
        if count <= 0:
            return []
        with self._lock:
            return self._lines[-count:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
