"""Import progress state shared with operators."""

from .exceptions import StateUpdateError
from .reporter import StatusReporter
from .store import DatabaseStatusStore, InMemoryStatusStore, StatusStore

__all__ = [
    "DatabaseStatusStore",
    "InMemoryStatusStore",
    "StateUpdateError",
    "StatusReporter",
    "StatusStore",
]
