"""Persistence layer for job posts and import status."""

from .database import close_database, get_engine, get_session, init_database, is_initialized
from .exceptions import (
    DataIntegrityError,
    DatabaseConnectionError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import JobPostRepository, StatusRepository

__all__ = [
    "init_database",
    "get_session",
    "get_engine",
    "close_database",
    "is_initialized",
    "JobPostRepository",
    "StatusRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
    "RecordNotFoundError",
]
