"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
catch database failures with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""


class DatabaseConnectionError(PersistenceError):
    """Database initialization or connection failed, or it was never initialized."""


class RecordNotFoundError(PersistenceError):
    """A record that an operation requires does not exist."""


class DataIntegrityError(PersistenceError):
    """A database constraint was violated."""
