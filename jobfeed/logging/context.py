"""Scoped context fields injected into every log record.

Fields such as ``run_id`` and ``feed_id`` are kept in a ``ContextVar`` so they
follow the call chain. Worker threads do not inherit context automatically;
use :func:`bind_log_context` to carry the submitting thread's fields over.
"""

import contextvars
from contextvars import ContextVar, Token
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active context fields."""
    return LogContextVar.get().copy()


def push_log_context(**fields) -> Token:
    """Merge ``fields`` into the active context and return a reset token."""
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context captured by ``push_log_context``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field (used by tests)."""
    LogContextVar.set({})


def bind_log_context(func: Callable[..., T]) -> Callable[..., T]:
    """Wrap ``func`` so it runs inside a copy of the caller's context.

    Used when handing feed work to a thread pool so that ``run_id`` keeps
    appearing on records logged by the worker.
    """
    ctx = contextvars.copy_context()

    def runner(*args, **kwargs) -> T:
        return ctx.copy().run(func, *args, **kwargs)

    return runner


class log_context:
    """Context manager that adds fields for the duration of a block.

    Example:
        >>> with log_context(run_id="abc123", feed_id="acme"):
        ...     logger.info("Streaming feed")
    """

    def __init__(self, **fields):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
