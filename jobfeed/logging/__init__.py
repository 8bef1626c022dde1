"""Structured logging helpers shared by every importer component."""

import logging
from typing import Optional, Union

from .run_log import RunLog


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges the component field into per-call extras."""

    def process(self, msg, kwargs):
        # Per-call extra wins over the adapter's defaults
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a logger, tagged with a ``component`` field when one is given.

    Example:
        >>> logger = get_logger(__name__, component="fetch")
        >>> logger.info("Feed downloaded", extra={"event": "feed.fetch.completed"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger


__all__ = ["ComponentLoggerAdapter", "RunLog", "get_logger"]
