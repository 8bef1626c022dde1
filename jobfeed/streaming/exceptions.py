"""Exceptions raised while turning feed XML into records."""

from typing import Optional


class ParseError(Exception):
    """The feed document itself is malformed; the whole feed yields nothing."""

    def __init__(self, message: str, feed_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.feed_id = feed_id


class MalformedItemError(ValueError):
    """A single item cannot become a record; it is skipped and logged."""
