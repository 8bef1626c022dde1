"""Options and helpers for feed downloads."""

import re
from dataclasses import dataclass
from typing import List, Union

from jobfeed.config.models import FetchSettings, TransportStrategy

# Start tag of an item element, with or without a namespace prefix
_ITEM_TAG_RE = re.compile(rb"<(?:[A-Za-z_][\w.-]*:)?item[\s>/]")
_CARRY_BYTES = 64


@dataclass(frozen=True)
class FetchOptions:
    """Per-call download options.

    ``transport`` forces a strategy; ``AUTO`` tries streaming first and falls
    back to a buffered request when streaming fails transiently.
    """

    transport: TransportStrategy = TransportStrategy.AUTO
    timeout_seconds: int = 300
    max_retries: int = 2
    retry_backoff_seconds: float = 1.0
    min_body_bytes: int = 10
    chunk_size: int = 65536

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> "FetchOptions":
        return cls(
            transport=TransportStrategy(settings.transport),
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
            retry_backoff_seconds=settings.retry_backoff_seconds,
            min_body_bytes=settings.min_body_bytes,
            chunk_size=settings.chunk_size,
        )

    def strategies(self) -> List[TransportStrategy]:
        """Transport strategies to attempt, in order."""
        strategy = TransportStrategy(self.transport)
        if strategy == TransportStrategy.AUTO:
            return [TransportStrategy.STREAMING, TransportStrategy.BUFFERED]
        return [strategy]


class ItemTagCounter:
    """Count ``<item`` start tags across arbitrarily split byte chunks.

    The count is a cheap hint for progress display; the streamer decides how
    many records a feed actually yields.
    """

    def __init__(self) -> None:
        self.count = 0
        self._carry = b""

    def feed(self, chunk: Union[bytes, bytearray, memoryview, None]) -> None:
        if not chunk:
            return
        buffer = self._carry + bytes(chunk)
        boundary = len(self._carry)
        # Matches ending inside the carry were counted with the previous chunk
        self.count += sum(1 for m in _ITEM_TAG_RE.finditer(buffer) if m.end() > boundary)
        self._carry = buffer[-_CARRY_BYTES:]

