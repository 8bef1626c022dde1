"""Cross-feed combination and compression."""

from .archive import gzip_file
from .combiner import (
    COMBINED_FILENAME,
    CombineError,
    CombinedArtifact,
    combine,
    record_stream_path,
)

__all__ = [
    "COMBINED_FILENAME",
    "CombineError",
    "CombinedArtifact",
    "combine",
    "gzip_file",
    "record_stream_path",
]
