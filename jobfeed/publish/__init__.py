"""Publishing of combined records into the content store."""

from .models import PublishOutcome, PublishStats
from .service import BatchPublisher, ContentPublisher, iter_record_batches

__all__ = [
    "BatchPublisher",
    "ContentPublisher",
    "PublishOutcome",
    "PublishStats",
    "iter_record_batches",
]
