"""Import pipeline orchestration."""

from .models import FeedRunStats, ImportRunResult
from .orchestrator import FeedOrchestrator
from .runner import FeedImportPipeline, remove_artifacts

__all__ = [
    "FeedImportPipeline",
    "FeedOrchestrator",
    "FeedRunStats",
    "ImportRunResult",
    "remove_artifacts",
]
