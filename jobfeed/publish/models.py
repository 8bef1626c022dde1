"""Result types for publishing combined records into the content store."""

from dataclasses import dataclass
from enum import Enum


class PublishOutcome(str, Enum):
    """What happened to one record during publishing."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass
class PublishStats:
    """Running totals for one publish pass."""

    published: int = 0
    updated: int = 0
    skipped: int = 0
    duplicates_drafted: int = 0
    failed: int = 0
    malformed: int = 0
    batches: int = 0
    cancelled: bool = False

    def record(self, outcome: PublishOutcome) -> None:
        if outcome == PublishOutcome.CREATED:
            self.published += 1
        elif outcome == PublishOutcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    @property
    def processed(self) -> int:
        return self.published + self.updated + self.skipped
