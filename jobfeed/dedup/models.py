"""Types shared by duplicate resolution and its record-store collaborator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Protocol, Sequence

from jobfeed.domain.models import StoredRecord


class SupersedeReason(str, Enum):
    """Why a stored record was drafted in favour of another."""

    IDENTICAL = "Duplicate - Identical content"
    OLDER = "Duplicate - Older version kept"


@dataclass(frozen=True)
class SupersededRecord:
    record_id: int
    guid: str
    kept_id: int
    reason: SupersedeReason


@dataclass
class ResolutionResult:
    """
    Outcome of resolving one batch of GUIDs.

    Attributes:
        post_ids_by_guid: GUID -> stored record id to keep (and update)
        count_drafted: Number of records superseded by this call
        superseded: Details of every superseded record, in decision order
    """

    post_ids_by_guid: Dict[str, int] = field(default_factory=dict)
    count_drafted: int = 0
    superseded: List[SupersededRecord] = field(default_factory=list)


class RecordStore(Protocol):
    """Queries and state transitions the resolver needs from the content store."""

    def find_ids_by_guids(self, guids: Sequence[str]) -> Mapping[str, List[int]]:
        """Existing record ids grouped by GUID, in stable (id) order."""
        ...

    def get_records(self, record_ids: Sequence[int]) -> List[StoredRecord]:
        """Metadata for the given ids; unknown ids are omitted."""
        ...

    def supersede(self, record_id: int, title: str) -> None:
        """Set the record's title and move it to draft; its modification time is unchanged."""
        ...
