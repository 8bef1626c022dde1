"""Keep/draft decisions for stored records that share a GUID."""

from typing import Dict, List, Mapping, Optional, Sequence

from jobfeed.domain.models import StoredRecord
from jobfeed.logging import RunLog, get_logger
from jobfeed.utils.hashing import fingerprint_version

from .models import RecordStore, ResolutionResult, SupersededRecord, SupersedeReason

logger = get_logger(__name__, component="dedup")


def append_reason(title: str, reason: SupersedeReason) -> str:
    """Append ``[reason]`` to a title unless the reason is already there.

    Example:
        >>> append_reason("Accountant", SupersedeReason.IDENTICAL)
        'Accountant [Duplicate - Identical content]'
    """
    reason_text = SupersedeReason(reason).value
    if reason_text in title:
        return title
    return f"{title} [{reason_text}]"


class DuplicateResolver:
    """
    Resolves groups of stored records sharing one GUID down to a single keep.

    For every GUID with more than one existing record the group is walked in
    the order the store returned it. The first record is the provisional keep.
    A later record with the same fingerprint is an exact re-import and is
    drafted. A later record with a different fingerprint competes on
    modification time: the more recently modified record becomes (or stays)
    the keep and the other is drafted. Equal modification times keep the
    current keep, so the outcome depends only on the store's order.

    Fingerprints are compared as whole strings, version prefix included; a
    record fingerprinted by an older algorithm therefore counts as divergent
    content and is settled by modification time.

    Callers must not resolve overlapping GUID sets concurrently.
    """

    def __init__(self, store: RecordStore, run_log: RunLog) -> None:
        self.store = store
        self.run_log = run_log

    def resolve(
        self,
        batch_guids: Sequence[str],
        existing_by_guid: Mapping[str, Sequence[int]],
    ) -> ResolutionResult:
        """
        Decide the record to keep for each GUID and draft the rest.

        Args:
            batch_guids: GUIDs in the current publish batch
            existing_by_guid: Existing record ids per GUID

        Returns:
            ResolutionResult mapping each GUID with existing records to its keep
        """
        result = ResolutionResult()

        for guid in dict.fromkeys(batch_guids):
            ids = list(existing_by_guid.get(guid) or [])
            if not ids:
                continue
            if len(ids) == 1:
                result.post_ids_by_guid[guid] = ids[0]
                continue

            keep = self._resolve_group(guid, ids, result)
            if keep is not None:
                result.post_ids_by_guid[guid] = keep.record_id

        if result.count_drafted:
            logger.info(
                f"Drafted {result.count_drafted} duplicate records",
                extra={"event": "dedup.batch.completed", "drafted": result.count_drafted},
            )
        return result

    def _resolve_group(
        self, guid: str, ids: List[int], result: ResolutionResult
    ) -> Optional[StoredRecord]:
        by_id: Dict[int, StoredRecord] = {
            record.record_id: record for record in self.store.get_records(ids)
        }
        group = [by_id[record_id] for record_id in ids if record_id in by_id]
        if not group:
            return None

        keep = group[0]
        for candidate in group[1:]:
            if candidate.fingerprint == keep.fingerprint:
                self._supersede(candidate, keep, SupersedeReason.IDENTICAL, result)
                continue

            keep_version = fingerprint_version(keep.fingerprint)
            candidate_version = fingerprint_version(candidate.fingerprint)
            if keep_version != candidate_version:
                logger.info(
                    f"GUID {guid}: fingerprint versions differ ({keep_version} vs {candidate_version}), "
                    "comparing by modification time",
                    extra={"event": "dedup.fingerprint.version_mismatch", "guid": guid},
                )
            if candidate.modified_at > keep.modified_at:
                self._supersede(keep, candidate, SupersedeReason.OLDER, result)
                keep = candidate
            else:
                self._supersede(candidate, keep, SupersedeReason.OLDER, result)
        return keep

    def _supersede(
        self,
        record: StoredRecord,
        kept: StoredRecord,
        reason: SupersedeReason,
        result: ResolutionResult,
    ) -> None:
        self.store.supersede(record.record_id, append_reason(record.title, reason))
        result.count_drafted += 1
        result.superseded.append(
            SupersededRecord(
                record_id=record.record_id,
                guid=record.guid,
                kept_id=kept.record_id,
                reason=reason,
            )
        )
        self.run_log.append(
            f"Drafted duplicate ID: {record.record_id} GUID: {record.guid} - {reason.value}",
            event="dedup.record.drafted",
            record_id=record.record_id,
            kept_id=kept.record_id,
        )
