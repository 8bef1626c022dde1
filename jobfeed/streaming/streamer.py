"""Incremental XML-to-record conversion for one feed."""

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, TextIO, Union

from lxml import etree
from pydantic import ValidationError

from jobfeed.domain.models import NormalizedRecord
from jobfeed.logging import RunLog, get_logger
from jobfeed.utils.hashing import compute_fingerprint, derive_guid
from jobfeed.utils.timestamps import parse_feed_datetime, utc_now

from .cleaning import clean_item_fields
from .exceptions import MalformedItemError, ParseError
from .inference import infer_item_details

logger = get_logger(__name__, component="streaming")

# Any namespace (or none)
ITEM_TAG = "{*}item"


class XmlRecordStreamer:
    """
    Converts a feed document into line-delimited NormalizedRecord JSON.

    The document is read with ``lxml.etree.iterparse`` and each ``<item>``
    is released as soon as it has been turned into a record, so memory use
    is bounded by one batch rather than by feed size. Records are written to
    the sink as soon as they are built.

    Malformed items are skipped with one run-log line each; a malformed
    document raises ParseError.
    """

    def __init__(
        self,
        fallback_domain: str,
        run_log: RunLog,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.fallback_domain = fallback_domain
        self.run_log = run_log
        self._clock = clock

    def stream(
        self,
        xml_path: Union[str, Path],
        sink: TextIO,
        feed_id: str,
        batch_size: int = 100,
    ) -> int:
        """Convert the whole document and return the number of records written."""
        total = 0
        for total in self.iter_batches(xml_path, sink, feed_id, batch_size):
            pass
        return total

    def iter_batches(
        self,
        xml_path: Union[str, Path],
        sink: TextIO,
        feed_id: str,
        batch_size: int = 100,
    ) -> Iterator[int]:
        """
        Convert the document, yielding the running record count every
        ``batch_size`` records and once more at the end.

        Each yield is a safe point for the caller to report progress or stop
        early; records written so far are flushed to the sink first.

        Raises:
            ParseError: If the XML document is not well-formed
            ValueError: If batch_size is not positive
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        logger.debug(
            f"Streaming {xml_path}",
            extra={"event": "feed.stream.started", "feed_id": feed_id, "batch_size": batch_size},
        )

        count = 0
        skipped = 0
        try:
            context = etree.iterparse(
                str(xml_path),
                events=("end",),
                tag=ITEM_TAG,
                recover=False,
                huge_tree=True,
                resolve_entities=False,
                no_network=True,
            )
            for _, element in context:
                try:
                    record = self.build_record(element, feed_id)
                except MalformedItemError as e:
                    skipped += 1
                    self.run_log.warning(
                        f"{feed_id} item skipped: {e}", event="feed.item.skipped", feed_id=feed_id
                    )
                    continue
                finally:
                    _release(element)

                sink.write(record.model_dump_json())
                sink.write("\n")
                count += 1

                if count % batch_size == 0:
                    sink.flush()
                    self.run_log.append(
                        f"Processed {count} items so far for {feed_id}",
                        event="feed.stream.batch",
                        feed_id=feed_id,
                        count=count,
                    )
                    yield count

        except etree.XMLSyntaxError as e:
            raise ParseError(f"Malformed XML in feed {feed_id}: {e}", feed_id=feed_id) from e

        sink.flush()
        self.run_log.append(
            f"Processed {count} items for {feed_id}",
            event="feed.stream.completed",
            feed_id=feed_id,
            count=count,
            skipped=skipped,
        )
        yield count

    def build_record(self, element: etree._Element, feed_id: str) -> NormalizedRecord:
        """
        Build a NormalizedRecord from one ``<item>`` element.

        Raises:
            MalformedItemError: If the item has no usable fields, GUID or title,
                or a value that cannot be converted
        """
        raw_fields = collect_fields(element)
        if not any(value.strip() for value in raw_fields.values()):
            raise MalformedItemError("No fields collected")

        fields = clean_item_fields(raw_fields)

        guid = fields.get("guid", "")
        if not guid:
            link = fields.get("applylink") or fields.get("link")
            if not link:
                raise MalformedItemError("missing guid")
            guid = derive_guid(feed_id, link)

        if not (fields.get("functiontitle") or fields.get("title")):
            raise MalformedItemError("missing title")

        try:
            details = infer_item_details(fields, guid, self.fallback_domain)
            return NormalizedRecord(
                guid=guid,
                feed_id=feed_id,
                fingerprint=compute_fingerprint({"guid": guid, **details}),
                last_seen_at=self._clock(),
                source_updated_at=parse_feed_datetime(
                    fields.get("updated") or fields.get("pubdate")
                ),
                source_fields=fields,
                **details,
            )
        except ValidationError as e:
            raise MalformedItemError(f"invalid record ({e.error_count()} errors)") from e
        except (ValueError, OverflowError, TypeError) as e:
            raise MalformedItemError(f"unusable value: {e}") from e


def collect_fields(element: etree._Element) -> Dict[str, str]:
    """Map each child element's local name (lower-cased) to its inner XML."""
    fields: Dict[str, str] = {}
    for child in element:
        if not isinstance(child.tag, str):
            # comments and processing instructions
            continue
        name = etree.QName(child).localname.lower()
        fields[name] = inner_xml(child)
    return fields


def inner_xml(element: etree._Element) -> str:
    """Text plus serialized children, like a DOM ``innerXML``."""
    parts = [element.text or ""]
    for child in element:
        parts.append(etree.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


def _release(element: etree._Element) -> None:
    """Free an item and any already-processed siblings."""
    element.clear(keep_tail=True)
    parent: Optional[etree._Element] = element.getparent()
    if parent is None:
        return
    while element.getprevious() is not None:
        del parent[0]
