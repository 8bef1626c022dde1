"""Streaming conversion of feed XML into normalized records."""

from .cleaning import clean_html, clean_item_fields, clean_text, clean_title
from .exceptions import MalformedItemError, ParseError
from .inference import infer_item_details
from .mappings import estimate_salary, icon_for, lookup_province_domain
from .streamer import XmlRecordStreamer

__all__ = [
    "XmlRecordStreamer",
    "ParseError",
    "MalformedItemError",
    "clean_text",
    "clean_html",
    "clean_title",
    "clean_item_fields",
    "infer_item_details",
    "lookup_province_domain",
    "estimate_salary",
    "icon_for",
]
