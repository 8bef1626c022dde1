"""Text cleaning for raw feed item fields."""

import html
import re
from typing import Dict, Mapping, Optional

HTML_FIELDS = (
    "description",
    "functiondescription",
    "offerdescription",
    "requirementsdescription",
    "companydescription",
)
TITLE_FIELDS = ("functiontitle", "title")

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")
_STYLE_ATTR_RE = re.compile(r"""\s*style\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)
_EVENT_ATTR_RE = re.compile(r"""\s+on[a-z]+\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)
_UNSAFE_BLOCK_RE = re.compile(
    r"<(script|style|iframe|object)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_EMOJI_RE = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\U00002702-\U000027B0"
    "\U000024C2"
    "\U0001F250-\U0001F251"
    "\U0001F900-\U0001F9FF"
    "\U0001FA70-\U0001FAFF"
    "]"
)
_GENDER_SUFFIX_RE = re.compile(r"\s+\(?(?:m/v|m/f|h/f)(?:/x)?\)?\s*$", re.IGNORECASE)


def clean_text(value: Optional[str]) -> str:
    """Decode entities, drop control characters and collapse whitespace."""
    if not value:
        return ""
    text = html.unescape(value)
    text = _CONTROL_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_html(value: Optional[str]) -> str:
    """Clean an HTML description field while keeping its markup.

    Inline styles, event handlers, script-like blocks and emoji are removed;
    non-breaking spaces become plain spaces.
    """
    if not value:
        return ""
    content = html.unescape(value)
    content = _CONTROL_RE.sub("", content)
    content = _UNSAFE_BLOCK_RE.sub("", content)
    content = _STYLE_ATTR_RE.sub("", content)
    content = _EVENT_ATTR_RE.sub("", content)
    content = _EMOJI_RE.sub("", content)
    content = content.replace("\xa0", " ")
    return content.strip()


def clean_title(value: Optional[str]) -> str:
    """Clean a title and strip a trailing gender marker such as ``(m/v/x)``."""
    return _GENDER_SUFFIX_RE.sub("", clean_text(value)).strip()


def clean_item_fields(fields: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """Return a cleaned copy of an item's raw field values.

    HTML fields keep markup (see ``clean_html``), title fields lose gender
    markers, everything else is plain-text cleaned. HTML fields are always
    present in the result, empty when the item lacks them.
    """
    cleaned: Dict[str, str] = {}
    for name, value in fields.items():
        if name in HTML_FIELDS:
            cleaned[name] = clean_html(value)
        elif name in TITLE_FIELDS:
            cleaned[name] = clean_title(value)
        else:
            cleaned[name] = clean_text(value)
    for name in HTML_FIELDS:
        cleaned.setdefault(name, "")
    return cleaned


def strip_tags(value: str) -> str:
    """Plain-text rendition of an HTML fragment."""
    return clean_text(re.sub(r"<[^>]+>", " ", value or ""))
