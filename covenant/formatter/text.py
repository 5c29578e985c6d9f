"""
Text helpers shared by the formatter
"""

import re
import unicodedata
from typing import Any, Dict, Optional

_WHITESPACE = re.compile(r"\s+")
_TAG = re.compile(r"<[^>]+>")
_ENTITY = re.compile(r"&(nbsp|amp|quot|#39|lt|gt);")
_NON_SLUG = re.compile(r"[^a-z0-9]+")

ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&quot;": '"',
    "&#39;": "'",
    "&lt;": "<",
    "&gt;": ">",
}


def normalize_whitespace(value: Any) -> Optional[str]:
    """Collapse whitespace; empty or non-string input yields ``None``"""
    if not isinstance(value, str):
        return None
    return _WHITESPACE.sub(" ", value).strip() or None


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_for_comparison(value: Any) -> Optional[str]:
    normalized = normalize_whitespace(value)
    if not normalized:
        return None
    return strip_accents(normalized).lower()


def decode_entities(text: Any) -> Optional[str]:
    if not isinstance(text, str):
        return None
    return _ENTITY.sub(lambda match: ENTITIES.get(match.group(0), match.group(0)), text)


def strip_html(html: Any) -> Optional[str]:
    if not isinstance(html, str):
        return None
    return decode_entities(_TAG.sub(" ", html))


def slugify(segment: Any) -> Optional[str]:
    if not segment or not isinstance(segment, str):
        return None
    cleaned = _NON_SLUG.sub("-", strip_accents(segment).lower()).strip("-")
    return cleaned or None


def word_count(text: str) -> int:
    return len(text.split())


def prune_empty(record: Any) -> Any:
    """Drop ``None`` values, empty strings and empty lists from a dict"""
    if not isinstance(record, dict):
        return record
    result: Dict = {}
    for key, value in record.items():
        if value is None:
            continue
        if isinstance(value, (list, str)) and len(value) == 0:
            continue
        result[key] = value
    return result
