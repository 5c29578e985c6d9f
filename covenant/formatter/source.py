"""
Raw crawl record accessor.

Raw exports written by older crawls may lack derived fields; ``RawPage``
prefers what the record carries and otherwise derives the value once from
``rawHtml``.
"""

from functools import cached_property
from typing import Any, Dict, List, Optional

from ..extract import page as extractors
from ..extract.dom import Document
from ..extract.escape_room import extract_general_data, extract_scoring
from .text import normalize_whitespace


def _non_empty_list(value: Any) -> Optional[List]:
    return value if isinstance(value, list) and value else None


class RawPage:
    """Read-only view over one raw crawl record"""

    def __init__(self, record: Dict):
        self.record = record if isinstance(record, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.record.get(key, default)

    @property
    def url(self) -> Optional[str]:
        url = self.record.get("url")
        return url if isinstance(url, str) else None

    @property
    def status(self) -> Optional[int]:
        return self.record.get("status")

    @property
    def content_type(self) -> str:
        value = self.record.get("contentType")
        return value.lower() if isinstance(value, str) else ""

    @property
    def is_asset(self) -> bool:
        return self.content_type.startswith("image/")

    @cached_property
    def dom(self) -> Optional[Document]:
        html = self.record.get("rawHtml")
        if not isinstance(html, str) or not html:
            return None
        return Document(html)

    @cached_property
    def language(self) -> Optional[str]:
        language = normalize_whitespace(self.record.get("language"))
        if language:
            return language
        return normalize_whitespace(extractors.extract_language(self.dom)) if self.dom else None

    @cached_property
    def text_content(self) -> Optional[str]:
        text = normalize_whitespace(self.record.get("textContent"))
        if text:
            return text
        return extractors.extract_text_content(self.dom) if self.dom else None

    @cached_property
    def sections(self) -> List[Dict]:
        existing = _non_empty_list(self.record.get("sections"))
        if existing is not None:
            return existing
        return extractors.extract_sections(self.dom) if self.dom else []

    @cached_property
    def outline(self) -> List[Dict]:
        existing = _non_empty_list(self.record.get("outline"))
        if existing is not None:
            return existing
        return extractors.extract_outline(self.dom) if self.dom else []

    @cached_property
    def json_ld(self) -> List:
        existing = _non_empty_list(self.record.get("jsonLd"))
        if existing is not None:
            return existing
        return extractors.extract_json_ld(self.dom) if self.dom else []

    @cached_property
    def content_blocks(self) -> List[Dict]:
        existing = _non_empty_list(self.record.get("contentBlocks"))
        if existing is not None:
            return existing
        return extractors.extract_content_blocks(self.dom, self.url) if self.dom else []

    @cached_property
    def general_data(self) -> Optional[Dict]:
        if "escapeRoomGeneralData" in self.record:
            return self.record.get("escapeRoomGeneralData")
        return extract_general_data(self.dom, self.url) if self.dom else None

    @cached_property
    def scoring(self) -> Optional[Dict]:
        if "escapeRoomScoring" in self.record:
            return self.record.get("escapeRoomScoring")
        return extract_scoring(self.dom) if self.dom else None

    @property
    def images(self) -> List[Dict]:
        return [image for image in self.record.get("images") or [] if isinstance(image, dict)]

    @property
    def links(self) -> List[Dict]:
        return [link for link in self.record.get("links") or [] if isinstance(link, dict)]

    @property
    def meta(self) -> Any:
        return self.record.get("meta")
