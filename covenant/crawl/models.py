"""
Data models for the crawler
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FetchResponse:
    """Successful transport response"""
    url: str
    status: int
    body: Optional[str]
    headers: Dict[str, str] = field(default_factory=dict)
    content: Optional[bytes] = None
    oversized: bool = False

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> Optional[str]:
        return self.headers.get("content-length")


@dataclass
class ImageDownloadResult:
    """Outcome of one image mirroring attempt"""
    url: Optional[str]
    local_path: Optional[str] = None
    skipped: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.local_path is not None and not self.error

    def to_dict(self) -> Dict:
        data = {"url": self.url}
        if self.local_path:
            data["localPath"] = self.local_path
        if self.skipped:
            data["skipped"] = self.skipped
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class CrawlRecord:
    """One fetch attempt result, successful or failed"""
    url: str
    status: Optional[int]
    fetched_at: str
    content_type: Optional[str] = None
    raw_html: Optional[str] = None
    error: Optional[str] = None
    content_length: Optional[str] = None
    title: Optional[str] = None
    language: Optional[str] = None
    meta_description: Optional[str] = None
    canonical_url: Optional[str] = None
    meta: List[Dict] = field(default_factory=list)
    feeds: List[Dict] = field(default_factory=list)
    links: List[Dict] = field(default_factory=list)
    images: List[Dict] = field(default_factory=list)
    media: Dict[str, List] = field(default_factory=lambda: {"videos": [], "audio": [], "iframes": []})
    outline: List[Dict] = field(default_factory=list)
    sections: List[Dict] = field(default_factory=list)
    content_blocks: List[Dict] = field(default_factory=list)
    text_content: Optional[str] = None
    json_ld: List[Any] = field(default_factory=list)
    stylesheets: List[str] = field(default_factory=list)
    scripts: List[str] = field(default_factory=list)
    escape_room_general_data: Optional[Dict] = None
    escape_room_scoring: Optional[Dict] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def internal_links(self) -> List[str]:
        """Normalized same-site hrefs, deduplicated in document order"""
        seen = []
        for link in self.links:
            href = link.get("normalizedHref")
            if link.get("internal") and href and href not in seen:
                seen.append(href)
        return seen

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        if self.failed:
            return {
                "url": self.url,
                "status": self.status,
                "error": self.error,
                "fetchedAt": self.fetched_at,
                "contentType": self.content_type,
                "rawHtml": self.raw_html,
            }
        return {
            "url": self.url,
            "status": self.status,
            "fetchedAt": self.fetched_at,
            "contentType": self.content_type,
            "contentLength": self.content_length,
            "title": self.title,
            "language": self.language,
            "metaDescription": self.meta_description,
            "canonicalUrl": self.canonical_url,
            "meta": self.meta,
            "feeds": self.feeds,
            "links": self.links,
            "images": self.images,
            "media": self.media,
            "outline": self.outline,
            "sections": self.sections,
            "contentBlocks": self.content_blocks,
            "textContent": self.text_content,
            "jsonLd": self.json_ld,
            "stylesheets": self.stylesheets,
            "scripts": self.scripts,
            "escapeRoomGeneralData": self.escape_room_general_data,
            "escapeRoomScoring": self.escape_room_scoring,
            "rawHtml": self.raw_html,
        }
