"""
Page type classification and tag derivation
"""

from typing import Dict, Iterable, List, Set

from ..crawl.url_utils import path_parts
from .pages import EVENT_SLUGS
from .text import slugify

PAGE_TYPES = (
    "article",
    "blogPost",
    "blogIndex",
    "review",
    "escapeRoomReview",
    "escapeRoomProfile",
    "event",
    "ranking",
    "landing",
    "page",
    "section",
    "unknown",
)


def json_ld_types(json_ld: Iterable[Dict]) -> Set[str]:
    """Lower-cased ``type`` values of the JSON-LD summaries"""
    types = set()
    for entry in json_ld or []:
        raw = entry.get("type") if isinstance(entry, dict) else None
        if not raw:
            continue
        for item in str(raw).split(","):
            item = item.strip().lower()
            if item:
                types.add(item)
    return types


def infer_page_type(page: Dict) -> str:
    """Priority-ordered decision list; the first matching rule wins"""
    parts = [part.lower() for part in path_parts(page.get("url") or page.get("sourceUrl"))]
    title = (page.get("title") or "").lower()
    types = json_ld_types(page.get("jsonLd"))

    if page.get("escapeRoomScoring"):
        return "escapeRoomReview"
    if page.get("escapeRoomGeneralData"):
        return "escapeRoomProfile"
    if "review" in types or "criticreview" in types:
        return "review"
    if "blogposting" in types:
        return "blogPost" if len(parts) > 1 else "article"
    if "article" in types:
        return "article" if len(parts) > 1 else "page"
    if parts and parts[0] in EVENT_SLUGS:
        return "event"
    if parts and parts[0] == "blog":
        return "blogIndex" if len(parts) == 1 else "blogPost"
    if "escape room" in title:
        return "escapeRoomReview"
    if any("ranking" in part for part in parts):
        return "ranking"
    if not parts:
        return "landing"
    return "page" if len(parts) == 1 else "section"


def derive_tags(page: Dict, page_type: str, parts: List[str]) -> List[str]:
    """Union of type tags, parent path segments, top headings, JSON-LD types and category"""
    tags: List[str] = []

    def add(tag):
        if tag and tag.lower() not in tags:
            tags.append(tag.lower())

    if page_type in ("blogPost", "blogIndex"):
        add("blog")
    if page_type in ("escapeRoomReview", "review"):
        add("review")
    if page.get("escapeRoomScoring") or page_type == "escapeRoomReview":
        add("escape-room")
    if page_type == "event":
        add("eventos")
        add("event")

    for part in parts[:-1]:
        add(slugify(part))

    for heading in (page.get("headings") or [])[:3]:
        if isinstance(heading, dict):
            add(slugify(heading.get("text")))

    for entry in page.get("jsonLd") or []:
        raw = entry.get("type") if isinstance(entry, dict) else None
        if raw:
            for item in str(raw).split(","):
                add(slugify(item))

    general = page.get("escapeRoomGeneralData")
    if isinstance(general, dict):
        add(slugify(general.get("category")))

    return tags
