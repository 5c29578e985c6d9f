"""
GenericEntry projection of formatted pages
"""

from typing import Dict, Iterable, List, Optional

from ..crawl.url_utils import path_parts
from .classify import derive_tags, infer_page_type
from .text import normalize_for_comparison, normalize_whitespace, prune_empty, slugify


def derive_slug(url: Optional[str]) -> str:
    parts = path_parts(url)
    if not parts:
        return "home"
    explicit = slugify(parts[-1])
    if explicit:
        return explicit
    combined = "-".join(filter(None, (slugify(part) for part in parts)))
    return combined or "page"


def build_path(parts: List[str]) -> str:
    return "/" + "/".join(parts) if parts else "/"


def _number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.replace(",", "."))
        except ValueError:
            return None
    return None


def build_profile(general: Optional[Dict]) -> Optional[Dict]:
    if not isinstance(general, dict):
        return None
    profile = prune_empty({
        "category": normalize_whitespace(general.get("category")),
        "province": normalize_whitespace(general.get("province")),
        "durationMinutes": general.get("durationMinutes") if isinstance(general.get("durationMinutes"), int) else None,
        "durationText": normalize_whitespace(general.get("durationText")),
        "playersText": normalize_whitespace(general.get("playersText")),
        "minPlayers": general.get("minPlayers") if isinstance(general.get("minPlayers"), int) else None,
        "maxPlayers": general.get("maxPlayers") if isinstance(general.get("maxPlayers"), int) else None,
        "webUrl": general.get("webLink"),
        "rawHtml": general.get("raw") if isinstance(general.get("raw"), str) else None,
    })
    return profile or None


def build_scores(scoring: Optional[Dict]) -> Optional[Dict]:
    """``{categories, overall, rawHtml}``; ``overall`` is the category labelled global"""
    if not isinstance(scoring, dict):
        return None
    categories = []
    overall = None
    for key, value in scoring.items():
        if key in ("rawHtml", "extractionDebug") or not isinstance(value, dict):
            continue
        label = normalize_whitespace(value.get("label")) or key
        score = prune_empty({
            "id": slugify(key) or key,
            "label": label,
            "value": _number(value.get("value")),
            "max": _number(value.get("max")),
            "ratio": _number(value.get("ratio")),
        })
        if not score:
            continue
        if overall is None and "global" in (normalize_for_comparison(label) or ""):
            overall = score
        categories.append(score)

    categories.sort(key=lambda score: score.get("label") or "")
    result = prune_empty({
        "categories": categories,
        "overall": overall,
        "rawHtml": scoring.get("rawHtml") if isinstance(scoring.get("rawHtml"), str) else None,
    })
    return result or None


def build_generic_entry(page: Dict, include_types: Optional[Iterable[str]] = None) -> Optional[Dict]:
    """Project a formatted page; ``None`` when its type is filtered out"""
    if not page:
        return None
    url = page.get("url") or page.get("sourceUrl")
    parts = path_parts(url)
    page_type = infer_page_type(page)
    if include_types is not None and page_type.lower() not in set(include_types):
        return None

    paragraphs = page.get("paragraphs") if isinstance(page.get("paragraphs"), list) else []
    summary = page.get("metaDescription") or (paragraphs[0] if paragraphs else None)

    tags = derive_tags(page, page_type, parts)
    scores = build_scores(page.get("escapeRoomScoring"))
    if scores and "escape-room" not in tags:
        tags.append("escape-room")

    meta = prune_empty({
        "originalUrl": page.get("url"),
        "sourceUrls": page.get("sourceUrls"),
        "wordCount": page.get("wordCount"),
        "readingTimeMinutes": page.get("readingTimeMinutes"),
        "fetchedAt": page.get("fetchedAt"),
        "status": page.get("status"),
        "contentType": page.get("contentType"),
    })

    return prune_empty({
        "type": page_type,
        "slug": derive_slug(url),
        "path": build_path(parts),
        "title": page.get("title"),
        "summary": normalize_whitespace(summary),
        "bodyHtml": page.get("contentHtml"),
        "bodyText": "\n\n".join(paragraphs) or None,
        "tags": tags,
        "featuredImage": page.get("coverImage"),
        "gallery": page.get("images") or None,
        "profile": build_profile(page.get("escapeRoomGeneralData")),
        "scores": scores,
        "meta": meta or None,
    })


def entry_sort_key(entry: Dict):
    return (entry.get("path") or "", entry.get("slug") or "", entry.get("type") or "")


def group_by_type(entries: Iterable[Dict]) -> Dict[str, List[Dict]]:
    groups: Dict[str, List[Dict]] = {}
    for entry in entries:
        raw = entry.get("type")
        key = raw.strip().lower() if isinstance(raw, str) and raw.strip() else "unknown"
        groups.setdefault(key, []).append(entry)
    return groups
