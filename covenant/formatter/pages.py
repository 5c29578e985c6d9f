"""
Per-page formatting: canonical URL, preference score and the formatted page
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlparse, urlunparse

from ..crawl.url_utils import path_parts, strip_www
from ..extract.page import flatten_outline, image_sources_in_html, meta_lookup
from .content import (
    blocks_html,
    build_content_sections,
    extract_paragraphs,
    filter_images,
    filter_links,
    main_content_blocks,
)
from .source import RawPage
from .text import decode_entities, normalize_whitespace, prune_empty, strip_html, word_count

WORDS_PER_MINUTE = 180
SITE_DOMAIN = "thecovenant.es"
EVENT_SLUGS = frozenset({
    "the-covenant-cases",
    "games-university",
    "gymkhana-literaria-litcon-madrid",
})


def estimate_reading_time(words: int) -> Optional[int]:
    if not words:
        return None
    return max(1, math.floor(words / WORDS_PER_MINUTE + 0.5))


def canonical_url(page: RawPage, primary_url: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Resolve ``(url, source_url)`` for a raw record.

    The canonical URL (or the fetched URL) is resolved against the primary
    start URL and same-site hosts, ``www.`` or not, are coerced to the
    primary's scheme and hostname. ``source_url`` is the fetched URL when it
    differs from the result.
    """
    raw = page.get("canonicalUrl") or page.url
    fetched = page.url
    if not raw:
        return None, None

    primary = urlparse(primary_url) if primary_url else None
    if primary is not None and not primary.netloc:
        primary = None

    try:
        if primary is not None:
            resolved = urlparse(urljoin(primary_url, raw))
        elif fetched and fetched.lower().startswith(("http:", "https:")):
            resolved = urlparse(urljoin(fetched, raw))
        else:
            resolved = urlparse(raw)
    except ValueError:
        return raw, None
    if not resolved.scheme or not resolved.netloc:
        return raw, None

    if primary is not None and strip_www(resolved.hostname) == strip_www(primary.hostname):
        netloc = primary.hostname
        if resolved.port:
            netloc = f"{netloc}:{resolved.port}"
        resolved = resolved._replace(scheme=primary.scheme, netloc=netloc)
    if not resolved.path:
        resolved = resolved._replace(path="/")

    url = urlunparse(resolved._replace(fragment=""))
    source_url = fetched if fetched and fetched != url else None
    return url, source_url


def preference_score(page: RawPage, primary_host: Optional[str]) -> int:
    """Higher scores are processed first during reconciliation"""
    url = page.url or ""
    score = 0
    if url.startswith("https://"):
        score += 2
    if url.startswith("http://"):
        score += 1
    if "www." in url:
        score += 1
    if primary_host:
        try:
            hostname = urlparse(url).hostname
        except ValueError:
            hostname = None
        if hostname and strip_www(hostname) == strip_www(primary_host):
            score += 1
    if page.status == 200:
        score += 1
    return score


def split_text_content(text: Optional[str]) -> List[str]:
    if not isinstance(text, str):
        return []
    chunks = (normalize_whitespace(decode_entities(chunk)) for chunk in text.split("\n"))
    return [chunk for chunk in chunks if chunk]


def select_cover_image(images: List[Dict], meta: Dict[str, str]) -> Tuple[Optional[Dict], Optional[List[Dict]]]:
    """Twitter card image, else Open Graph image, else the first image"""
    featured = None
    candidate_url = None
    candidate_alt = None
    if meta.get("twitter:image"):
        candidate_url = meta["twitter:image"]
        candidate_alt = meta.get("twitter:title") or meta.get("description")
    elif meta.get("og:image"):
        candidate_url = meta["og:image"]
        candidate_alt = meta.get("og:title") or meta.get("description")

    valid = [image for image in images if image.get("src")]
    if candidate_url:
        match = next((image for image in valid if image.get("src") == candidate_url), None)
        featured = {
            "url": candidate_url,
            "alt": (match.get("alt") if match else None) or candidate_alt,
        }
    elif valid:
        featured = {"url": valid[0]["src"], "alt": valid[0].get("alt")}

    if featured:
        gallery = [image for image in valid if image.get("src") != featured["url"]]
    else:
        gallery = valid[1:]
    return prune_empty(featured) if featured else None, gallery or None


def simplify_images(images: Iterable[Dict]) -> List[Dict]:
    seen = set()
    result = []
    for image in images:
        src = image.get("src")
        if not src or src in seen:
            continue
        seen.add(src)
        result.append(prune_empty({
            "src": src,
            "alt": normalize_whitespace(image.get("alt")),
            "title": normalize_whitespace(image.get("title")),
        }))
    return result


def categorize_links(links: Iterable[Dict]) -> Dict[str, List[Dict]]:
    internal, external = [], []
    seen = set()
    for link in links:
        href = link.get("href") or link.get("normalizedHref")
        if not href:
            continue
        text = normalize_whitespace(link.get("text"))
        key = f"{href}::{text or ''}"
        if key in seen:
            continue
        seen.add(key)
        payload = {"href": href, "text": text, "title": normalize_whitespace(link.get("title"))}
        is_absolute = href.lower().startswith(("http://", "https://"))
        if link.get("internal") is False or (is_absolute and SITE_DOMAIN not in href):
            external.append(payload)
        else:
            internal.append(payload)
    return {"internal": internal, "external": external}


def summarize_json_ld(items: Iterable) -> List[Dict]:
    """``{type, name, description, url}`` per JSON-LD node, ``@graph`` flattened"""
    summaries = []
    for entry in _json_ld_nodes(items):
        raw_type = entry.get("@type")
        summary = prune_empty({
            "type": ", ".join(str(t) for t in raw_type) if isinstance(raw_type, list) else raw_type,
            "name": normalize_whitespace(entry.get("name") or entry.get("headline")),
            "description": normalize_whitespace(entry.get("description")),
            "url": entry.get("url") or entry.get("@id"),
        })
        if summary:
            summaries.append(summary)
    return summaries


def _json_ld_nodes(items: Iterable):
    for entry in items or []:
        if isinstance(entry, list):
            yield from _json_ld_nodes(entry)
        elif isinstance(entry, dict):
            graph = entry.get("@graph")
            if isinstance(graph, list):
                yield from _json_ld_nodes(graph)
                if "@type" not in entry:
                    continue
            yield entry


def simplify_sections(sections: Iterable[Dict]) -> List[Dict]:
    result = []
    for section in sections:
        if not isinstance(section, dict):
            continue
        html = section.get("html") or ""
        data = prune_empty({
            "id": section.get("id"),
            "className": section.get("className"),
            "text": normalize_whitespace(section.get("text")) or normalize_whitespace(strip_html(html)),
            "images": image_sources_in_html(html),
        })
        if data:
            result.append(data)
    return result


def format_page(page: RawPage, primary_url: Optional[str] = None) -> Dict:
    """Build the formatted page for one raw document record"""
    blocks = main_content_blocks(page.content_blocks)
    paragraphs = extract_paragraphs(blocks)
    if not paragraphs:
        paragraphs = split_text_content(page.text_content)

    content_html = blocks_html(blocks)
    images = filter_images(page.images, content_html)
    links = filter_links(page.links, content_html)

    words = sum(word_count(paragraph) for paragraph in paragraphs)
    url, source_url = canonical_url(page, primary_url)
    parts = [part.lower() for part in path_parts(url or source_url)]

    meta_description = normalize_whitespace(page.get("metaDescription"))
    lead = paragraphs[0] if paragraphs else None
    cover_image, _ = select_cover_image(images, meta_lookup(page.meta if isinstance(page.meta, list) else []))
    sections = build_content_sections(blocks, url)

    payload = {
        "url": url,
        "sourceUrl": source_url,
        "status": page.status,
        "fetchedAt": page.get("fetchedAt"),
        "contentType": page.get("contentType"),
        "title": normalize_whitespace(page.get("title")),
        "metaDescription": meta_description,
        "description": meta_description or lead,
        "excerpt": lead or meta_description,
        "language": page.language,
        "wordCount": words or None,
        "readingTimeMinutes": estimate_reading_time(words),
        "coverImage": cover_image,
        "contentHtml": content_html,
        "headings": flatten_outline(page.outline),
        "sections": sections or simplify_sections(page.sections),
        "paragraphs": paragraphs,
        "images": simplify_images(images),
        "links": categorize_links(links),
        "jsonLd": summarize_json_ld(page.json_ld),
        "escapeRoomGeneralData": page.general_data,
        "escapeRoomScoring": page.scoring,
        "meta": page.meta,
    }

    if parts and parts[0] in EVENT_SLUGS:
        payload["category"] = "Eventos"
        payload["section"] = "Eventos"
        payload["tags"] = ["eventos", "event"]

    return prune_empty(payload)


def format_asset(page: RawPage, primary_url: Optional[str] = None) -> Dict:
    url, source_url = canonical_url(page, primary_url)
    return prune_empty({
        "url": url,
        "sourceUrl": source_url,
        "status": page.status,
        "fetchedAt": page.get("fetchedAt"),
        "contentType": page.get("contentType"),
        "title": normalize_whitespace(page.get("title")),
    })


def minimal_page(page: RawPage, primary_url: Optional[str] = None) -> Dict:
    """Fallback record for a page whose formatting failed"""
    record = format_asset(page, primary_url)
    record["error"] = page.get("error") or "formatting failed"
    return record
