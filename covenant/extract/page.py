"""
Generic HTML extractors

Single-pass DOM traversals that map each relevant element to a plain dict,
with ``None`` for anything absent. All functions are pure and never raise on
malformed markup.
"""

import json
import re
from typing import Dict, Iterable, List, Optional

from ..crawl.url_utils import is_same_site, normalize_url, to_absolute_url
from .dom import Document, Node, collapse

HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"
BLOCK_SELECTOR = "h1, h2, h3, h4, h5, h6, p, blockquote, pre, code, ul, ol, figure, table"
FEED_TYPE_MARKERS = ("xml", "rss", "atom", "json")


def _or_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


def extract_title(doc: Document) -> Optional[str]:
    title = doc.select_one("title")
    if title is None:
        return None
    return _or_none(title.raw_text().strip())


def extract_language(doc: Document) -> Optional[str]:
    html = doc.select_one("html")
    return _or_none(html.attr("lang")) if html is not None else None


def extract_meta_description(doc: Document) -> Optional[str]:
    node = doc.select_one('meta[name="description"]')
    return _or_none(node.attr("content")) if node is not None else None


def extract_canonical_url(doc: Document, page_url: str) -> Optional[str]:
    node = doc.select_one('link[rel="canonical"]')
    if node is None:
        return None
    return to_absolute_url(node.attr("href"), page_url)


def extract_meta_tags(doc: Document) -> List[Dict]:
    return [
        {
            "name": _or_none(node.attr("name")),
            "property": _or_none(node.attr("property")),
            "content": _or_none(node.attr("content")),
            "charset": _or_none(node.attr("charset")),
            "httpEquiv": _or_none(node.attr("http-equiv")),
        }
        for node in doc.select("meta")
    ]


def meta_lookup(meta: Iterable[Dict]) -> Dict[str, str]:
    """Flatten a meta tag list into ``name``/``property`` -> content"""
    lookup = {}
    for tag in meta or []:
        if not isinstance(tag, dict):
            continue
        content = tag.get("content")
        if not content:
            continue
        for key in (tag.get("name"), tag.get("property")):
            if key and key.lower() not in lookup:
                lookup[key.lower()] = content
    return lookup


def extract_feeds(doc: Document, page_url: str) -> List[Dict]:
    feeds = []
    for node in doc.select('link[rel="alternate"]'):
        feed_type = node.attr("type") or ""
        if any(marker in feed_type for marker in FEED_TYPE_MARKERS):
            feeds.append({
                "type": feed_type,
                "title": _or_none(node.attr("title")),
                "href": to_absolute_url(node.attr("href"), page_url),
            })
    return feeds


def extract_links(doc: Document, page_url: str, hostnames: Iterable[str]) -> List[Dict]:
    """Every ``a[href]`` with its absolute and, when internal, normalized href"""
    hostnames = set(hostnames)
    links = []
    for node in doc.select("a[href]"):
        href = to_absolute_url(node.attr("href"), page_url)
        internal = False
        normalized = None
        if href:
            internal = href.startswith(("http://", "https://")) and is_same_site(href, hostnames)
            if internal:
                normalized = normalize_url(href, page_url, hostnames)
        links.append({
            "text": _or_none(node.text()),
            "html": _or_none(node.inner_html()),
            "href": href,
            "title": _or_none(node.attr("title")),
            "rel": _or_none(node.attr("rel")),
            "target": _or_none(node.attr("target")),
            "internal": internal,
            "normalizedHref": normalized,
        })
    return links


def extract_images(doc: Document, page_url: str) -> List[Dict]:
    return [
        {
            "src": to_absolute_url(node.attr("src"), page_url),
            "srcset": _or_none(node.attr("srcset")),
            "dataSrc": _or_none(node.attr("data-src")),
            "alt": _or_none(node.attr("alt")),
            "title": _or_none(node.attr("title")),
            "width": _or_none(node.attr("width")),
            "height": _or_none(node.attr("height")),
            "loading": _or_none(node.attr("loading")),
        }
        for node in doc.select("img[src]")
    ]


def _media_sources(node: Node, page_url: str) -> List[Dict]:
    return [
        {"src": to_absolute_url(source.attr("src"), page_url), "type": _or_none(source.attr("type"))}
        for source in node.select("source[src]")
    ]


def _playback_flags(node: Node) -> Dict[str, bool]:
    return {flag: node.has_attr(flag) for flag in ("controls", "autoplay", "loop", "muted")}


def extract_media(doc: Document, page_url: str) -> Dict[str, List]:
    media = {"videos": [], "audio": [], "iframes": []}
    for node in doc.select("video"):
        video = {"poster": to_absolute_url(node.attr("poster"), page_url)}
        video.update(_playback_flags(node))
        video["sources"] = _media_sources(node, page_url)
        media["videos"].append(video)
    for node in doc.select("audio"):
        audio = _playback_flags(node)
        audio["sources"] = _media_sources(node, page_url)
        media["audio"].append(audio)
    for node in doc.select("iframe[src]"):
        media["iframes"].append({
            "src": to_absolute_url(node.attr("src"), page_url),
            "title": _or_none(node.attr("title")),
            "allow": _or_none(node.attr("allow")),
            "width": _or_none(node.attr("width")),
            "height": _or_none(node.attr("height")),
            "loading": _or_none(node.attr("loading")),
        })
    return media


def extract_json_ld(doc: Document) -> List:
    """Parsed JSON-LD payloads; invalid ones are kept as ``{error, raw}``"""
    items = []
    for node in doc.select('script[type="application/ld+json"]'):
        text = node.raw_text().strip()
        if not text:
            continue
        try:
            items.append(json.loads(text))
        except ValueError:
            items.append({"error": "Invalid JSON-LD", "raw": text})
    return items


def extract_outline(doc: Node) -> List[Dict]:
    """Headings nested into a tree by level"""
    root = doc.body() if isinstance(doc, Document) else doc
    outline: List[Dict] = []
    stack: List[Dict] = []
    for node in root.select(HEADING_SELECTOR):
        heading = {
            "level": int(node.tag[1]),
            "text": node.text(),
            "id": _or_none(node.attr("id")),
            "html": node.inner_html(),
            "children": [],
        }
        while stack and stack[-1]["level"] >= heading["level"]:
            stack.pop()
        if stack:
            stack[-1]["children"].append(heading)
        else:
            outline.append(heading)
        stack.append(heading)
    return outline


def flatten_outline(outline: Iterable[Dict]) -> List[Dict]:
    """Depth-first ``{level, text}`` list of the non-empty headings"""
    result = []
    for node in outline or []:
        if not isinstance(node, dict):
            continue
        text = collapse(node.get("text"))
        if text:
            result.append({"level": node.get("level"), "text": text})
        result.extend(flatten_outline(node.get("children") or []))
    return result


def extract_sections(doc: Document) -> List[Dict]:
    return [
        {
            "id": _or_none(node.attr("id")),
            "className": _or_none(node.attr("class")),
            "html": _or_none(node.inner_html()),
            "text": _or_none(node.text()),
        }
        for node in doc.select("section")
    ]


def content_root(doc: Document) -> Node:
    """First ``<article>``, else first ``<main>``, else ``<body>``"""
    for selector in ("article", "main"):
        node = doc.select_one(selector)
        if node is not None:
            return node
    return doc.body()


def extract_content_blocks(doc: Document, page_url: Optional[str]) -> List[Dict]:
    """Semantic blocks of the main content area in document order"""
    blocks = []
    for node in content_root(doc).select(BLOCK_SELECTOR):
        tag = node.tag
        block = {
            "tag": tag,
            "text": _or_none(node.text()),
            "html": _or_none(node.inner_html()),
        }
        if tag in ("ul", "ol"):
            block["items"] = [item.text() for item in node.children("li")]
        elif tag == "figure":
            caption = node.select_one("figcaption")
            block["caption"] = _or_none(caption.raw_text().strip()) if caption is not None else None
            img = node.select_one("img")
            if img is not None:
                block["image"] = {
                    "src": to_absolute_url(img.attr("src"), page_url),
                    "alt": _or_none(img.attr("alt")),
                    "title": _or_none(img.attr("title")),
                }
        elif tag == "table":
            block["rows"] = [
                [cell.text() for cell in row.select("th, td")]
                for row in node.select("tr")
            ]
        blocks.append(block)
    return blocks


def extract_text_content(doc: Document) -> Optional[str]:
    return _or_none(doc.body().text())


def extract_stylesheets(doc: Document, page_url: str) -> List[str]:
    return [
        url for url in (to_absolute_url(node.attr("href"), page_url) for node in doc.select('link[rel="stylesheet"]'))
        if url
    ]


def extract_scripts(doc: Document, page_url: str) -> List[str]:
    return [
        url for url in (to_absolute_url(node.attr("src"), page_url) for node in doc.select("script[src]"))
        if url
    ]


_IMG_SRC = re.compile(r"""<img[^>]*src=["']([^"'>]+)["'][^>]*>""", re.IGNORECASE)


def image_sources_in_html(html: Optional[str]) -> List[str]:
    """``src`` values of every ``<img>`` in an HTML fragment"""
    if not isinstance(html, str) or "<img" not in html:
        return []
    return _IMG_SRC.findall(html)
