"""
Main-content slicing and content-section building.

A page's content blocks run from the first heading (or first non-empty
block) up to the first stop heading such as "últimos posts" or a social
call-to-action. Breadcrumb lists are dropped wherever they appear. Images
and links are then kept only if their URL literally appears in the HTML of
the sliced blocks, which excludes sidebar, footer and navigation assets.
"""

import re
from typing import Dict, Iterable, List, Optional
from urllib.parse import unquote, urlparse

from ..crawl.url_utils import to_absolute_url
from ..extract.dom import Document
from .text import normalize_for_comparison, normalize_whitespace, prune_empty

STOP_HEADING_PATTERNS = (
    "ultimos posts",
    "contacta",
    "suscribete",
    "newsletter",
    "instagram",
    "facebook",
    "twitter",
    "youtube",
    "twitch",
)

_HEADING_TAG = re.compile(r"^h[1-6]$", re.IGNORECASE)


def block_tag(block: Dict) -> Optional[str]:
    tag = block.get("tag") if isinstance(block, dict) else None
    return tag.lower() if isinstance(tag, str) else None


def is_heading(tag: Optional[str]) -> bool:
    return bool(tag and _HEADING_TAG.match(tag))


def is_breadcrumb(block: Dict) -> bool:
    if block_tag(block) not in ("ul", "ol"):
        return False
    text = normalize_for_comparison(block.get("text"))
    return bool(text and text.startswith("home /"))


def is_stop_block(block: Dict) -> bool:
    if not is_heading(block_tag(block)):
        return False
    text = normalize_for_comparison(block.get("text"))
    if not text:
        return False
    return any(pattern in text for pattern in STOP_HEADING_PATTERNS)


def main_content_blocks(blocks: Iterable[Dict]) -> List[Dict]:
    blocks = [block for block in blocks or [] if isinstance(block, dict)]
    if not blocks:
        return []

    start = next(
        (i for i, block in enumerate(blocks)
         if is_heading(block_tag(block)) and normalize_whitespace(block.get("text"))),
        None,
    )
    if start is None:
        start = next((i for i, block in enumerate(blocks) if normalize_whitespace(block.get("text"))), None)
        if start is None:
            return []

    sliced = blocks[start:]
    for index in range(1, len(sliced)):
        if is_stop_block(sliced[index]):
            return sliced[:index]
    return sliced


def blocks_html(blocks: Iterable[Dict]) -> str:
    return "\n".join(
        block.get("html") for block in blocks
        if not is_breadcrumb(block) and block.get("html")
    )


def extract_paragraphs(blocks: Iterable[Dict]) -> List[str]:
    paragraphs = []
    for block in blocks:
        tag = block_tag(block)
        if is_heading(tag) or is_breadcrumb(block):
            continue
        if tag in ("p", "blockquote", "pre"):
            text = normalize_whitespace(block.get("text"))
            if text:
                paragraphs.append(text)
        elif tag in ("ul", "ol"):
            for item in block.get("items") or []:
                text = normalize_whitespace(item)
                if text:
                    paragraphs.append(text)
    return paragraphs


def _image_in_paragraph(html: str, page_url: Optional[str]) -> Optional[Dict]:
    fragment = Document(html)
    img = fragment.select_one("img[src]")
    if img is None:
        return None
    url = to_absolute_url(img.attr("src"), page_url)
    if not url:
        return None
    alt = normalize_whitespace(img.attr("alt"))
    img.element.decompose()
    return prune_empty({
        "type": "image",
        "url": url,
        "alt": alt,
        "caption": normalize_whitespace(fragment.text()),
    })


def _embed(html: str) -> Optional[Dict]:
    iframe = Document(html).select_one("iframe[src]")
    if iframe is None:
        return None
    return {"type": "embed", "html": iframe.outer_html()}


def build_content_sections(blocks: Iterable[Dict], page_url: Optional[str] = None) -> List[Dict]:
    """Turn content blocks into heading/paragraph/quote/image/embed sections"""
    sections = []
    for block in blocks:
        if not isinstance(block, dict) or is_breadcrumb(block):
            continue
        if is_stop_block(block):
            break
        tag = block_tag(block)
        html = block.get("html") if isinstance(block.get("html"), str) else None

        if is_heading(tag):
            text = normalize_whitespace(block.get("text"))
            if text:
                sections.append({"type": "heading", "text": text})
            continue

        if html and "<iframe" in html:
            embed = _embed(html)
            if embed:
                sections.append(embed)
                continue

        if tag == "p" and html and "<img" in html:
            image = _image_in_paragraph(html, page_url)
            if image:
                sections.append(image)
                continue

        if tag in ("p", "blockquote"):
            text = normalize_whitespace(block.get("text"))
            if text:
                sections.append({"type": "quote" if tag == "blockquote" else "paragraph", "text": text})
            continue

        if tag == "figure" and isinstance(block.get("image"), dict):
            url = to_absolute_url(block["image"].get("src"), page_url)
            if url:
                sections.append(prune_empty({
                    "type": "image",
                    "url": url,
                    "alt": normalize_whitespace(block["image"].get("alt")),
                    "caption": normalize_whitespace(block.get("caption")),
                }))
            continue

        if tag in ("ul", "ol"):
            for item in block.get("items") or []:
                text = normalize_whitespace(item)
                if text:
                    sections.append({"type": "paragraph", "text": text})
    return sections


def _url_variants(raw: str) -> List[str]:
    variants = [raw, raw.replace("&", "&amp;")]
    decoded = unquote(raw)
    variants.extend([decoded, decoded.replace("&", "&amp;")])
    return variants


def html_search_tokens(value: Optional[str]) -> List[str]:
    """Spellings under which a URL may appear inside an HTML attribute"""
    if not value:
        return []
    tokens = [value, value.replace("&", "&amp;")]

    target = None
    if re.match(r"^https?:", value, re.IGNORECASE):
        target = value
    elif value.startswith("//"):
        target = f"https:{value}"

    if target:
        try:
            parsed = urlparse(target)
        except ValueError:
            parsed = None
        if parsed is not None and parsed.netloc:
            path_query = parsed.path + (f"?{parsed.query}" if parsed.query else "")
            tokens.extend(_url_variants(path_query))
            tokens.extend(_url_variants(f"{parsed.scheme}://{parsed.netloc}{path_query}"))
    elif value.startswith("/"):
        tokens.extend(_url_variants(value))

    seen = []
    for token in tokens:
        if token and token not in seen:
            seen.append(token)
    return seen


def attribute_in_html(html: str, attribute: str, value: Optional[str]) -> bool:
    if not html or not value:
        return False
    return any(
        f'{attribute}="{token}"' in html or f"{attribute}='{token}'" in html
        for token in html_search_tokens(value)
    )


def filter_images(images: Iterable[Dict], content_html: str) -> List[Dict]:
    if not content_html:
        return []
    return [
        image for image in images
        if attribute_in_html(content_html, "src", image.get("src") or image.get("dataSrc"))
    ]


def filter_links(links: Iterable[Dict], content_html: str) -> List[Dict]:
    if not content_html:
        return []
    return [
        link for link in links
        if attribute_in_html(content_html, "href", link.get("href") or link.get("normalizedHref"))
    ]
