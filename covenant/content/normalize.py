"""
Formatted export -> SiteContent normalization
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from ..crawl.image_downloader import local_image_path
from .models import Article, ContentSection, CoverImage, Hero, Navigation, SiteContent
from .rules import FieldRule, first_match, is_list, is_mapping, is_present, is_string

logger = logging.getLogger(__name__)

FALLBACK_SECTION_TEXT = "Contenido no disponible temporalmente."
DEFAULT_TITLE = "Sin título"
FEATURED_COUNT = 4

SITE_PREFIX = re.compile(r"^https?://(www\.)?thecovenant\.es/")
BLANK_LINES = re.compile(r"\n\n+")

DEFAULT_NAVIGATION = {
    "primary": [
        {"label": "Crónicas", "href": "/cronicas"},
        {"label": "Experiencias", "href": "/experiencias"},
        {"label": "Noticias", "href": "/noticias"},
        {"label": "Podcast", "href": "/podcast"},
    ],
    "secondary": [
        {"label": "Newsletter", "href": "/newsletter"},
        {"label": "Contacto", "href": "/contacto"},
        {"label": "Colabora", "href": "/colabora"},
    ],
}

DEFAULT_HERO = {
    "title": "Relatos ocultos, experiencias imposibles",
    "description": "La hermandad de The Covenant recopila investigaciones, crónicas y proyectos de narrativa inmersiva.",
    "cta": {"label": "Explorar relatos", "href": "/cronicas"},
}


def _reading_time(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{int(value)} min"
    return str(value)


SLUG_RULES = (
    FieldRule("slug", "slug"),
    FieldRule("path", "path"),
    FieldRule("url", "url"),
)
TITLE_RULES = (
    FieldRule("title", "title"),
    FieldRule("metaTitle", "metaTitle"),
)
DESCRIPTION_RULES = (
    FieldRule("description", "description"),
    FieldRule("excerpt", "excerpt"),
)
EXCERPT_RULES = (
    FieldRule("excerpt", "excerpt"),
    FieldRule("description", "description"),
)
COVER_RULES = (
    FieldRule("heroImage", "heroImage", is_mapping),
    FieldRule("coverImage", "coverImage", is_mapping),
)
IMAGE_URL_RULES = (
    FieldRule("url", "url", is_string),
    FieldRule("src", "src", is_string),
)
CATEGORY_RULES = (
    FieldRule("category", "category"),
    FieldRule("section", "section"),
)
TAG_RULES = (
    FieldRule("tags", "tags", is_list, lambda tags: [tag for tag in tags if isinstance(tag, str)]),
)
PUBLISHED_RULES = (
    FieldRule("publishedAt", "publishedAt"),
    FieldRule("date", "date"),
)
READING_TIME_RULES = (
    FieldRule("readingTime", "readingTime", is_present, _reading_time),
    FieldRule("meta.readingTime", "meta.readingTime", is_present, _reading_time),
    FieldRule("readingTimeMinutes", "readingTimeMinutes", is_present, _reading_time),
)
GENERAL_DATA_RULES = (FieldRule("escapeRoomGeneralData", "escapeRoomGeneralData", is_mapping, dict),)
SCORING_RULES = (FieldRule("escapeRoomScoring", "escapeRoomScoring", is_mapping, dict),)


def normalize_image_url(url: Optional[str]) -> Optional[str]:
    """Rewrite a remote image URL to the local mirror layout; unknown shapes pass through"""
    local = local_image_path(url)
    return f"/images/{local}" if local else url


def _image_section(source: Mapping, url: str, localize: bool) -> Dict:
    return {
        "type": "image",
        "url": normalize_image_url(url) if localize else url,
        "alt": source.get("alt") if isinstance(source.get("alt"), str) else None,
        "caption": source.get("caption") if isinstance(source.get("caption"), str) else None,
    }


def normalise_sections(entry: Mapping, localize_images: bool = False) -> List[Dict]:
    """Ordered section sources; the first one that yields anything wins"""
    sections: List[Dict] = []
    declared = entry.get("sections") if isinstance(entry.get("sections"), list) else []

    for section in declared:
        if isinstance(section, str):
            sections.append({"type": "paragraph", "text": section})
            continue
        if not isinstance(section, Mapping):
            continue
        kind = section.get("type")
        text = section.get("text")
        html = section.get("html")
        if kind == "image":
            url = first_match(section, IMAGE_URL_RULES)
            if url:
                sections.append(_image_section(section, url, localize_images))
        elif kind in ("heading", "paragraph", "quote") and isinstance(text, str):
            sections.append({"type": kind, "text": text})
        elif isinstance(html, str):
            sections.append({"type": "embed", "html": html})

    content = entry.get("content")
    if not sections and isinstance(content, str):
        for paragraph in BLANK_LINES.split(content):
            if paragraph.strip():
                sections.append({"type": "paragraph", "text": paragraph.strip()})

    if not sections and isinstance(content, list):
        for block in content:
            if isinstance(block, str):
                sections.append({"type": "paragraph", "text": block})
            elif isinstance(block, Mapping) and block.get("type") == "image" and isinstance(block.get("url"), str):
                sections.append(_image_section(block, block["url"], localize_images))
            elif isinstance(block, Mapping) and block.get("type") == "quote":
                sections.append({"type": "quote", "text": block.get("text") or ""})

    if not sections and isinstance(entry.get("html"), str):
        sections.append({"type": "embed", "html": entry["html"]})

    paragraphs = entry.get("paragraphs")
    if not sections and isinstance(paragraphs, list):
        images = [image for image in entry.get("images") or [] if isinstance(image, Mapping) and isinstance(image.get("src"), str)]
        if images:
            sections.append(_image_section(images[0], images[0]["src"], localize_images))
        for paragraph in paragraphs:
            if isinstance(paragraph, str) and paragraph.strip():
                sections.append({"type": "paragraph", "text": paragraph})
        for image in images[1:]:
            sections.append(_image_section(image, image["src"], localize_images))

    if not sections:
        sections.append({"type": "paragraph", "text": FALLBACK_SECTION_TEXT})
    return sections


def normalise_slug(candidate: str) -> str:
    return SITE_PREFIX.sub("", candidate).lstrip("/")


def normalise_article(page: Any, localize_images: bool = False) -> Optional[Article]:
    """Formatted page (or hand-written record) -> Article; ``None`` without a usable slug"""
    if not isinstance(page, Mapping):
        return None
    candidate = first_match(page, SLUG_RULES)
    if not isinstance(candidate, str):
        return None
    slug = normalise_slug(candidate)
    if not slug:
        return None

    cover = None
    cover_source = first_match(page, COVER_RULES)
    if cover_source:
        url = first_match(cover_source, IMAGE_URL_RULES)
        if url:
            alt = cover_source.get("alt")
            cover = CoverImage(
                url=normalize_image_url(url) if localize_images else url,
                alt=alt if isinstance(alt, str) else None,
            )

    def text(rules):
        value = first_match(page, rules)
        return str(value) if value is not None else None

    return Article(
        slug=slug,
        title=text(TITLE_RULES) or DEFAULT_TITLE,
        description=text(DESCRIPTION_RULES),
        excerpt=text(EXCERPT_RULES),
        coverImage=cover,
        category=text(CATEGORY_RULES),
        tags=first_match(page, TAG_RULES),
        publishedAt=text(PUBLISHED_RULES),
        readingTime=first_match(page, READING_TIME_RULES),
        sections=[ContentSection(**section) for section in normalise_sections(page, localize_images)],
        escapeRoomGeneralData=first_match(page, GENERAL_DATA_RULES),
        escapeRoomScoring=first_match(page, SCORING_RULES),
    )


def build_navigation(raw: Mapping) -> Navigation:
    navigation = raw.get("navigation") if isinstance(raw.get("navigation"), Mapping) else {}
    return Navigation(
        primary=navigation["primary"] if isinstance(navigation.get("primary"), list) else DEFAULT_NAVIGATION["primary"],
        secondary=navigation["secondary"] if isinstance(navigation.get("secondary"), list) else DEFAULT_NAVIGATION["secondary"],
    )


def build_hero(raw: Mapping) -> Hero:
    hero = raw.get("hero") if isinstance(raw.get("hero"), Mapping) else {}
    return Hero(
        title=hero.get("title") or DEFAULT_HERO["title"],
        description=hero.get("description") or DEFAULT_HERO["description"],
        cta=hero.get("cta") or DEFAULT_HERO["cta"],
    )


def assemble_site_content(raw: Mapping, articles: List[Article]) -> Optional[SiteContent]:
    """Attach hero, navigation, featured and highlight defaults to a list of articles"""
    if not articles:
        return None
    featured = raw.get("featuredSlugs")
    if not isinstance(featured, list):
        featured = [article.slug for article in articles[:FEATURED_COUNT]]
    highlight = raw.get("highlightSlug")
    if not isinstance(highlight, str):
        highlight = featured[0] if featured else articles[0].slug
    return SiteContent(
        hero=build_hero(raw),
        highlight=highlight,
        articles=articles,
        featured=featured,
        navigation=build_navigation(raw),
    )


def build_site_content(raw: Any, localize_images: bool = False) -> Optional[SiteContent]:
    """Formatted export -> SiteContent; ``None`` when no page yields an article"""
    if not isinstance(raw, Mapping):
        return None
    pages = raw.get("pages") if isinstance(raw.get("pages"), list) else []
    articles = []
    for page in pages:
        article = normalise_article(page, localize_images)
        if article is not None:
            articles.append(article)
    logger.debug(f"Normalised {len(articles)} articles from {len(pages)} pages")
    return assemble_site_content(raw, articles)
