"""
Database rows -> site content

Rows store sections, tags and the escape-room blobs as JSON text.
Unparsable JSON degrades to "absent" instead of raising.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .models import Article, ContentSection, CoverImage
from .normalize import FALLBACK_SECTION_TEXT, normalize_image_url

logger = logging.getLogger(__name__)


def parse_json_text(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if not value.strip():
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO string or datetime -> aware UTC datetime; naive values are taken as UTC"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso_timestamp(value: Any) -> Optional[str]:
    """``2024-01-01T12:00:00.000Z`` form, millisecond precision"""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def parse_db_article(row: Mapping) -> Article:
    sections = row.get("sections")
    if not isinstance(sections, list):
        sections = parse_json_text(sections)
    if not isinstance(sections, list):
        sections = []
    sections = [section for section in sections if isinstance(section, Mapping) and section.get("type")]
    if not sections:
        sections = [{"type": "paragraph", "text": FALLBACK_SECTION_TEXT}]

    tags = row.get("tags")
    if not isinstance(tags, list):
        tags = parse_json_text(tags)
    tags = [tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else None

    general = parse_json_text(row.get("escapeRoomGeneralData"))
    scoring = parse_json_text(row.get("escapeRoomScoring"))

    cover = None
    if row.get("coverImageUrl"):
        cover = CoverImage(url=normalize_image_url(row["coverImageUrl"]), alt=row.get("coverImageAlt"))

    return Article(
        slug=row["slug"],
        title=row["title"],
        description=row.get("description"),
        excerpt=row.get("excerpt"),
        coverImage=cover,
        category=row.get("category"),
        tags=tags,
        publishedAt=to_iso_timestamp(row.get("publishedAt")),
        readingTime=row.get("readingTime"),
        sections=[ContentSection(**section) for section in sections],
        escapeRoomGeneralData=general if isinstance(general, dict) else None,
        escapeRoomScoring=scoring if isinstance(scoring, dict) else None,
    )
