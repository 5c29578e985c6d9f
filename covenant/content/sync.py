"""
One-way sync: formatted export -> article store

The store mirrors the export. Every article and the site settings blob
carry a sha256 of their serialized payload, and an unchanged hash means
no write at all, so re-running on the same export is a no-op.
"""

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ..exceptions import ContentSourceError
from .models import Article, SiteContent
from .normalize import build_site_content
from .parse_db import to_iso_timestamp
from .store import ArticleStore


def compute_checksum(payload: Any) -> str:
    serialized = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def _json_text(value: Any) -> Optional[str]:
    return json.dumps(value, ensure_ascii=False) if value else None


def article_payload(article: Article) -> Dict[str, Any]:
    """Row payload as stored; JSON blobs serialized, timestamp in ISO form"""
    return {
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "excerpt": article.excerpt,
        "coverImageUrl": article.coverImage.url if article.coverImage else None,
        "coverImageAlt": article.coverImage.alt if article.coverImage else None,
        "category": article.category,
        "tags": json.dumps(article.tags or [], ensure_ascii=False),
        "publishedAt": to_iso_timestamp(article.publishedAt),
        "readingTime": article.readingTime,
        "sections": json.dumps(
            [section.model_dump(exclude_none=True) for section in article.sections], ensure_ascii=False
        ),
        "escapeRoomGeneralData": _json_text(article.escapeRoomGeneralData),
        "escapeRoomScoring": _json_text(article.escapeRoomScoring),
    }


def settings_payload(content: SiteContent) -> Dict[str, Any]:
    return {
        "hero": json.dumps(content.hero.model_dump(), ensure_ascii=False),
        "highlightSlug": content.highlight,
        "featuredSlugs": json.dumps(content.featured, ensure_ascii=False),
        "navigation": json.dumps(content.navigation.model_dump(), ensure_ascii=False),
    }


@dataclass
class SyncReport:
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    settings_updated: bool = False

    @property
    def upserts(self) -> int:
        return len(self.created) + len(self.updated)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["upserts"] = self.upserts
        return data


class ContentSync:
    """Pushes a formatted export into an ``ArticleStore``"""

    def __init__(self, store: ArticleStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    def sync_export(self, raw: Dict[str, Any]) -> SyncReport:
        content = build_site_content(raw, localize_images=True)
        if content is None:
            raise ContentSourceError("Export contains no valid articles, nothing to sync")
        return self.sync(content)

    def sync(self, content: SiteContent) -> SyncReport:
        report = SyncReport()
        with self.store.transaction():
            existing = self.store.article_hashes()
            seen = set()

            for article in content.articles:
                if not article.slug or article.slug in seen:
                    continue
                seen.add(article.slug)
                payload = article_payload(article)
                checksum = compute_checksum(payload)

                if article.slug in existing and existing[article.slug] == checksum:
                    report.unchanged.append(article.slug)
                    continue

                article_id = self.store.upsert_article(payload, checksum)
                self.store.add_revision(
                    article_id, article.slug, checksum, json.dumps(payload, ensure_ascii=False)
                )
                (report.updated if article.slug in existing else report.created).append(article.slug)

            obsolete = [slug for slug in existing if slug not in seen]
            if obsolete:
                self.store.delete_articles(obsolete)
                report.deleted = obsolete

            settings = settings_payload(content)
            settings_checksum = compute_checksum(settings)
            if self.store.site_settings_hash() != settings_checksum:
                self.store.upsert_site_settings(settings, settings_checksum)
                report.settings_updated = True

        self.logger.info(
            f"Sync finished: {len(report.created)} created, {len(report.updated)} updated, "
            f"{len(report.unchanged)} unchanged, {len(report.deleted)} deleted"
        )
        return report
