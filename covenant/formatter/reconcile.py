"""
Deduplication of raw crawl variants into one canonical page per URL
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from .pages import format_asset, format_page, minimal_page, preference_score
from .source import RawPage


class PageReconciler:
    """Formats raw records and merges variants of the same logical URL.

    Documents are processed in descending preference order. The first
    record for a URL becomes canonical; a later one replaces it wholesale
    only if it turns a non-200 into a 200 or carries strictly more words.
    Either way the later record's URLs are added to ``sourceUrls``.
    """

    def __init__(self, primary_url: Optional[str] = None):
        self.primary_url = primary_url
        self.primary_host = urlparse(primary_url).hostname if primary_url else None
        self.logger = logging.getLogger(__name__)

    def partition(self, records: Iterable[Dict]) -> Tuple[List[RawPage], List[RawPage]]:
        """Split raw records into ``(documents, assets)``"""
        documents, assets = [], []
        for record in records:
            page = RawPage(record)
            (assets if page.is_asset else documents).append(page)
        return documents, assets

    def format(self, page: RawPage) -> Dict:
        try:
            return format_page(page, self.primary_url)
        except Exception as e:
            self.logger.error(f"Could not format {page.url}: {e}")
            return minimal_page(page, self.primary_url)

    @staticmethod
    def should_replace(existing: Dict, candidate: Dict) -> bool:
        existing_status = existing.get("status") or 0
        candidate_status = candidate.get("status") or 0
        existing_words = existing.get("wordCount") or 0
        candidate_words = candidate.get("wordCount") or 0
        return (existing_status != 200 and candidate_status == 200) or candidate_words > existing_words

    def reconcile(self, records: Iterable[Dict]) -> Tuple[List[Dict], List[Dict]]:
        """Return ``(pages, assets)`` with at most one page per canonical URL"""
        documents, asset_pages = self.partition(records)
        # sorted() is stable, so equal scores keep input order
        documents = sorted(documents, key=lambda page: preference_score(page, self.primary_host), reverse=True)

        pages: List[Dict] = []
        by_url: Dict[str, Dict] = {}
        for page in documents:
            formatted = self.format(page)
            url = formatted.get("url")

            variants: List[str] = []
            for source in (formatted.pop("sourceUrl", None), page.url):
                if source and source != url and source not in variants:
                    variants.append(source)

            if not url:
                if variants:
                    formatted["sourceUrls"] = variants
                pages.append(formatted)
                continue

            existing = by_url.get(url)
            if existing is None:
                if variants:
                    formatted["sourceUrls"] = variants
                pages.append(formatted)
                by_url[url] = formatted
                continue

            sources = list(existing.get("sourceUrls") or [])
            for source in variants:
                if source not in sources:
                    sources.append(source)

            if self.should_replace(existing, formatted):
                self.logger.debug(f"Replacing canonical record for {url}")
                existing.clear()
                existing.update(formatted)
            if sources:
                existing["sourceUrls"] = sources

        assets = [format_asset(page, self.primary_url) for page in asset_pages]
        self.logger.info(f"Reconciled {len(documents)} documents into {len(pages)} pages, {len(assets)} assets")
        return pages, assets
