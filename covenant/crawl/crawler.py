"""
Bounded-concurrency page crawler with a hard page budget
"""

import asyncio
import logging
import time
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, Iterable, List, Optional, Set

from ..exceptions import FetchError
from ..extract import page as extractors
from ..extract.dom import Document
from ..extract.escape_room import extract_general_data, extract_scoring
from .config import CrawlConfig
from .content_manager import ContentManager
from .discovery import SitemapDiscovery
from .image_downloader import ImageDownloader
from .models import CrawlRecord, FetchResponse
from .transport import HttpTransport
from .url_utils import allowed_hostnames, is_same_site, normalize_url, to_absolute_url


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_record(url: str, response: FetchResponse, hostnames: Iterable[str]) -> CrawlRecord:
    """Parse a fetched page and run every extractor over it"""
    html = response.body or ""
    doc = Document(html)
    return CrawlRecord(
        url=url,
        status=response.status,
        fetched_at=utc_now(),
        content_type=response.content_type,
        content_length=response.content_length,
        title=extractors.extract_title(doc),
        language=extractors.extract_language(doc),
        meta_description=extractors.extract_meta_description(doc),
        canonical_url=extractors.extract_canonical_url(doc, url),
        meta=extractors.extract_meta_tags(doc),
        feeds=extractors.extract_feeds(doc, url),
        links=extractors.extract_links(doc, url, hostnames),
        images=extractors.extract_images(doc, url),
        media=extractors.extract_media(doc, url),
        outline=extractors.extract_outline(doc),
        sections=extractors.extract_sections(doc),
        content_blocks=extractors.extract_content_blocks(doc, url),
        text_content=extractors.extract_text_content(doc),
        json_ld=extractors.extract_json_ld(doc),
        stylesheets=extractors.extract_stylesheets(doc, url),
        scripts=extractors.extract_scripts(doc, url),
        escape_room_general_data=extract_general_data(doc, url),
        escape_room_scoring=extract_scoring(doc),
        raw_html=html,
    )


class PageCrawler:
    """Frontier crawler.

    A URL is queued at most once (visited-or-enqueued guard). At most
    ``config.concurrency`` fetches run at a time, refilled from a FIFO queue.
    Once ``len(results) + len(enqueued)`` reaches ``max_pages`` new
    discoveries are dropped for good. The crawl is complete when the queue
    is empty and nothing is in flight.
    """

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        transport=None,
        discovery: Optional[SitemapDiscovery] = None,
        image_downloader: Optional[ImageDownloader] = None,
    ):
        self.config = config or CrawlConfig()
        self.hostnames: Set[str] = allowed_hostnames(self.config.start_url)
        self.transport = transport or HttpTransport(self.config, self.hostnames)
        self.discovery = discovery or SitemapDiscovery(
            self.transport, self.config.start_url, self.hostnames, self.config.include_sitemaps
        )
        if image_downloader is None and self.config.download_images:
            image_downloader = ImageDownloader(self.transport, self.config)
        self.image_downloader = image_downloader

        # Frontier state
        self.queue: Deque[str] = deque()
        self.visited: Set[str] = set()
        self.enqueued: Set[str] = set()
        self.results: List[CrawlRecord] = []
        self.active = 0
        self.idle = asyncio.Event()
        self.idle.set()
        self._tasks: Set[asyncio.Task] = set()

        self.logger = logging.getLogger(__name__)

        # Statistics
        self.stats = {
            'pages_crawled': 0,
            'errors': 0,
            'dropped_over_budget': 0,
        }

    def enqueue(self, url: Optional[str]) -> bool:
        """Queue a normalized URL; returns False when it is dropped"""
        if not url:
            return False
        if url in self.visited or url in self.enqueued:
            return False
        if len(self.results) + len(self.enqueued) >= self.config.max_pages:
            self.stats['dropped_over_budget'] += 1
            self.logger.debug(f"Page budget reached, dropping {url}")
            return False
        self.enqueued.add(url)
        self.queue.append(url)
        self.idle.clear()
        self._schedule_next()
        return True

    def _schedule_next(self):
        while self.active < self.config.concurrency and self.queue:
            url = self.queue.popleft()
            self.active += 1
            task = asyncio.ensure_future(self._run_task(url))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        if not self.queue and self.active == 0:
            self.idle.set()

    async def _run_task(self, url: str):
        try:
            await self.process_url(url)
        except Exception as e:
            self.logger.error(f"Error processing {url}: {e}")
            self.stats['errors'] += 1
            if url not in {record.url for record in self.results}:
                self._record(CrawlRecord(url=url, status=None, fetched_at=utc_now(), error=str(e)))
        finally:
            self.enqueued.discard(url)
            self.active -= 1
            self._schedule_next()

    def _record(self, record: CrawlRecord):
        self.results.append(record)
        self.enqueued.discard(record.url)

    async def process_url(self, url: str):
        if url in self.visited:
            return
        self.visited.add(url)
        self.logger.info(f"Crawling: {url}")

        try:
            response = await self.transport.fetch(url)
        except FetchError as e:
            self.logger.warning(f"Fetch failed for {url}: {e}")
            self.stats['errors'] += 1
            self._record(CrawlRecord(
                url=url,
                status=e.status,
                fetched_at=utc_now(),
                content_type=e.headers.get("content-type"),
                raw_html=e.body,
                error=str(e),
            ))
            return

        record = build_record(url, response, self.hostnames)
        if self.image_downloader is not None:
            await self._download_images(record)

        self._record(record)
        self.stats['pages_crawled'] += 1

        for link in record.internal_links():
            self.enqueue(link)

    async def _download_images(self, record: CrawlRecord):
        for image in record.images:
            result = await self.image_downloader.download(image.get("src"))
            if result.local_path:
                image["localPath"] = result.local_path
            if result.skipped:
                image["downloadSkipped"] = result.skipped
            if result.error:
                image["downloadError"] = result.error

    async def run(self) -> List[CrawlRecord]:
        """Crawl until the frontier drains"""
        self.logger.info("Discovering seed URLs...")
        page_seeds, sitemap_seeds = await self.discovery.discover_seeds()
        for seed in page_seeds or [normalize_url(self.config.start_url)]:
            self.enqueue(seed)
        for seed in self.config.extra_seeds:
            self.enqueue(normalize_url(seed, self.config.start_url, self.hostnames))

        if self.config.include_sitemaps:
            visited_sitemaps: Set[str] = set()
            for sitemap_url in sitemap_seeds:
                absolute = to_absolute_url(sitemap_url, self.config.start_url)
                if absolute and is_same_site(absolute, self.hostnames):
                    await self.discovery.hydrate(absolute, self.enqueue, visited_sitemaps)

        if not self.visited and not self.enqueued:
            self.enqueue(normalize_url(self.config.start_url))

        await self.idle.wait()
        return self.results

    def image_stats(self) -> Optional[Dict[str, int]]:
        return dict(self.image_downloader.stats) if self.image_downloader is not None else None

    async def crawl(self, content_manager: Optional[ContentManager] = None) -> Dict:
        """Run the crawl, write the raw export and return a report"""
        start_time = time.time()
        try:
            await self.run()
        finally:
            if isinstance(self.transport, HttpTransport):
                self.transport.close()

        content_manager = content_manager or ContentManager(self.config)
        output_path = content_manager.save_export(self.results, self.image_stats())

        return {
            'status': 'success',
            'output_file': str(output_path),
            'crawl_summary': {
                'total_pages': len(self.results),
                'pages_crawled': self.stats['pages_crawled'],
                'errors': self.stats['errors'],
                'dropped_over_budget': self.stats['dropped_over_budget'],
                'urls_visited': len(self.visited),
                'duration_seconds': time.time() - start_time,
            },
            'image_stats': self.image_stats(),
        }
