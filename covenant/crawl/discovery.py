"""
Seed discovery from robots.txt and sitemaps
"""

import logging
from typing import Callable, Iterable, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlparse
from urllib.robotparser import RobotFileParser

from bs4 import BeautifulSoup

from ..exceptions import FetchError
from .url_utils import is_same_site, normalize_url, to_absolute_url

CONVENTIONAL_SITEMAPS = ("/sitemap.xml", "/sitemap_index.xml")


class SitemapDiscovery:
    """Resolves page seeds and expands sitemap-of-sitemaps into page URLs.

    Every robots.txt or sitemap failure is logged and contributes no URLs.
    """

    def __init__(self, transport, start_url: str, hostnames: Iterable[str], include_sitemaps: bool = True):
        self.transport = transport
        self.start_url = start_url
        self.hostnames = set(hostnames)
        self.include_sitemaps = include_sitemaps
        self.logger = logging.getLogger(__name__)

    def origin(self) -> str:
        parsed = urlparse(self.start_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    async def discover_seeds(self) -> Tuple[List[str], List[str]]:
        """Return ``(page_seeds, sitemap_urls)`` for the start URL"""
        page_seeds = []
        start = normalize_url(self.start_url, self.start_url, self.hostnames)
        if start:
            page_seeds.append(start)
        if not self.include_sitemaps:
            return page_seeds, []

        sitemaps: List[str] = []
        for sitemap_url in await self.robots_sitemaps():
            if sitemap_url not in sitemaps:
                sitemaps.append(sitemap_url)
        for path in CONVENTIONAL_SITEMAPS:
            conventional = f"{self.origin()}{path}"
            if conventional not in sitemaps:
                sitemaps.append(conventional)
        return page_seeds, sitemaps

    async def robots_sitemaps(self) -> List[str]:
        """Absolute URLs of every ``Sitemap:`` directive in robots.txt"""
        robots_url = f"{self.origin()}/robots.txt"
        try:
            response = await self.transport.fetch(robots_url)
        except FetchError as e:
            self.logger.warning(f"Unable to fetch robots.txt ({robots_url}): {e}")
            return []

        parser = RobotFileParser(robots_url)
        parser.parse((response.body or "").splitlines())
        result = []
        for entry in parser.site_maps() or []:
            absolute = to_absolute_url(urljoin(robots_url, entry.strip()))
            if absolute and absolute not in result:
                result.append(absolute)
        return result

    async def parse_sitemap(self, sitemap_url: str) -> Set[str]:
        """Normalized same-site ``<loc>`` values of one sitemap document"""
        try:
            response = await self.transport.fetch(sitemap_url)
        except FetchError as e:
            self.logger.warning(f"Unable to parse sitemap {sitemap_url}: {e}")
            return set()

        soup = BeautifulSoup(response.body or "", "html.parser")
        urls = set()
        for loc in soup.find_all("loc"):
            normalized = normalize_url(loc.get_text().strip(), sitemap_url, self.hostnames)
            if normalized:
                urls.add(normalized)
        self.logger.debug(f"Sitemap {sitemap_url} listed {len(urls)} URLs")
        return urls

    async def hydrate(
        self,
        sitemap_url: str,
        enqueue: Callable[[str], None],
        visited: Optional[Set[str]] = None,
    ):
        """Expand ``sitemap_url`` recursively, passing page URLs to ``enqueue``.

        ``visited`` holds the sitemaps already expanded in this run so that
        cyclic sitemap indexes terminate.
        """
        visited = visited if visited is not None else set()
        absolute = to_absolute_url(sitemap_url, self.start_url)
        if not absolute or not is_same_site(absolute, self.hostnames):
            return
        canonical = normalize_url(absolute, self.start_url, self.hostnames) or absolute
        if canonical in visited:
            return
        visited.add(canonical)

        for url in sorted(await self.parse_sitemap(canonical)):
            if url.endswith(".xml"):
                await self.hydrate(url, enqueue, visited)
            else:
                enqueue(url)
