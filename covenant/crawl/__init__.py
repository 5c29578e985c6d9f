"""
Crawl module

Seed discovery (robots.txt and sitemaps), the HTTP transport with its
hostname-variant DNS fallback, the bounded-concurrency page crawler, the
image downloader and the raw export writer.

Only the dependency-free pieces are re-exported here; import the crawler
from ``covenant.crawl.crawler``.
"""

from .config import CrawlConfig
from .models import CrawlRecord, FetchResponse, ImageDownloadResult
from .url_utils import allowed_hostnames, normalize_url, to_absolute_url

__all__ = [
    # Configuration
    'CrawlConfig',

    # Data models
    'CrawlRecord',
    'FetchResponse',
    'ImageDownloadResult',

    # URL helpers
    'allowed_hostnames',
    'normalize_url',
    'to_absolute_url',
]
