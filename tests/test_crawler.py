#!/usr/bin/env python3
"""
Tests for the frontier crawler, crawl records and the raw export writer
"""

import json
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from covenant.crawl.config import CrawlConfig
from covenant.crawl.content_manager import ContentManager
from covenant.crawl.crawler import PageCrawler, build_record
from covenant.crawl.models import CrawlRecord, FetchResponse

ROOT = "https://www.thecovenant.es/"
HOSTS = {"www.thecovenant.es", "thecovenant.es"}


def page(title, *hrefs, extra=""):
    links = "".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"<html lang='es'><head><title>{title}</title></head><body><h1>{title}</h1>{links}{extra}</body></html>"


SITE = {
    ROOT: page("Inicio", "/a", "/b/", "https://twitter.com/thecovenant"),
    "https://www.thecovenant.es/a": page("A", "/", "/c", "/a#comentarios"),
    "https://www.thecovenant.es/b": page("B", "/missing"),
    "https://www.thecovenant.es/c": page("C"),
}


class TestCrawlConfig:
    """Test CrawlConfig defaults, clamping and environment loading"""

    def test_default_config(self):
        config = CrawlConfig()

        assert config.max_pages == 2000
        assert config.concurrency == 5
        assert config.include_sitemaps is True
        assert config.download_images is False
        assert "webp" in config.image_extensions

    def test_values_clamped(self):
        config = CrawlConfig(max_pages=0, concurrency=-3, image_extensions=[".JPG", "png"])

        assert config.max_pages == 1
        assert config.concurrency == 1
        assert config.image_extensions == ["jpg", "png"]

    def test_from_env(self, monkeypatch):
        """Test SCRAPE_* variables, timeout in milliseconds"""
        monkeypatch.setenv("SCRAPE_START_URL", "https://thecovenant.es/")
        monkeypatch.setenv("SCRAPE_MAX_PAGES", "50")
        monkeypatch.setenv("SCRAPE_TIMEOUT", "5000")
        monkeypatch.setenv("SCRAPE_INCLUDE_SITEMAPS", "false")
        monkeypatch.setenv("SCRAPE_EXTRA_SEEDS", "/a, /b ,")
        monkeypatch.setenv("SCRAPE_CONCURRENCY", "not-a-number")

        config = CrawlConfig.from_env()

        assert config.start_url == "https://thecovenant.es/"
        assert config.max_pages == 50
        assert config.timeout == 5.0
        assert config.include_sitemaps is False
        assert config.extra_seeds == ["/a", "/b"]
        assert config.concurrency == 5

    def test_to_settings(self):
        settings = CrawlConfig(max_pages=10, download_images=True).to_settings()
        assert settings == {"maxPages": 10, "concurrency": 5, "includeSitemaps": True, "downloadImages": True}


class TestPageCrawler:
    """Test crawling against an in-memory site"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.output = str(Path(self.temp_dir) / "export.json")

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def make_crawler(self, transport, **overrides):
        options = {"start_url": ROOT, "output_file": self.output, "include_sitemaps": False, "concurrency": 2}
        options.update(overrides)
        return PageCrawler(CrawlConfig(**options), transport=transport)

    @pytest.mark.asyncio
    async def test_crawl_whole_site(self, fake_transport):
        """Test every reachable page is recorded exactly once"""
        transport = fake_transport(SITE)
        crawler = self.make_crawler(transport)

        results = await crawler.run()

        urls = sorted(record.url for record in results)
        assert urls == sorted([
            ROOT,
            "https://www.thecovenant.es/a",
            "https://www.thecovenant.es/b",
            "https://www.thecovenant.es/c",
            "https://www.thecovenant.es/missing",
        ])
        assert len(transport.calls) == len(set(transport.calls))
        assert "https://twitter.com/thecovenant" not in transport.calls
        assert crawler.stats["pages_crawled"] == 4
        assert crawler.stats["errors"] == 1
        assert not crawler.queue and crawler.active == 0

    @pytest.mark.asyncio
    async def test_failed_fetch_recorded(self, fake_transport):
        """Test an HTTP failure becomes an error record with the body kept"""
        crawler = self.make_crawler(fake_transport(SITE))

        results = await crawler.run()

        missing = next(record for record in results if record.url.endswith("/missing"))
        assert missing.failed
        assert missing.status == 404
        assert missing.raw_html == "Not found"
        assert set(missing.to_dict()) == {"url", "status", "error", "fetchedAt", "contentType", "rawHtml"}

    @pytest.mark.asyncio
    async def test_page_budget(self, fake_transport):
        """Test the crawl never records more than max_pages"""
        crawler = self.make_crawler(fake_transport(SITE), max_pages=2, concurrency=1)

        results = await crawler.run()

        assert len(results) == 2
        assert len(crawler.results) + len(crawler.enqueued) <= 2
        assert crawler.stats["dropped_over_budget"] >= 1

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, fake_transport):
        """Test no more than `concurrency` fetches run at once"""
        fanout = {ROOT: page("Inicio", *[f"/p{i}" for i in range(8)])}
        fanout.update({f"https://www.thecovenant.es/p{i}": page(f"P{i}") for i in range(8)})
        transport = fake_transport(fanout, delay=0.01)
        crawler = self.make_crawler(transport, concurrency=3)

        results = await crawler.run()

        assert len(results) == 9
        assert transport.max_in_flight <= 3

    @pytest.mark.asyncio
    async def test_extra_seeds(self, fake_transport):
        transport = fake_transport(SITE)
        crawler = self.make_crawler(transport, max_pages=10, extra_seeds=["/c"])

        await crawler.run()

        assert transport.calls[:2] == [ROOT, "https://www.thecovenant.es/c"]

    @pytest.mark.asyncio
    async def test_downloads_images(self, fake_transport):
        """Test image records get the mirrored local path"""
        site = {ROOT: page("Inicio", extra='<img src="/img/logo.png" alt="Logo">'),
                "https://www.thecovenant.es/img/logo.png": b"PNGDATA"}
        image_dir = str(Path(self.temp_dir) / "images")
        crawler = self.make_crawler(fake_transport(site), download_images=True, image_dir=image_dir)

        results = await crawler.run()

        image = results[0].images[0]
        assert image["localPath"] == str(Path(image_dir) / "www_thecovenant_es" / "logo_png.png")
        assert crawler.image_stats() == {"downloaded": 1, "failed": 0, "skipped": 0}

    @pytest.mark.asyncio
    async def test_crawl_writes_export(self, fake_transport):
        """Test the report and the raw export envelope"""
        crawler = self.make_crawler(fake_transport(SITE))

        report = await crawler.crawl()

        assert report["status"] == "success"
        assert report["crawl_summary"]["total_pages"] == 5
        assert report["image_stats"] is None

        with open(self.output, "r", encoding="utf-8") as f:
            export = json.load(f)
        assert export["startUrl"] == ROOT
        assert export["totalPages"] == len(export["pages"]) == 5
        assert export["settings"]["includeSitemaps"] is False
        assert export["settings"]["imageStats"] is None


class TestCrawlRecord:
    """Test record building and serialization"""

    def test_build_record(self, review_html):
        url = "https://www.thecovenant.es/escape-rooms/la-cripta"
        response = FetchResponse(url=url, status=200, body=review_html,
                                 headers={"content-type": "text/html", "content-length": "1234"})

        record = build_record(url, response, HOSTS)

        assert record.title.startswith("La Cripta")
        assert record.content_length == "1234"
        assert record.escape_room_general_data["category"] == "Terror"
        assert record.escape_room_scoring["terror"]["value"] == 4
        assert record.raw_html == review_html
        assert "https://www.thecovenant.es/escape-rooms" in record.internal_links()

    def test_to_dict_camel_case(self):
        record = CrawlRecord(url=ROOT, status=200, fetched_at="2024-01-01T00:00:00Z", title="Inicio")
        data = record.to_dict()

        assert data["fetchedAt"] == "2024-01-01T00:00:00Z"
        assert data["escapeRoomScoring"] is None
        assert data["media"] == {"videos": [], "audio": [], "iframes": []}

    def test_internal_links_deduplicated(self):
        record = CrawlRecord(url=ROOT, status=200, fetched_at="now", links=[
            {"internal": True, "normalizedHref": "https://www.thecovenant.es/a"},
            {"internal": False, "normalizedHref": None},
            {"internal": True, "normalizedHref": "https://www.thecovenant.es/a"},
        ])
        assert record.internal_links() == ["https://www.thecovenant.es/a"]


class TestContentManager:
    """Test the raw export writer"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_save_export_creates_directories(self):
        output = Path(self.temp_dir) / "nested" / "export.json"
        manager = ContentManager(CrawlConfig(), str(output))
        records = [CrawlRecord(url=ROOT, status=200, fetched_at="now", title="Inicio")]

        path = manager.save_export(records, {"downloaded": 0, "failed": 0, "skipped": 0})

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["totalPages"] == 1
        assert data["pages"][0]["title"] == "Inicio"
        assert data["settings"]["imageStats"]["downloaded"] == 0
        assert data["crawledAt"].endswith("Z")
