"""
End-to-end pipeline: crawl -> format -> optional database sync -> summary
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from ..content.store import open_store
from ..content.sync import ContentSync
from ..crawl.config import CrawlConfig
from ..crawl.crawler import PageCrawler
from ..crawl.url_utils import strip_www
from ..exceptions import CovenantError
from ..formatter.exporter import ExportFormatter
from ..formatter.options import FormatOptions
from .display import Display
from .tracker import StepTracker


def summarize_raw_export(raw: Dict[str, Any], top: int = 10) -> Dict[str, Any]:
    """Page count, error count, image stats, most frequent content types and hosts"""
    pages = [page for page in raw.get("pages") or [] if isinstance(page, dict)]
    errors = sum(1 for page in pages if page.get("error") or (page.get("status") or 0) >= 400)

    content_types: Counter = Counter()
    hosts: Counter = Counter()
    for page in pages:
        content_type = page.get("contentType")
        content_types[str(content_type).split(";")[0].strip().lower() if content_type else "unknown"] += 1
        hostname = urlparse(page.get("url") or page.get("sourceUrl") or "").hostname
        if hostname:
            hosts[strip_www(hostname)] += 1

    settings = raw.get("settings") if isinstance(raw.get("settings"), dict) else {}
    return {
        "total_pages": len(pages),
        "errors": errors,
        "image_stats": settings.get("imageStats"),
        "crawled_at": raw.get("crawledAt"),
        "content_types": content_types.most_common(top),
        "hosts": hosts.most_common(top),
    }


def summarize_export_file(path: Path) -> Optional[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return summarize_raw_export(json.load(f))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logging.getLogger(__name__).warning(f"Could not summarize {path}: {e}")
        return None


class PipelineRunner:
    def __init__(
        self,
        crawl_config: CrawlConfig,
        format_options: FormatOptions,
        sync_to_db: bool = False,
        database_url: Optional[str] = None,
    ):
        self.crawl_config = crawl_config
        self.format_options = format_options
        self.sync_to_db = sync_to_db
        self.database_url = database_url
        self.logger = logging.getLogger(__name__)
        self.tracker = StepTracker(self.logger)

    async def crawl(self) -> bool:
        try:
            report = await PageCrawler(self.crawl_config).crawl()
        except (CovenantError, OSError) as e:
            self.tracker.log_step("Crawl", False, str(e))
            return False
        summary = report["crawl_summary"]
        self.tracker.log_step(
            "Crawl", True, f"{summary['total_pages']} pages, {summary['errors']} errors -> {report['output_file']}"
        )
        Display.show_crawl_report(report)
        return True

    def format(self) -> bool:
        options = self.format_options.override(input_path=Path(self.crawl_config.output_file))
        try:
            summary = ExportFormatter(options).run()
        except (CovenantError, OSError) as e:
            self.tracker.log_step("Format", False, str(e))
            return False
        self.tracker.log_step("Format", True, f"{summary['pages']} pages, {summary['entries']} generic entries")
        Display.show_format_summary(summary)
        return True

    def sync(self) -> bool:
        try:
            with open(self.format_options.output_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            with open_store(self.database_url) as store:
                report = ContentSync(store).sync_export(raw)
        except (CovenantError, OSError, ValueError) as e:
            self.tracker.log_step("Database sync", False, str(e))
            return False
        self.tracker.log_step("Database sync", True, f"{report.upserts} upserts, {len(report.deleted)} deleted")
        Display.show_sync_report(report.to_dict())
        return True

    async def run(self) -> bool:
        Display.show_crawl_config(self.crawl_config)
        try:
            if not await self.crawl():
                return False
            if not self.format():
                return False
            if self.sync_to_db and not self.sync():
                return False
            Display.show_export_summary(summarize_export_file(Path(self.crawl_config.output_file)))
            return True
        finally:
            self.tracker.print_summary()
