"""
Raw crawl export writer
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Optional

from .config import CrawlConfig
from .models import CrawlRecord


class ContentManager:
    """Writes crawl results to the raw export consumed by the formatter"""

    def __init__(self, config: Optional[CrawlConfig] = None, output_file: Optional[str] = None):
        self.config = config or CrawlConfig()
        self.output_path = Path(output_file or self.config.output_file)
        self.logger = logging.getLogger(__name__)

    def build_export(self, records: Iterable[CrawlRecord], image_stats: Optional[Dict] = None) -> Dict:
        pages = [record.to_dict() for record in records]
        settings = self.config.to_settings()
        settings["imageStats"] = image_stats
        return {
            "crawledAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "startUrl": self.config.start_url,
            "totalPages": len(pages),
            "settings": settings,
            "pages": pages,
        }

    def save_export(self, records: Iterable[CrawlRecord], image_stats: Optional[Dict] = None) -> Path:
        """Write the export envelope as pretty-printed UTF-8 JSON"""
        payload = self.build_export(records, image_stats)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        self.logger.info(f"Export completed: {payload['totalPages']} pages saved to {self.output_path}")
        return self.output_path
