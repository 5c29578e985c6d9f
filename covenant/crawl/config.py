"""
Configuration settings for the crawler
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_START_URL = "https://www.thecovenant.es/"
DEFAULT_OUTPUT = os.path.join("data", "thecovenant-export.json")
DEFAULT_IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp", "svg", "avif"]

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


def env_flag(name: str, fallback: bool = False) -> bool:
    """Read a boolean environment variable, keeping the fallback for unknown values"""
    raw = os.getenv(name)
    if raw is None:
        return fallback
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    return fallback


def env_int(name: str, fallback: Optional[int] = None) -> Optional[int]:
    """Read an integer environment variable; invalid or empty values use the fallback"""
    raw = os.getenv(name)
    if not raw:
        return fallback
    try:
        return int(raw.strip())
    except ValueError:
        return fallback


def env_list(name: str) -> Optional[List[str]]:
    """Read a comma-separated environment variable"""
    raw = os.getenv(name)
    if not raw:
        return None
    items = [item.strip() for item in raw.split(",")]
    return [item for item in items if item]


@dataclass
class CrawlConfig:
    """Configuration class for crawler settings"""
    # Basic crawling settings
    start_url: str = DEFAULT_START_URL
    output_file: str = DEFAULT_OUTPUT
    max_pages: int = 2000
    concurrency: int = 5
    timeout: float = 20.0
    include_sitemaps: bool = True
    extra_seeds: List[str] = field(default_factory=list)

    # Request headers
    user_agent: str = USER_AGENT
    accept_language: str = "es-ES,es;q=0.9,en;q=0.8"
    max_redirects: int = 5

    # Image mirroring
    download_images: bool = False
    image_concurrency: int = 4
    image_max_bytes: int = 10 * 1024 * 1024
    image_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS))
    image_dir: str = os.path.join("public", "images")

    def __post_init__(self):
        self.max_pages = max(1, int(self.max_pages))
        self.concurrency = max(1, int(self.concurrency))
        self.image_concurrency = max(1, int(self.image_concurrency))
        self.image_extensions = [ext.lower().lstrip(".") for ext in self.image_extensions]

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """Build a config from SCRAPE_* environment variables"""
        timeout_ms = env_int("SCRAPE_TIMEOUT", 20000) or 20000
        return cls(
            start_url=os.getenv("SCRAPE_START_URL") or DEFAULT_START_URL,
            output_file=os.getenv("SCRAPE_OUTPUT") or DEFAULT_OUTPUT,
            max_pages=env_int("SCRAPE_MAX_PAGES", 2000) or 2000,
            concurrency=env_int("SCRAPE_CONCURRENCY", 5) or 5,
            timeout=timeout_ms / 1000.0,
            include_sitemaps=env_flag("SCRAPE_INCLUDE_SITEMAPS", True),
            extra_seeds=env_list("SCRAPE_EXTRA_SEEDS") or [],
            download_images=env_flag("SCRAPE_DOWNLOAD_IMAGES", False),
            image_concurrency=env_int("SCRAPE_IMAGE_CONCURRENCY", 4) or 4,
            image_max_bytes=env_int("SCRAPE_IMAGE_MAX_BYTES", 10 * 1024 * 1024) or 10 * 1024 * 1024,
            image_extensions=env_list("SCRAPE_IMAGE_EXTENSIONS") or list(DEFAULT_IMAGE_EXTENSIONS),
            image_dir=os.getenv("SCRAPE_IMAGE_DIR") or os.path.join("public", "images"),
        )

    def to_settings(self) -> dict:
        """Settings block embedded in the raw export"""
        return {
            "maxPages": self.max_pages,
            "concurrency": self.concurrency,
            "includeSitemaps": self.include_sitemaps,
            "downloadImages": self.download_images,
        }
