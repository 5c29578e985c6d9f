"""
Best-effort image mirroring with a per-run dedup map
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Dict, Optional, Tuple
from urllib.parse import unquote, urlparse

from ..exceptions import FetchError
from .config import CrawlConfig
from .models import ImageDownloadResult

SKIP_NO_SRC = "no-src"
SKIP_DUPLICATE = "duplicate-session"
SKIP_EXISTING = "existing-on-disk"
SKIP_EXTENSION = "extension-not-whitelisted"
SKIP_SIZE = "size-exceeds-limit"

_FILE_NAME = re.compile(r"/([^/]+)\.(\w+)$")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def local_image_parts(url: Optional[str]) -> Optional[Tuple[str, str, str]]:
    """Split an image URL into ``(host_dir, name, ext)`` for the mirror layout"""
    if not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.hostname:
        return None
    match = _FILE_NAME.search(parsed.path)
    if not match:
        return None
    host_dir = parsed.hostname.replace(".", "_")
    name = _UNSAFE.sub("-", unquote(match.group(1))).strip("-") or "image"
    return host_dir, name, match.group(2).lower()


def local_image_path(url: Optional[str]) -> Optional[str]:
    """``host_dir/name_ext.ext`` relative to the image root, or ``None``"""
    parts = local_image_parts(url)
    if parts is None:
        return None
    host_dir, name, ext = parts
    return f"{host_dir}/{name}_{ext}.{ext}"


class ImageDownloader:
    """Mirrors remote images under ``image_dir/<host>/``.

    Every URL is handled at most once per run. Failures never propagate:
    the result carries a skip reason or an error string instead.
    """

    def __init__(self, transport, config: Optional[CrawlConfig] = None):
        self.transport = transport
        self.config = config or CrawlConfig()
        self.image_dir = Path(self.config.image_dir)
        self.allowed_extensions = set(self.config.image_extensions)
        self.semaphore = asyncio.Semaphore(self.config.image_concurrency)
        self.downloaded: Dict[str, Optional[str]] = {}
        self._pending: Dict[str, asyncio.Future] = {}
        self.stats = {"downloaded": 0, "failed": 0, "skipped": 0}
        self.logger = logging.getLogger(__name__)

    def _skip(self, url: Optional[str], reason: str, local_path: Optional[str] = None) -> ImageDownloadResult:
        self.stats["skipped"] += 1
        self.logger.debug(f"Skipping image {url}: {reason}")
        return ImageDownloadResult(url=url, local_path=local_path, skipped=reason)

    async def download(self, url: Optional[str]) -> ImageDownloadResult:
        if not url:
            return self._skip(url, SKIP_NO_SRC)
        if url in self.downloaded:
            return self._skip(url, SKIP_DUPLICATE, self.downloaded[url])

        pending = self._pending.get(url)
        if pending is not None:
            first = await pending
            return self._skip(url, SKIP_DUPLICATE, first.local_path)

        task = asyncio.ensure_future(self._fetch_image(url))
        self._pending[url] = task
        try:
            result = await task
        finally:
            del self._pending[url]
        # Only a file that exists on disk is recorded with a path
        self.downloaded[url] = result.local_path
        return result

    async def _fetch_image(self, url: str) -> ImageDownloadResult:
        relative = local_image_path(url)
        if relative is None or local_image_parts(url)[2] not in self.allowed_extensions:
            return self._skip(url, SKIP_EXTENSION)

        destination = self.image_dir / relative
        if destination.exists():
            return self._skip(url, SKIP_EXISTING, str(destination))

        async with self.semaphore:
            try:
                response = await self.transport.fetch(url, binary=True, max_bytes=self.config.image_max_bytes)
            except FetchError as e:
                self.stats["failed"] += 1
                self.logger.warning(f"Image download failed for {url}: {e}")
                return ImageDownloadResult(url=url, error=str(e))

            if response.oversized or response.content is None or len(response.content) > self.config.image_max_bytes:
                return self._skip(url, SKIP_SIZE)

            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self._write, destination, response.content)
            except OSError as e:
                self.stats["failed"] += 1
                self.logger.warning(f"Could not write image {destination}: {e}")
                return ImageDownloadResult(url=url, error=str(e))

        self.stats["downloaded"] += 1
        self.logger.debug(f"Saved image {url} -> {destination}")
        return ImageDownloadResult(url=url, local_path=str(destination))

    @staticmethod
    def _write(destination: Path, content: bytes):
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(content)
