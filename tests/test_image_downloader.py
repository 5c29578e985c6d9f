#!/usr/bin/env python3
"""
Tests for the image downloader and the local mirror layout
"""

import asyncio
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from covenant.crawl.config import CrawlConfig
from covenant.crawl.image_downloader import (
    SKIP_DUPLICATE,
    SKIP_EXISTING,
    SKIP_EXTENSION,
    SKIP_NO_SRC,
    SKIP_SIZE,
    ImageDownloader,
    local_image_path,
)
from covenant.exceptions import FetchError

PHOTO = "https://www.thecovenant.es/wp-content/uploads/foto.jpg"


class TestLocalImagePath:
    """Test the host_dir/name_ext.ext layout"""

    def test_simple(self):
        assert local_image_path(PHOTO) == "www_thecovenant_es/foto_jpg.jpg"

    def test_unsafe_characters_and_case(self):
        path = local_image_path("https://cdn.example.com/a/b/My%20Photo.JPG?ver=2")
        assert path == "cdn_example_com/My-Photo_jpg.jpg"

    def test_without_extension(self):
        assert local_image_path("https://www.thecovenant.es/images/logo") is None
        assert local_image_path(None) is None
        assert local_image_path("/relative/only.png") is None


class TestImageDownloader:
    """Test download outcomes and statistics"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config = CrawlConfig(image_dir=self.temp_dir, image_max_bytes=16)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    @pytest.mark.asyncio
    async def test_download_and_duplicate(self, fake_transport):
        """Test the first download writes the file and the second is skipped"""
        transport = fake_transport({PHOTO: b"JPEGDATA"})
        downloader = ImageDownloader(transport, self.config)

        first = await downloader.download(PHOTO)
        second = await downloader.download(PHOTO)

        expected = Path(self.temp_dir) / "www_thecovenant_es" / "foto_jpg.jpg"
        assert first.ok
        assert first.local_path == str(expected)
        assert expected.read_bytes() == b"JPEGDATA"
        assert second.skipped == SKIP_DUPLICATE
        assert second.local_path == str(expected)
        assert transport.calls == [PHOTO]
        assert downloader.stats == {"downloaded": 1, "failed": 0, "skipped": 1}

    @pytest.mark.asyncio
    async def test_missing_src(self, fake_transport):
        result = await ImageDownloader(fake_transport(), self.config).download(None)
        assert result.skipped == SKIP_NO_SRC

    @pytest.mark.asyncio
    async def test_extension_not_whitelisted(self, fake_transport):
        transport = fake_transport()
        result = await ImageDownloader(transport, self.config).download("https://www.thecovenant.es/doc.pdf")

        assert result.skipped == SKIP_EXTENSION
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_existing_on_disk(self, fake_transport):
        """Test a file mirrored by an earlier run is not fetched again"""
        existing = Path(self.temp_dir) / "www_thecovenant_es" / "foto_jpg.jpg"
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"OLD")
        transport = fake_transport({PHOTO: b"NEW"})

        result = await ImageDownloader(transport, self.config).download(PHOTO)

        assert result.skipped == SKIP_EXISTING
        assert result.local_path == str(existing)
        assert existing.read_bytes() == b"OLD"
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_size_limit(self, fake_transport):
        transport = fake_transport({PHOTO: b"X" * 64})
        downloader = ImageDownloader(transport, self.config)

        result = await downloader.download(PHOTO)

        assert result.skipped == SKIP_SIZE
        assert not (Path(self.temp_dir) / "www_thecovenant_es" / "foto_jpg.jpg").exists()

    @pytest.mark.asyncio
    async def test_size_limit_on_actual_body(self, fake_transport):
        """Test a body over the limit is skipped even when the transport did not flag it"""
        transport = fake_transport({PHOTO: b"X" * 64}, enforce_max_bytes=False)
        downloader = ImageDownloader(transport, self.config)

        result = await downloader.download(PHOTO)

        assert result.skipped == SKIP_SIZE
        assert result.local_path is None
        assert not (Path(self.temp_dir) / "www_thecovenant_es").exists()
        assert downloader.downloaded[PHOTO] is None

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_download(self, fake_transport):
        """Test a second request while the first is in flight waits for its result"""
        transport = fake_transport({PHOTO: b"JPEGDATA"}, delay=0.01)
        downloader = ImageDownloader(transport, self.config)

        first, second = await asyncio.gather(downloader.download(PHOTO), downloader.download(PHOTO))

        expected = Path(self.temp_dir) / "www_thecovenant_es" / "foto_jpg.jpg"
        assert first.local_path == str(expected)
        assert second.skipped == SKIP_DUPLICATE
        assert second.local_path == str(expected)
        assert transport.calls == [PHOTO]

    @pytest.mark.asyncio
    async def test_failed_download_not_recorded_as_file(self, fake_transport):
        """Test requests racing a failed download get no local path"""
        transport = fake_transport({PHOTO: FetchError(PHOTO, FetchError.TIMEOUT, "timed out")}, delay=0.01)
        downloader = ImageDownloader(transport, self.config)

        first, second = await asyncio.gather(downloader.download(PHOTO), downloader.download(PHOTO))
        third = await downloader.download(PHOTO)

        assert first.error is not None
        assert second.skipped == SKIP_DUPLICATE
        assert second.local_path is None
        assert third.local_path is None
        assert downloader.downloaded[PHOTO] is None
        assert transport.calls == [PHOTO]

    @pytest.mark.asyncio
    async def test_fetch_failure(self, fake_transport):
        """Test a failed fetch is reported, counted and never raised"""
        transport = fake_transport({PHOTO: FetchError(PHOTO, FetchError.TIMEOUT, "timed out")})
        downloader = ImageDownloader(transport, self.config)

        result = await downloader.download(PHOTO)

        assert result.error is not None
        assert not result.ok
        assert downloader.stats["failed"] == 1
        assert result.to_dict() == {"url": PHOTO, "error": result.error}
