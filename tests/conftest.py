"""
Shared fixtures for the pipeline tests
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from covenant.crawl.models import FetchResponse
from covenant.exceptions import FetchError

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class FakeTransport:
    """In-memory transport.

    ``pages`` maps a URL to HTML text, to raw bytes (served as an image) or
    to a ``FetchError`` to raise. Unknown URLs answer 404. With
    ``enforce_max_bytes=False`` bodies are served whole, as when a server
    sends no Content-Length.
    """

    def __init__(self, pages=None, delay: float = 0, enforce_max_bytes: bool = True):
        self.pages = pages or {}
        self.delay = delay
        self.enforce_max_bytes = enforce_max_bytes
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url, binary=False, max_bytes=None):
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            entry = self.pages.get(url)
            if entry is None:
                raise FetchError(url, FetchError.HTTP, status=404, body="Not found",
                                 headers={"content-type": "text/html"})
            if isinstance(entry, FetchError):
                raise entry
            if isinstance(entry, bytes):
                oversized = self.enforce_max_bytes and max_bytes is not None and len(entry) > max_bytes
                return FetchResponse(url=url, status=200, body=None, headers={"content-type": "image/jpeg"},
                                     content=None if oversized else entry, oversized=oversized)
            return FetchResponse(url=url, status=200, body=entry,
                                 headers={"content-type": "text/html; charset=utf-8"})
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def review_html():
    return read_fixture("review-with-tables.html")


@pytest.fixture
def non_review_html():
    return read_fixture("non-review.html")
