"""
Exception taxonomy for the crawl, format and sync pipeline
"""

from typing import Dict, Optional


class CovenantError(Exception):
    """Base class for pipeline errors"""


class FetchError(CovenantError):
    """A URL could not be fetched.

    ``kind`` is one of ``dns``, ``timeout``, ``http`` or ``network``. HTTP
    failures keep the response body because some sites return useful
    error-page HTML.
    """

    DNS = "dns"
    TIMEOUT = "timeout"
    HTTP = "http"
    NETWORK = "network"

    def __init__(
        self,
        url: str,
        kind: str,
        message: str = "",
        status: Optional[int] = None,
        body: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.url = url
        self.kind = kind
        self.status = status
        self.body = body
        self.headers = headers or {}
        detail = message or (f"HTTP {status}" if status else kind)
        super().__init__(f"Failed to fetch {url}: {detail}")

    @property
    def is_dns_failure(self) -> bool:
        return self.kind == self.DNS


class ExportFormatError(CovenantError):
    """The raw crawl export is missing, unreadable or malformed"""


class ContentSourceError(CovenantError):
    """A content source could not produce site content"""


class StoreError(CovenantError):
    """Persistent store failure"""
