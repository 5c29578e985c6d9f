"""
HTTP transport with same-site hostname fallback on DNS failures
"""

import asyncio
import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import FetchError
from .config import CrawlConfig
from .models import FetchResponse
from .url_utils import swap_hostname

DNS_ERROR_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
    "failed to resolve",
)

CHUNK_SIZE = 64 * 1024


def is_dns_error(error: BaseException) -> bool:
    """Walk an exception chain looking for a host-resolution failure"""
    seen = set()
    pending: List[BaseException] = [error]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        if type(current).__name__ == "NameResolutionError":
            return True
        message = str(current).lower()
        if any(marker in message for marker in DNS_ERROR_MARKERS):
            return True
        pending.extend(arg for arg in getattr(current, "args", ()) if isinstance(arg, BaseException))
        for attr in ("reason", "__cause__", "__context__"):
            nested = getattr(current, attr, None)
            if isinstance(nested, BaseException):
                pending.append(nested)
    return False


class HttpTransport:
    """Fetches URLs with browser-like headers on a worker thread pool.

    Redirects are followed; any final status outside 2xx/3xx raises a
    ``FetchError`` of kind ``http`` that keeps the response body. A DNS
    failure is retried once per untried allowed hostname variant.
    """

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        hostnames: Optional[Iterable[str]] = None,
        session: Optional[requests.Session] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config or CrawlConfig()
        self.hostnames = sorted(hostnames or [])
        self.session = session or self._create_session()
        workers = max_workers or (self.config.concurrency + self.config.image_concurrency + 2)
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="covenant-fetch")
        self.logger = logging.getLogger(__name__)

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        # Failures are recorded, not retried
        retry_strategy = Retry(total=0, raise_on_status=False)
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.max_redirects = self.config.max_redirects
        session.headers.update({
            "User-Agent": self.config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.config.accept_language,
        })
        return session

    def close(self):
        self.executor.shutdown(wait=False)
        self.session.close()

    async def fetch(self, url: str, binary: bool = False, max_bytes: Optional[int] = None) -> FetchResponse:
        """Fetch ``url`` without blocking the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.fetch_sync, url, binary, max_bytes)

    def fetch_sync(self, url: str, binary: bool = False, max_bytes: Optional[int] = None) -> FetchResponse:
        tried = set()
        candidate = url
        while True:
            try:
                return self._get(candidate, binary, max_bytes)
            except FetchError as e:
                if not e.is_dns_failure:
                    raise
                tried.add(self._hostname(candidate))
                alternate = self._next_variant(candidate, tried)
                if alternate is None:
                    raise
                self.logger.info(f"DNS lookup failed for {candidate}, retrying as {alternate}")
                candidate = alternate

    def _hostname(self, url: str) -> str:
        return (urlparse(url).hostname or "").lower()

    def _next_variant(self, url: str, tried: set) -> Optional[str]:
        current = self._hostname(url)
        if current not in self.hostnames:
            return None
        for hostname in self.hostnames:
            if hostname not in tried:
                return swap_hostname(url, hostname)
        return None

    def _get(self, url: str, binary: bool, max_bytes: Optional[int]) -> FetchResponse:
        try:
            response = self.session.get(url, timeout=self.config.timeout, stream=True)
        except requests.Timeout as e:
            raise FetchError(url, FetchError.TIMEOUT, str(e)) from e
        except requests.RequestException as e:
            kind = FetchError.DNS if is_dns_error(e) else FetchError.NETWORK
            raise FetchError(url, kind, str(e)) from e

        try:
            headers = {key.lower(): value for key, value in response.headers.items()}
            status = response.status_code

            if max_bytes is not None and _declared_length(headers) > max_bytes:
                return FetchResponse(url=response.url or url, status=status, body=None,
                                     headers=headers, oversized=True)

            content = self._read(response, max_bytes)
            oversized = max_bytes is not None and len(content) > max_bytes
            body = None
            if not binary:
                declared = "charset=" in (headers.get("content-type") or "").lower()
                encoding = (response.encoding if declared else None) or "utf-8"
                try:
                    body = content.decode(encoding, errors="replace")
                except LookupError:
                    body = content.decode("utf-8", errors="replace")

            if not 200 <= status < 400:
                text = body if body is not None else content.decode("utf-8", errors="replace")
                raise FetchError(url, FetchError.HTTP, status=status, body=text or None, headers=headers)

            return FetchResponse(
                url=response.url or url,
                status=status,
                body=body,
                headers=headers,
                content=None if oversized else content,
                oversized=oversized,
            )
        except requests.Timeout as e:
            raise FetchError(url, FetchError.TIMEOUT, str(e)) from e
        except requests.RequestException as e:
            raise FetchError(url, FetchError.NETWORK, str(e)) from e
        finally:
            response.close()

    @staticmethod
    def _read(response: requests.Response, max_bytes: Optional[int]) -> bytes:
        chunks = []
        total = 0
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            chunks.append(chunk)
            total += len(chunk)
            if max_bytes is not None and total > max_bytes:
                break
        return b"".join(chunks)


def _declared_length(headers) -> int:
    try:
        return int(headers.get("content-length") or 0)
    except ValueError:
        return 0
