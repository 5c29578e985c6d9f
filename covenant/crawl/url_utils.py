"""
URL normalization and same-site host handling
"""

import re
from typing import Iterable, Optional, Set
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

ALLOWED_SCHEMES = ("http", "https")


def allowed_hostnames(start_url: str) -> Set[str]:
    """Return the start URL's hostname plus its www-prefixed or stripped variant"""
    hostname = (urlparse(start_url).hostname or "").lower()
    if not hostname:
        return set()
    hostnames = {hostname}
    if hostname.startswith("www."):
        hostnames.add(hostname[4:])
    else:
        hostnames.add(f"www.{hostname}")
    return hostnames


def strip_www(hostname: Optional[str]) -> str:
    hostname = (hostname or "").lower()
    return hostname[4:] if hostname.startswith("www.") else hostname


def to_absolute_url(raw_url: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """Resolve a possibly relative URL against a base, dropping the fragment"""
    if not raw_url:
        return None
    raw_url = raw_url.strip()
    if not raw_url:
        return None
    try:
        resolved = urljoin(base_url, raw_url) if base_url else raw_url
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if not parsed.scheme:
        return None
    if parsed.scheme in ALLOWED_SCHEMES and not parsed.netloc:
        return None
    if parsed.scheme in ALLOWED_SCHEMES and not parsed.path:
        parsed = parsed._replace(path="/")
    return urlunparse(parsed._replace(fragment=""))


def normalize_url(
    raw_url: Optional[str],
    base_url: Optional[str] = None,
    hostnames: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """Normalize a URL into its crawl identity key.

    The fragment is dropped, query parameters are sorted by key (values of a
    repeated key keep their order), duplicate slashes collapse and a trailing
    slash is removed except for the root path. When ``hostnames`` is given,
    URLs on any other host return ``None``.
    """
    absolute = to_absolute_url(raw_url, base_url)
    if not absolute:
        return None
    parsed = urlparse(absolute)
    if parsed.scheme not in ALLOWED_SCHEMES:
        return None
    hostname = (parsed.hostname or "").lower()
    if hostnames is not None and hostname not in set(hostnames):
        return None

    pairs = parse_qsl(parsed.query, keep_blank_values=True)
    ordered = sorted(pairs, key=lambda pair: pair[0])
    query = urlencode(ordered)

    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = re.sub(r"/+", "/", path).rstrip("/") or "/"

    netloc = parsed.netloc.lower()
    return urlunparse((parsed.scheme, netloc, path, "", query, ""))


def is_same_site(url: Optional[str], hostnames: Iterable[str]) -> bool:
    if not url:
        return False
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return hostname in set(hostnames)


def swap_hostname(url: str, hostname: str) -> str:
    """Return ``url`` with its hostname replaced, keeping any port"""
    parsed = urlparse(url)
    netloc = hostname
    if parsed.port:
        netloc = f"{hostname}:{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


def path_parts(url: Optional[str]):
    """Non-empty path segments of a URL (or of a bare path)"""
    if not url:
        return []
    try:
        parsed = urlparse(url)
        path = parsed.path if parsed.scheme else url
    except ValueError:
        path = url
    return [part for part in path.split("/") if part]
