#!/usr/bin/env python3
"""
Tests for URL normalization and same-site host handling
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from covenant.crawl.url_utils import (
    allowed_hostnames,
    is_same_site,
    normalize_url,
    path_parts,
    strip_www,
    swap_hostname,
    to_absolute_url,
)

HOSTS = {"www.thecovenant.es", "thecovenant.es"}


class TestAllowedHostnames:
    """Test the start URL host set"""

    def test_www_start_url(self):
        """Test a www start URL also allows the bare host"""
        assert allowed_hostnames("https://www.thecovenant.es/") == HOSTS

    def test_bare_start_url(self):
        """Test a bare start URL also allows the www host"""
        assert allowed_hostnames("https://thecovenant.es/blog") == HOSTS

    def test_invalid_start_url(self):
        """Test a URL without host yields no hostnames"""
        assert allowed_hostnames("not a url") == set()


class TestNormalizeUrl:
    """Test the crawl identity key"""

    def test_fragment_removed(self):
        assert normalize_url("https://www.thecovenant.es/a#top") == "https://www.thecovenant.es/a"

    def test_trailing_slash_removed(self):
        """Test trailing slash is stripped except for the root"""
        assert normalize_url("https://www.thecovenant.es/blog/") == "https://www.thecovenant.es/blog"
        assert normalize_url("https://www.thecovenant.es/") == "https://www.thecovenant.es/"

    def test_empty_path_becomes_root(self):
        assert normalize_url("https://www.thecovenant.es") == "https://www.thecovenant.es/"

    def test_query_sorted_by_key(self):
        """Test query parameters are sorted by key"""
        result = normalize_url("https://www.thecovenant.es/search?b=2&a=1")
        assert result == "https://www.thecovenant.es/search?a=1&b=2"

    def test_relative_url_resolved(self):
        result = normalize_url("../cronicas/", "https://www.thecovenant.es/blog/post", HOSTS)
        assert result == "https://www.thecovenant.es/cronicas"

    def test_foreign_host_rejected(self):
        """Test hosts outside the allowed set are dropped"""
        assert normalize_url("https://twitter.com/thecovenant", hostnames=HOSTS) is None

    def test_www_variant_accepted(self):
        assert normalize_url("https://thecovenant.es/x/", hostnames=HOSTS) == "https://thecovenant.es/x"

    def test_non_http_scheme_rejected(self):
        assert normalize_url("mailto:hola@thecovenant.es") is None
        assert normalize_url("javascript:void(0)") is None

    def test_empty_input(self):
        assert normalize_url(None) is None
        assert normalize_url("   ") is None

    def test_idempotent(self):
        """Test normalizing twice gives the same key"""
        once = normalize_url("https://WWW.thecovenant.es/blog/?z=1&a=2#frag")
        assert normalize_url(once) == once


class TestUrlHelpers:
    """Test the smaller URL helpers"""

    def test_strip_www(self):
        assert strip_www("www.thecovenant.es") == "thecovenant.es"
        assert strip_www("thecovenant.es") == "thecovenant.es"
        assert strip_www(None) == ""

    def test_to_absolute_url(self):
        assert to_absolute_url("/img/a.png", "https://thecovenant.es/blog/") == "https://thecovenant.es/img/a.png"
        assert to_absolute_url("relative/path") is None
        assert to_absolute_url("") is None

    def test_is_same_site(self):
        assert is_same_site("https://thecovenant.es/a", HOSTS) is True
        assert is_same_site("https://example.com/a", HOSTS) is False
        assert is_same_site(None, HOSTS) is False

    def test_swap_hostname_keeps_port(self):
        result = swap_hostname("http://www.thecovenant.es:8080/a?b=1", "thecovenant.es")
        assert result == "http://thecovenant.es:8080/a?b=1"

    def test_path_parts(self):
        assert path_parts("https://thecovenant.es/blog/post-1/") == ["blog", "post-1"]
        assert path_parts("/cronicas/el-umbral") == ["cronicas", "el-umbral"]
        assert path_parts("https://thecovenant.es/") == []
        assert path_parts(None) == []
