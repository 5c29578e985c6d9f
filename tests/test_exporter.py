#!/usr/bin/env python3
"""
Tests for the export formatter, its options and the files it writes
"""

import json
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from covenant.exceptions import ExportFormatError
from covenant.formatter.exporter import ExportFormatter, load_raw_export
from covenant.formatter.options import FormatOptions, parse_types

ROOT = "https://www.thecovenant.es/"


def raw_export(review_html):
    return {
        "crawledAt": "2024-05-01T10:00:00Z",
        "startUrl": ROOT,
        "totalPages": 4,
        "settings": {"maxPages": 10, "concurrency": 2, "includeSitemaps": False, "downloadImages": False},
        "pages": [
            {
                "url": "https://www.thecovenant.es/escape-rooms/la-cripta/",
                "status": 200,
                "contentType": "text/html",
                "title": "La Cripta",
                "rawHtml": review_html,
            },
            {
                "url": "http://thecovenant.es/escape-rooms/la-cripta/",
                "status": 200,
                "contentType": "text/html",
                "title": "La Cripta",
                "rawHtml": "<html><body><h1>La Cripta</h1><p>Corto</p></body></html>",
            },
            {
                "url": ROOT,
                "status": 200,
                "contentType": "text/html",
                "title": "Inicio",
                "rawHtml": "<html><body><main><h1>Inicio</h1><p>Bienvenidos a The Covenant</p></main></body></html>",
            },
            {"url": "https://www.thecovenant.es/logo.png", "status": 200, "contentType": "image/png"},
        ],
    }


class TestLoadRawExport:
    """Test the failure modes of the raw export reader"""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_file(self):
        with pytest.raises(ExportFormatError, match="not found"):
            load_raw_export(self.temp_dir / "missing.json")

    def test_invalid_json(self):
        path = self.temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ExportFormatError, match="not valid JSON"):
            load_raw_export(path)

    def test_without_pages(self):
        path = self.temp_dir / "empty.json"
        path.write_text(json.dumps({"startUrl": ROOT}), encoding="utf-8")

        with pytest.raises(ExportFormatError, match="pages"):
            load_raw_export(path)


class TestFormatOptions:
    """Test environment defaults and flag overrides"""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCRAPE_EXPORT_INPUT", "in.json")
        monkeypatch.setenv("SCRAPE_EXPORT_NDJSON", "yes")
        monkeypatch.setenv("SCRAPE_EXPORT_MIN_WORDS", "50")
        monkeypatch.setenv("SCRAPE_EXPORT_TYPES", "Article, escapeRoomReview")

        options = FormatOptions.from_env()

        assert options.input_path == Path("in.json")
        assert options.emit_ndjson is True
        assert options.split_json is False
        assert options.min_words == 50
        assert options.include_types == frozenset({"article", "escaperoomreview"})

    def test_flags_override_env(self, monkeypatch):
        """Test every non-None flag wins and None keeps the environment value"""
        monkeypatch.setenv("SCRAPE_EXPORT_MIN_WORDS", "50")
        monkeypatch.setenv("SCRAPE_EXPORT_NDJSON", "true")

        options = FormatOptions.from_env().override(min_words=0, emit_ndjson=None, types="page")

        assert options.min_words == 0
        assert options.emit_ndjson is True
        assert options.include_types == frozenset({"page"})

    def test_parse_types(self):
        assert parse_types(None) is None
        assert parse_types(" , ") is None
        assert parse_types("Page,landing") == frozenset({"page", "landing"})


class TestExportFormatter:
    """Test the formatted export and the generic collections"""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.input_path = self.temp_dir / "raw.json"
        self.options = FormatOptions(
            input_path=self.input_path,
            output_path=self.temp_dir / "formatted.json",
            out_dir=self.temp_dir / "exports",
        )

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_raw(self, review_html):
        self.input_path.write_text(json.dumps(raw_export(review_html)), encoding="utf-8")

    def test_format_export(self, review_html):
        """Test reconciliation, source block and assets"""
        formatted = ExportFormatter(self.options).format_export(raw_export(review_html))

        assert formatted["source"]["startUrl"] == ROOT
        assert formatted["source"]["totalPages"] == 4
        assert formatted["generatedAt"].endswith("Z")
        assert len(formatted["pages"]) == 2
        assert formatted["assets"][0]["url"] == "https://www.thecovenant.es/logo.png"

        review = next(page for page in formatted["pages"] if "la-cripta" in page["url"])
        assert review["sourceUrls"] == ["http://thecovenant.es/escape-rooms/la-cripta/"]
        assert review["escapeRoomScoring"]["terror"]["value"] == 4

    def test_run_writes_files(self, review_html):
        self.write_raw(review_html)

        summary = ExportFormatter(self.options).run()

        assert summary["pages"] == 2
        assert summary["assets"] == 1
        assert summary["entries"] == 2
        assert summary["types"] == {"escaperoomreview": 1, "landing": 1}

        formatted = json.loads((self.temp_dir / "formatted.json").read_text(encoding="utf-8"))
        assert len(formatted["pages"]) == 2

        generic = json.loads((self.temp_dir / "exports" / "generic.json").read_text(encoding="utf-8"))
        assert generic["total"] == 2
        assert [entry["path"] for entry in generic["entries"]] == ["/", "/escape-rooms/la-cripta"]
        assert not (self.temp_dir / "exports" / "landing.json").exists()

    def test_split_and_ndjson(self, review_html):
        """Test per-type JSON and NDJSON collections"""
        self.write_raw(review_html)
        options = self.options.override(split_json=True, emit_ndjson=True)

        summary = ExportFormatter(options).run()

        exports = self.temp_dir / "exports"
        landing = json.loads((exports / "landing.json").read_text(encoding="utf-8"))
        assert landing["total"] == 1
        lines = (exports / "escaperoomreview.ndjson").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["slug"] == "la-cripta"
        assert str(exports / "escaperoomreview.json") in summary["files"]

    def test_min_words_and_type_filters(self, review_html):
        formatter = ExportFormatter(self.options.override(min_words=10))
        pages = formatter.format_export(raw_export(review_html))["pages"]

        entries = formatter.generic_entries(pages)
        assert [entry["type"] for entry in entries] == ["escapeRoomReview"]

        filtered = ExportFormatter(self.options.override(types="landing")).generic_entries(pages)
        assert [entry["type"] for entry in filtered] == ["landing"]

    def test_run_missing_input(self):
        with pytest.raises(ExportFormatError):
            ExportFormatter(self.options).run()
