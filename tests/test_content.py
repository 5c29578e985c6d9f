#!/usr/bin/env python3
"""
Tests for the site content layer: field rules, normalization, database rows and the loader chain
"""

import json
import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import requests

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from covenant.content.fallback import fallback_content
from covenant.content.loader import ContentCache, ContentLoader, ExportCache
from covenant.content.normalize import (
    DEFAULT_HERO,
    FALLBACK_SECTION_TEXT,
    build_site_content,
    normalise_article,
    normalise_sections,
    normalize_image_url,
)
from covenant.content.parse_db import parse_db_article, parse_json_text, to_iso_timestamp
from covenant.content.rules import FieldRule, first_match, is_string, lookup, matching_rule
from covenant.exceptions import StoreError

PHOTO = "https://www.thecovenant.es/wp-content/uploads/foto.jpg"


def formatted_export(*slugs):
    return {
        "pages": [
            {"url": f"https://www.thecovenant.es/{slug}", "title": slug.title(), "paragraphs": [f"Texto de {slug}"]}
            for slug in slugs
        ],
    }


class TestFieldRules:
    """Test ordered field extraction"""

    RULES = (
        FieldRule("slug", "slug", is_string),
        FieldRule("meta.slug", "meta.slug", is_string, str.lower),
    )

    def test_first_present_rule_wins(self):
        assert first_match({"slug": "a", "meta": {"slug": "B"}}, self.RULES) == "a"
        assert first_match({"meta": {"slug": "B"}}, self.RULES) == "b"

    def test_rejected_value_falls_through(self):
        record = {"slug": 42, "meta": {"slug": "Otro"}}

        assert first_match(record, self.RULES) == "otro"
        assert matching_rule(record, self.RULES) == "meta.slug"

    def test_default_when_nothing_matches(self):
        assert first_match({}, self.RULES, default="x") == "x"
        assert matching_rule({"slug": None}, self.RULES) is None

    def test_lookup_walks_mappings_only(self):
        assert lookup({"a": {"b": 1}}, "a.b") == 1
        assert first_match({"a": [1]}, (FieldRule("a.b", "a.b"),)) is None


class TestNormaliseSections:
    """Test the section source order and the fallback text"""

    def test_declared_sections(self):
        sections = normalise_sections({
            "sections": [
                "Texto suelto",
                {"type": "heading", "text": "Título"},
                {"type": "image", "src": PHOTO, "alt": "Foto"},
                {"type": "image"},
                {"type": "video", "html": "<iframe></iframe>"},
                42,
            ],
            "content": "ignorado",
        })

        assert sections == [
            {"type": "paragraph", "text": "Texto suelto"},
            {"type": "heading", "text": "Título"},
            {"type": "image", "url": PHOTO, "alt": "Foto", "caption": None},
            {"type": "embed", "html": "<iframe></iframe>"},
        ]

    def test_content_split_on_blank_lines(self):
        sections = normalise_sections({"content": "Uno\n\n\nDos\n\n  "})
        assert sections == [{"type": "paragraph", "text": "Uno"}, {"type": "paragraph", "text": "Dos"}]

    def test_content_list(self):
        sections = normalise_sections({"content": ["Uno", {"type": "quote", "text": "Cita"}]})
        assert sections == [{"type": "paragraph", "text": "Uno"}, {"type": "quote", "text": "Cita"}]

    def test_html_embed(self):
        assert normalise_sections({"html": "<p>x</p>"}) == [{"type": "embed", "html": "<p>x</p>"}]

    def test_paragraphs_with_images(self):
        """Test the first image leads and the rest trail the paragraphs"""
        sections = normalise_sections({
            "paragraphs": ["Uno", " ", "Dos"],
            "images": [{"src": PHOTO}, {"src": "https://www.thecovenant.es/b.png", "alt": "B"}],
        }, localize_images=True)

        assert [section["type"] for section in sections] == ["image", "paragraph", "paragraph", "image"]
        assert sections[0]["url"] == "/images/www_thecovenant_es/foto_jpg.jpg"
        assert sections[3]["url"] == "/images/www_thecovenant_es/b_png.png"

    def test_fallback_text(self):
        assert normalise_sections({}) == [{"type": "paragraph", "text": FALLBACK_SECTION_TEXT}]


class TestNormaliseArticle:
    """Test formatted page to Article"""

    def test_slug_from_url(self):
        article = normalise_article({"url": "https://thecovenant.es/blog/mi-post", "title": "Mi post"})

        assert article.slug == "blog/mi-post"
        assert article.title == "Mi post"

    def test_slug_precedence_and_prefix(self):
        article = normalise_article({"slug": "/cronicas/uno", "path": "/otra", "url": "https://x/y"})
        assert article.slug == "cronicas/uno"
        assert article.title == "Sin título"

    def test_root_page_skipped(self):
        assert normalise_article({"url": "https://www.thecovenant.es/"}) is None
        assert normalise_article({"title": "Sin slug"}) is None
        assert normalise_article("not a page") is None

    def test_derived_fields(self):
        article = normalise_article({
            "url": "https://www.thecovenant.es/escape-rooms/la-cripta",
            "excerpt": "Entradilla",
            "coverImage": {"url": PHOTO, "alt": "Portada"},
            "section": "Reseñas",
            "tags": ["terror", 3],
            "readingTimeMinutes": 3,
            "escapeRoomScoring": {"global": {"value": 4.5}},
        }, localize_images=True)

        assert article.description == "Entradilla"
        assert article.excerpt == "Entradilla"
        assert article.category == "Reseñas"
        assert article.tags == ["terror"]
        assert article.readingTime == "3 min"
        assert article.coverImage.url == "/images/www_thecovenant_es/foto_jpg.jpg"
        assert article.coverImage.alt == "Portada"
        assert article.escapeRoomScoring == {"global": {"value": 4.5}}

    def test_normalize_image_url_passthrough(self):
        assert normalize_image_url("/images/local.jpg") == "/images/local.jpg"
        assert normalize_image_url(None) is None


class TestBuildSiteContent:
    """Test the SiteContent assembly defaults"""

    def test_featured_and_highlight_defaults(self):
        content = build_site_content(formatted_export("a", "b", "c", "d", "e"))

        assert content.featured == ["a", "b", "c", "d"]
        assert content.highlight == "a"
        assert content.hero.title == DEFAULT_HERO["title"]
        assert content.highlight_article().title == "A"
        assert [link.label for link in content.navigation.primary][0] == "Crónicas"

    def test_explicit_featured(self):
        raw = formatted_export("a", "b")
        raw.update({"featuredSlugs": ["b"], "highlightSlug": "b", "hero": {"title": "Otro"}})

        content = build_site_content(raw)

        assert content.featured == ["b"]
        assert content.highlight == "b"
        assert content.hero.title == "Otro"
        assert content.hero.cta.href == "/cronicas"

    def test_no_articles(self):
        assert build_site_content({"pages": [{"url": "https://www.thecovenant.es/"}]}) is None
        assert build_site_content([]) is None

    def test_article_lookup(self):
        content = build_site_content(formatted_export("blog/uno"))

        assert content.article("/blog/uno").slug == "blog/uno"
        assert content.article("blog/dos") is None


class TestParseDbArticle:
    """Test database rows with JSON text columns"""

    def test_row_with_json_columns(self):
        article = parse_db_article({
            "slug": "blog/uno",
            "title": "Uno",
            "sections": json.dumps([{"type": "paragraph", "text": "Hola"}, {"text": "sin tipo"}, "x"]),
            "tags": json.dumps(["terror"]),
            "publishedAt": "2024-03-01T10:00:00Z",
            "coverImageUrl": PHOTO,
            "escapeRoomScoring": json.dumps({"global": {"value": 4}}),
            "escapeRoomGeneralData": "{broken",
        })

        assert [section.text for section in article.sections] == ["Hola"]
        assert article.tags == ["terror"]
        assert article.publishedAt == "2024-03-01T10:00:00.000Z"
        assert article.coverImage.url == "/images/www_thecovenant_es/foto_jpg.jpg"
        assert article.escapeRoomScoring == {"global": {"value": 4}}
        assert article.escapeRoomGeneralData is None

    def test_unusable_columns(self):
        article = parse_db_article({"slug": "x", "title": "X", "sections": "not json", "tags": "also not json"})

        assert article.sections[0].text == FALLBACK_SECTION_TEXT
        assert article.tags is None
        assert article.coverImage is None

    def test_parse_json_text(self):
        assert parse_json_text("[1]") == [1]
        assert parse_json_text("nope") is None
        assert parse_json_text("  ") is None
        assert parse_json_text({"a": 1}) == {"a": 1}

    def test_to_iso_timestamp(self):
        assert to_iso_timestamp("2024-01-01T12:00:00") == "2024-01-01T12:00:00.000Z"
        assert to_iso_timestamp("2024-01-01T13:00:00.123456+01:00") == "2024-01-01T12:00:00.123Z"
        assert to_iso_timestamp("ayer") is None
        assert to_iso_timestamp(None) is None


class TestContentLoader:
    """Test the content source priority chain"""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.export_path = self.temp_dir / "export.json"

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_export(self, *slugs):
        self.export_path.write_text(json.dumps(formatted_export(*slugs)), encoding="utf-8")

    def test_local_export(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)
        self.write_export("blog/uno")

        content, source = ContentLoader(export_path=str(self.export_path)).load()

        assert source == "export"
        assert content.articles[0].slug == "blog/uno"

    def test_cwd_data_candidate(self, monkeypatch):
        """Test data/ under the working directory is searched"""
        monkeypatch.chdir(self.temp_dir)
        data_dir = self.temp_dir / "data"
        data_dir.mkdir()
        (data_dir / "thecovenant-export-formatted.json").write_text(
            json.dumps(formatted_export("blog/dos")), encoding="utf-8")

        content, source = ContentLoader(export_path=str(self.temp_dir / "missing.json")).load()

        assert source == "export"
        assert content.articles[0].slug == "blog/dos"

    def test_fallback_when_nothing_available(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)

        content, source = ContentLoader(export_path=str(self.temp_dir / "missing.json")).load()

        assert source == "fallback"
        assert content.highlight == "cronicas/el-umbral"

    def test_export_without_articles_falls_back(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)
        self.export_path.write_text(json.dumps({"pages": []}), encoding="utf-8")

        _, source = ContentLoader(export_path=str(self.export_path)).load()

        assert source == "fallback"

    def test_remote_export_preferred(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)
        self.write_export("local")
        session = MagicMock()
        session.get.return_value.json.return_value = formatted_export("remoto")

        loader = ContentLoader(export_url="https://cdn.example.com/export.json",
                               export_path=str(self.export_path), session=session)
        content, source = loader.load()

        assert source == "export"
        assert content.articles[0].slug == "remoto"
        session.get.assert_called_once_with("https://cdn.example.com/export.json", timeout=10.0)

    def test_remote_failure_uses_local(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)
        self.write_export("local")
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")

        loader = ContentLoader(export_url="https://cdn.example.com/export.json",
                               export_path=str(self.export_path), session=session)
        content, _ = loader.load()

        assert content.articles[0].slug == "local"

    def test_database_failure_falls_through(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)
        self.write_export("blog/uno")
        factory = MagicMock(side_effect=StoreError("connection refused"))

        loader = ContentLoader(source="database", database_url="postgres://db/covenant",
                               export_path=str(self.export_path), store_factory=factory)
        _, source = loader.load()

        assert source == "export"
        factory.assert_called_once_with("postgres://db/covenant")

    def test_database_source(self):
        store = MagicMock()
        store.__enter__.return_value = store
        store.fetch_articles.return_value = [{"slug": "blog/uno", "title": "Uno"}]
        store.load_site_settings.return_value = {"hero": json.dumps({"title": "Desde la base"})}

        loader = ContentLoader(database_url="sqlite:///covenant.db", enable_db=True,
                               store_factory=lambda url: store)
        content, source = loader.load()

        assert source == "database"
        assert content.hero.title == "Desde la base"
        assert content.highlight == "blog/uno"

    def test_use_database(self):
        assert ContentLoader(enable_db=True, database_url="postgresql://db/x").use_database()
        assert not ContentLoader(enable_db=True, database_url="mysql://db/x").use_database()
        assert not ContentLoader(source="export", enable_db=True, database_url="postgresql://db/x").use_database()
        assert ContentLoader(source="DATABASE").use_database()


class TestCaches:
    """Test the content and export caches"""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_content_cache_loads_once(self):
        loader = MagicMock()
        loader.load.return_value = (fallback_content(), "fallback")
        cache = ContentCache(loader)

        first = cache.get()
        second = cache.get()

        assert first is second
        assert cache.source == "fallback"
        assert loader.load.call_count == 1

        cache.invalidate()
        assert not cache.is_loaded
        cache.get()
        assert loader.load.call_count == 2

    def test_export_cache_miss_not_cached(self):
        path = self.temp_dir / "export.json"
        cache = ExportCache(str(path))

        assert cache.get() is None

        path.write_text(json.dumps({"pages": []}), encoding="utf-8")
        assert cache.get() == {"pages": []}

    def test_export_cache_refresh(self):
        path = self.temp_dir / "export.json"
        path.write_text(json.dumps({"version": 1}), encoding="utf-8")
        cache = ExportCache(str(path))

        assert cache.get() == {"version": 1}
        path.write_text(json.dumps({"version": 2}), encoding="utf-8")
        assert cache.get() == {"version": 1}
        assert cache.get(refresh=True) == {"version": 2}

    def test_export_cache_invalid_json(self):
        path = self.temp_dir / "export.json"
        path.write_text("{broken", encoding="utf-8")

        assert ExportCache(str(path)).get() is None
