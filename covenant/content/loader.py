"""
Content source selection and in-process caches

Priority chain:
  1. ``CONTENT_SOURCE`` forces ``database`` or ``export``
  2. otherwise the database is used when ``ENABLE_DB`` is on and
     ``DATABASE_URL`` is a supported URL
  3. the formatted export, from ``CONTENT_EXPORT_URL`` when configured,
     else the first local candidate path that exists
  4. the curated fallback content

A database failure falls through to the export; an export failure falls
through to the fallback. The cache keeps whatever the first load
produced, fallback included, until it is invalidated.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError

from ..exceptions import ContentSourceError, StoreError
from .fallback import fallback_content
from .models import SiteContent
from .normalize import assemble_site_content, build_site_content
from .parse_db import parse_db_article, parse_json_text
from .store import ArticleStore, is_valid_database_url, open_store

EXPORT_FILENAME = "thecovenant-export-formatted.json"
DEFAULT_EXPORT_PATH = os.path.join("data", EXPORT_FILENAME)

SOURCE_DATABASE = "database"
SOURCE_EXPORT = "export"
SOURCE_FALLBACK = "fallback"


class ContentLoader:
    """Resolves site content from the first source that works"""

    def __init__(
        self,
        source: Optional[str] = None,
        database_url: Optional[str] = None,
        enable_db: bool = False,
        export_url: Optional[str] = None,
        export_path: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        store_factory: Callable[[str], ArticleStore] = open_store,
    ):
        self.source = (source or "").strip().lower() or None
        self.database_url = database_url
        self.enable_db = enable_db
        self.export_url = export_url
        self.export_path = export_path
        self.session = session or requests.Session()
        self.timeout = timeout
        self.store_factory = store_factory
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings) -> "ContentLoader":
        return cls(
            source=settings.CONTENT_SOURCE,
            database_url=settings.DATABASE_URL,
            enable_db=settings.ENABLE_DB,
            export_url=settings.CONTENT_EXPORT_URL,
            export_path=settings.CONTENT_EXPORT_PATH,
        )

    def use_database(self) -> bool:
        if self.source == SOURCE_DATABASE:
            return True
        if self.source == SOURCE_EXPORT:
            return False
        return self.enable_db and is_valid_database_url(self.database_url)

    def candidate_paths(self) -> List[Path]:
        candidates: List[Path] = []
        if self.export_path:
            candidates.append(Path(self.export_path).resolve())
        cwd = Path.cwd()
        for candidate in (cwd / "public" / EXPORT_FILENAME, cwd / "data" / EXPORT_FILENAME):
            if candidate not in candidates:
                candidates.append(candidate)
        return candidates

    # Sources --------------------------------------------------------------

    def load_from_database(self) -> SiteContent:
        try:
            with self.store_factory(self.database_url) as store:
                rows = store.fetch_articles()
                settings = store.load_site_settings() or {}
        except StoreError as e:
            raise ContentSourceError(f"Database unavailable: {e}") from e

        try:
            articles = [parse_db_article(row) for row in rows]
            raw = {key: parse_json_text(value) for key, value in settings.items()}
            raw["highlightSlug"] = settings.get("highlightSlug")
            content = assemble_site_content(raw, articles)
        except ValidationError as e:
            raise ContentSourceError(f"Database rows are not valid site content: {e}") from e
        if content is None:
            raise ContentSourceError("Database holds no articles")
        return content

    def fetch_remote_export(self) -> Dict[str, Any]:
        try:
            response = self.session.get(self.export_url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise ContentSourceError(f"Could not fetch export from {self.export_url}: {e}") from e

    def read_local_export(self) -> Dict[str, Any]:
        for candidate in self.candidate_paths():
            if not candidate.exists():
                continue
            try:
                with open(candidate, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                raise ContentSourceError(f"Could not read export from {candidate}: {e}") from e
        raise ContentSourceError(
            f"Formatted export not found. Set CONTENT_EXPORT_PATH or place {EXPORT_FILENAME} in public/ or data/."
        )

    def load_export(self) -> SiteContent:
        raw = None
        if self.export_url:
            try:
                raw = self.fetch_remote_export()
            except ContentSourceError as e:
                self.logger.warning(str(e))
        if raw is None:
            raw = self.read_local_export()
        try:
            content = build_site_content(raw)
        except ValidationError as e:
            raise ContentSourceError(f"Export is not valid site content: {e}") from e
        if content is None:
            raise ContentSourceError("Export contains no valid articles")
        return content

    def load(self) -> Tuple[SiteContent, str]:
        """Never raises: the last resort is the curated fallback"""
        if self.use_database():
            try:
                content = self.load_from_database()
                self.logger.info(f"Loaded {len(content.articles)} articles from the database")
                return content, SOURCE_DATABASE
            except ContentSourceError as e:
                self.logger.error(f"{e}; falling back to the export")
        try:
            content = self.load_export()
            self.logger.info(f"Loaded {len(content.articles)} articles from the export")
            return content, SOURCE_EXPORT
        except ContentSourceError as e:
            self.logger.warning(f"{e}; using fallback content")
        return fallback_content(), SOURCE_FALLBACK


class ContentCache:
    """Populate once, then serve the same content until invalidated or restart"""

    def __init__(self, loader: ContentLoader):
        self.loader = loader
        self._content: Optional[SiteContent] = None
        self.source: Optional[str] = None
        self.loaded_at: Optional[float] = None

    @property
    def is_loaded(self) -> bool:
        return self._content is not None

    def get(self) -> SiteContent:
        if self._content is None:
            self._content, self.source = self.loader.load()
            self.loaded_at = time.time()
        return self._content

    def invalidate(self):
        self._content = None
        self.source = None
        self.loaded_at = None


class ExportCache:
    """The formatted export served verbatim; a missing file is not cached"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or DEFAULT_EXPORT_PATH)
        self._payload: Optional[Dict[str, Any]] = None
        self.logger = logging.getLogger(__name__)

    def invalidate(self):
        self._payload = None

    def get(self, refresh: bool = False) -> Optional[Dict[str, Any]]:
        if refresh:
            self.invalidate()
        if self._payload is None:
            self._payload = self._read()
        return self._payload

    def _read(self) -> Optional[Dict[str, Any]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not read export at {self.path}: {e}")
            return None
