"""
Persistent article store

One SQL dialect shared by SQLite (local runs, tests) and PostgreSQL
(psycopg2). JSON blobs are stored as text; rows come back as dicts keyed
by the camelCase field names the rest of the pipeline uses.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

import psycopg2

from ..exceptions import StoreError

SETTINGS_ID = "default"
TABLES = ("articles", "article_revisions", "site_settings")

ARTICLE_COLUMNS = (
    ("slug", "slug"),
    ("title", "title"),
    ("description", "description"),
    ("excerpt", "excerpt"),
    ("coverImageUrl", "cover_image_url"),
    ("coverImageAlt", "cover_image_alt"),
    ("category", "category"),
    ("tags", "tags"),
    ("publishedAt", "published_at"),
    ("readingTime", "reading_time"),
    ("sections", "sections"),
    ("escapeRoomGeneralData", "escape_room_general_data"),
    ("escapeRoomScoring", "escape_room_scoring"),
)
SETTINGS_COLUMNS = (
    ("hero", "hero"),
    ("highlightSlug", "highlight_slug"),
    ("featuredSlugs", "featured_slugs"),
    ("navigation", "navigation"),
)

POSTGRES_SCHEMES = ("postgres", "postgresql")
SQLITE_SCHEMES = ("sqlite",)


def _select_list(columns: Iterable[Tuple[str, str]]) -> str:
    return ", ".join(f'{column} AS "{field}"' for field, column in columns)


class ArticleStore:
    """Base store; subclasses provide the connection and the schema types"""

    placeholder = "?"
    driver_errors: Tuple[type, ...] = ()
    id_column = "INTEGER PRIMARY KEY"
    timestamp_type = "TIMESTAMP"

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._connection = None

    # Connection handling -------------------------------------------------

    def _connect(self):
        raise NotImplementedError

    def connect(self):
        if self._connection is None:
            with self._guard("Connect"):
                self._connection = self._connect()
        return self._connection

    def close(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except self.driver_errors as e:
            raise StoreError(f"{action} failed: {e}") from e

    @contextmanager
    def transaction(self):
        """Commit on success, roll back on error"""
        connection = self.connect()
        with self._guard("Transaction"):
            with connection:
                yield self

    def execute(self, sql: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        if self.placeholder != "?":
            sql = sql.replace("?", self.placeholder)
        connection = self.connect()
        with self._guard("Query"):
            cursor = connection.cursor()
            try:
                cursor.execute(sql, tuple(params))
                if cursor.description is None:
                    return []
                names = [column[0] for column in cursor.description]
                return [dict(zip(names, row)) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def ping(self) -> bool:
        self.execute("SELECT 1")
        return True

    # Schema ---------------------------------------------------------------

    def schema(self) -> List[str]:
        ts = self.timestamp_type
        return [
            f"""
            CREATE TABLE IF NOT EXISTS articles (
                id {self.id_column},
                slug TEXT UNIQUE NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                excerpt TEXT,
                cover_image_url TEXT,
                cover_image_alt TEXT,
                category TEXT,
                tags TEXT,
                published_at {ts},
                reading_time TEXT,
                sections TEXT NOT NULL,
                escape_room_general_data TEXT,
                escape_room_scoring TEXT,
                content_hash VARCHAR(64),
                created_at {ts} DEFAULT CURRENT_TIMESTAMP,
                updated_at {ts} DEFAULT CURRENT_TIMESTAMP
            )
            """,
            f"""
            CREATE TABLE IF NOT EXISTS article_revisions (
                id {self.id_column},
                article_id INTEGER REFERENCES articles(id) ON DELETE SET NULL,
                slug TEXT NOT NULL,
                checksum VARCHAR(64) NOT NULL,
                data TEXT NOT NULL,
                created_at {ts} DEFAULT CURRENT_TIMESTAMP
            )
            """,
            f"""
            CREATE TABLE IF NOT EXISTS site_settings (
                id TEXT PRIMARY KEY,
                hero TEXT,
                highlight_slug TEXT,
                featured_slugs TEXT,
                navigation TEXT,
                content_hash VARCHAR(64),
                updated_at {ts} DEFAULT CURRENT_TIMESTAMP
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_article_revisions_slug ON article_revisions(slug)",
            "CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at)",
        ]

    def setup(self):
        with self.transaction():
            for statement in self.schema():
                self.execute(statement)
        self.logger.info("Database schema created/verified")

    def reset(self):
        with self.transaction():
            for table in reversed(TABLES):
                self.execute(f"DROP TABLE IF EXISTS {table}")
        self.logger.info("All tables dropped")
        self.setup()

    def existing_tables(self) -> List[str]:
        raise NotImplementedError

    def table_counts(self) -> Dict[str, Optional[int]]:
        existing = set(self.existing_tables())
        counts: Dict[str, Optional[int]] = {}
        for table in TABLES:
            if table in existing:
                counts[table] = self.execute(f"SELECT COUNT(*) AS total FROM {table}")[0]["total"]
            else:
                counts[table] = None
        return counts

    # Articles -------------------------------------------------------------

    def article_hashes(self) -> Dict[str, Optional[str]]:
        rows = self.execute("SELECT slug, content_hash FROM articles")
        return {row["slug"]: row["content_hash"] for row in rows}

    def upsert_article(self, record: Dict[str, Any], checksum: str) -> int:
        """Insert or update by slug; returns the article id"""
        columns = [column for _, column in ARTICLE_COLUMNS] + ["content_hash"]
        values = [record.get(field) for field, _ in ARTICLE_COLUMNS] + [checksum]
        updates = ", ".join(f"{column} = excluded.{column}" for column in columns if column != "slug")
        self.execute(
            f"INSERT INTO articles ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT (slug) DO UPDATE SET {updates}, updated_at = CURRENT_TIMESTAMP",
            values,
        )
        return self.execute("SELECT id FROM articles WHERE slug = ?", [record["slug"]])[0]["id"]

    def add_revision(self, article_id: int, slug: str, checksum: str, data: str):
        self.execute(
            "INSERT INTO article_revisions (article_id, slug, checksum, data) VALUES (?, ?, ?, ?)",
            [article_id, slug, checksum, data],
        )

    def delete_articles(self, slugs: Iterable[str]) -> int:
        slugs = list(slugs)
        if not slugs:
            return 0
        self.execute(f"DELETE FROM articles WHERE slug IN ({', '.join('?' for _ in slugs)})", slugs)
        return len(slugs)

    def fetch_articles(self) -> List[Dict[str, Any]]:
        return self.execute(
            f"SELECT {_select_list(ARTICLE_COLUMNS)} FROM articles "
            "ORDER BY published_at IS NULL, published_at DESC, id"
        )

    def fetch_article(self, slug: str) -> Optional[Dict[str, Any]]:
        rows = self.execute(f"SELECT {_select_list(ARTICLE_COLUMNS)} FROM articles WHERE slug = ?", [slug])
        return rows[0] if rows else None

    def latest_articles(self, limit: int = 5) -> List[Dict[str, Any]]:
        return self.execute(
            'SELECT slug, title, category, published_at AS "publishedAt", updated_at AS "updatedAt" '
            "FROM articles ORDER BY updated_at DESC, id DESC LIMIT ?",
            [limit],
        )

    def duplicate_slugs(self) -> List[Dict[str, Any]]:
        return self.execute("SELECT slug, COUNT(*) AS count FROM articles GROUP BY slug HAVING COUNT(*) > 1")

    def revision_count(self, slug: str) -> int:
        return self.execute("SELECT COUNT(*) AS total FROM article_revisions WHERE slug = ?", [slug])[0]["total"]

    # Site settings --------------------------------------------------------

    def site_settings_hash(self, settings_id: str = SETTINGS_ID) -> Optional[str]:
        rows = self.execute("SELECT content_hash FROM site_settings WHERE id = ?", [settings_id])
        return rows[0]["content_hash"] if rows else None

    def upsert_site_settings(self, payload: Dict[str, Any], checksum: str, settings_id: str = SETTINGS_ID):
        columns = ["id"] + [column for _, column in SETTINGS_COLUMNS] + ["content_hash"]
        values = [settings_id] + [payload.get(field) for field, _ in SETTINGS_COLUMNS] + [checksum]
        updates = ", ".join(f"{column} = excluded.{column}" for column in columns if column != "id")
        self.execute(
            f"INSERT INTO site_settings ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT (id) DO UPDATE SET {updates}, updated_at = CURRENT_TIMESTAMP",
            values,
        )

    def load_site_settings(self, settings_id: str = SETTINGS_ID) -> Optional[Dict[str, Any]]:
        rows = self.execute(
            f"SELECT {_select_list(SETTINGS_COLUMNS)} FROM site_settings WHERE id = ?", [settings_id]
        )
        return rows[0] if rows else None


class SqliteArticleStore(ArticleStore):
    driver_errors = (sqlite3.Error,)
    id_column = "INTEGER PRIMARY KEY AUTOINCREMENT"
    timestamp_type = "TEXT"

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def _connect(self):
        connection = sqlite3.connect(self.path)
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def existing_tables(self) -> List[str]:
        rows = self.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return [row["name"] for row in rows]


class PostgresArticleStore(ArticleStore):
    placeholder = "%s"
    driver_errors = (psycopg2.Error,)
    id_column = "SERIAL PRIMARY KEY"
    timestamp_type = "TIMESTAMPTZ"

    def __init__(self, dsn: str):
        super().__init__()
        self.dsn = dsn

    def _connect(self):
        return psycopg2.connect(self.dsn)

    def existing_tables(self) -> List[str]:
        rows = self.execute(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' AND table_name IN ('articles', 'article_revisions', 'site_settings')"
        )
        return [row["table_name"] for row in rows]


def is_valid_database_url(url: Optional[str]) -> bool:
    if not url:
        return False
    scheme = urlparse(url).scheme.lower()
    if scheme in POSTGRES_SCHEMES:
        return bool(urlparse(url).hostname)
    if scheme in SQLITE_SCHEMES:
        return bool(sqlite_path(url))
    return False


def sqlite_path(url: str) -> str:
    """``sqlite:///relative.db`` -> ``relative.db``, ``sqlite:////abs/x.db`` -> ``/abs/x.db``"""
    return url.split("://", 1)[1][1:] if "://" in url else ""


def open_store(url: Optional[str]) -> ArticleStore:
    """Pick the backend from the URL scheme"""
    if not is_valid_database_url(url):
        raise StoreError(f"Unsupported or missing DATABASE_URL: {url!r}")
    if urlparse(url).scheme.lower() in SQLITE_SCHEMES:
        return SqliteArticleStore(sqlite_path(url))
    return PostgresArticleStore(url)
