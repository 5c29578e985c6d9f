import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..exceptions import StoreError
from .store import open_store

load_dotenv()

logger = logging.getLogger(__name__)


def _database_url(database_url: Optional[str]) -> str:
    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        raise ValueError("DATABASE_URL environment variable is not set")
    return url


def setup_database(database_url: Optional[str] = None):
    """Create the articles, article_revisions and site_settings tables"""
    with open_store(_database_url(database_url)) as store:
        store.setup()
    logger.info("Database setup completed successfully")


def reset_database(database_url: Optional[str] = None):
    """Drop all content tables and recreate them"""
    with open_store(_database_url(database_url)) as store:
        store.reset()
    logger.info("Database reset completed successfully")


def check_database_status(database_url: Optional[str] = None) -> Dict[str, Any]:
    """Connection and per-table row counts; ``None`` counts mean the table is missing"""
    try:
        url = _database_url(database_url)
    except ValueError as e:
        logger.error(str(e))
        return {"connected": False, "error": str(e), "tables": {}}

    try:
        with open_store(url) as store:
            store.ping()
            counts = store.table_counts()
    except StoreError as e:
        logger.error(f"Database status check failed: {e}")
        return {"connected": False, "error": str(e), "tables": {}}

    missing = [table for table, count in counts.items() if count is None]
    if missing:
        logger.warning(f"Missing tables: {', '.join(missing)}")
    return {"connected": True, "error": None, "tables": counts, "ready": not missing}
