"""
Configuration management for the content API
"""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings from environment variables"""

    # Server configuration
    PORT: int = int(os.getenv("PORT", 8000))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    RELOAD: bool = _flag("RELOAD", "true")

    # Content sources
    CONTENT_SOURCE: Optional[str] = os.getenv("CONTENT_SOURCE")
    ENABLE_DB: bool = _flag("ENABLE_DB")
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    CONTENT_EXPORT_URL: Optional[str] = os.getenv("CONTENT_EXPORT_URL")
    CONTENT_EXPORT_PATH: str = os.getenv(
        "CONTENT_EXPORT_PATH", os.path.join("data", "thecovenant-export-formatted.json")
    )

    # Logging configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API configuration
    API_TITLE: str = "The Covenant Content API"
    API_DESCRIPTION: str = "Read-only access to the crawled and formatted content of thecovenant.es"
    API_VERSION: str = "1.0.0"
    EXPORT_CACHE_CONTROL: str = "public, max-age=60"

    # CORS configuration
    CORS_ORIGINS: list = ["*"]


# Global settings instance
settings = Settings()
