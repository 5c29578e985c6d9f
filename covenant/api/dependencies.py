"""
FastAPI dependencies for the content caches
"""
from typing import Optional

from fastapi import Depends

from covenant.content.loader import ContentCache, ContentLoader, ExportCache


class AppState:
    """Singleton holding the process-wide caches"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.content_cache = None
            cls._instance.export_cache = None
        return cls._instance

    def configure(self, settings):
        self.content_cache = ContentCache(ContentLoader.from_settings(settings))
        self.export_cache = ExportCache(settings.CONTENT_EXPORT_PATH)

    def reset(self):
        self.content_cache = None
        self.export_cache = None

    def get_content_cache(self) -> Optional[ContentCache]:
        return self.content_cache

    def get_export_cache(self) -> Optional[ExportCache]:
        return self.export_cache


def get_app_state() -> AppState:
    return AppState()


def get_content_cache(app_state: AppState = Depends(get_app_state)) -> ContentCache:
    if app_state.get_content_cache() is None:
        from covenant.api.config import settings
        app_state.configure(settings)
    return app_state.get_content_cache()


def get_export_cache(app_state: AppState = Depends(get_app_state)) -> ExportCache:
    if app_state.get_export_cache() is None:
        from covenant.api.config import settings
        app_state.configure(settings)
    return app_state.get_export_cache()
