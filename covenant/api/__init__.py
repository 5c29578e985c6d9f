"""
Read-only content API
"""

from .app import create_app
from .config import settings
from .dependencies import AppState
from .exceptions import ArticleNotFoundError, ContentNotAvailableError

__all__ = [
    'create_app',
    'settings',
    'AppState',
    'ArticleNotFoundError',
    'ContentNotAvailableError',
]
