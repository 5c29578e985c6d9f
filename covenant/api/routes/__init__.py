"""
API routes module
"""

from . import articles, content_export, health, root

from .articles import router as articles_router
from .content_export import router as content_export_router
from .health import router as health_router
from .root import router as root_router

__all__ = [
    'articles',
    'content_export',
    'health',
    'root',
    'articles_router',
    'content_export_router',
    'health_router',
    'root_router',
]
