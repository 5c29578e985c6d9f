"""
Site content layer

Normalizes the formatted export into articles, mirrors it into a
persistent store, and resolves which source the website is served from.
"""

from .loader import ContentCache, ContentLoader, ExportCache
from .models import Article, ContentSection, Navigation, SiteContent
from .normalize import build_site_content, normalise_article, normalise_sections
from .parse_db import parse_db_article
from .sync import ContentSync, SyncReport

__all__ = [
    'Article',
    'ContentCache',
    'ContentLoader',
    'ContentSection',
    'ContentSync',
    'ExportCache',
    'Navigation',
    'SiteContent',
    'SyncReport',
    'build_site_content',
    'normalise_article',
    'normalise_sections',
    'parse_db_article',
]
