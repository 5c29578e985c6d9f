"""
HTML extractors

Pure functions over a parsed document: generic page structure (links,
images, media, JSON-LD, outline, content blocks) and the escape-room
general-data and scoring tables.
"""

from .dom import Document, Node
from .escape_room import extract_general_data, extract_scoring, overall_score
from .page import (
    extract_content_blocks,
    extract_json_ld,
    extract_links,
    extract_outline,
)

__all__ = [
    'Document',
    'Node',
    'extract_general_data',
    'extract_scoring',
    'overall_score',
    'extract_content_blocks',
    'extract_json_ld',
    'extract_links',
    'extract_outline',
]
