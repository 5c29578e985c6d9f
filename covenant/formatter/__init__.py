"""
Export formatter

Turns the raw crawl export into the canonical formatted export (one page
per logical URL) and the type-partitioned generic collection.
"""

from .exporter import ExportFormatter, load_raw_export
from .generic import build_generic_entry
from .options import FormatOptions
from .reconcile import PageReconciler

__all__ = [
    'ExportFormatter',
    'FormatOptions',
    'PageReconciler',
    'build_generic_entry',
    'load_raw_export',
]
