"""
CLI module for the content pipeline
"""

from .app import app
from .pipeline import PipelineRunner, summarize_raw_export

__all__ = ['app', 'PipelineRunner', 'summarize_raw_export']
