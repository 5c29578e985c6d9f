"""
Covenant content pipeline

Crawls a legacy website, extracts structured content from its HTML,
reconciles crawled variants into a canonical export and keeps a content
store in sync with it.
"""

__version__ = "1.0.0"
