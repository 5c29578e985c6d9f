"""
Pydantic response models for the content API
"""
from typing import Dict, List, Optional

from pydantic import BaseModel

from covenant.content.models import Article, CoverImage, Hero, Navigation


class ArticleSummary(BaseModel):
    slug: str
    title: str
    excerpt: Optional[str] = None
    category: Optional[str] = None
    coverImage: Optional[CoverImage] = None
    publishedAt: Optional[str] = None
    readingTime: Optional[str] = None

    @classmethod
    def from_article(cls, article: Article) -> "ArticleSummary":
        return cls(
            slug=article.slug,
            title=article.title,
            excerpt=article.excerpt,
            category=article.category,
            coverImage=article.coverImage,
            publishedAt=article.publishedAt,
            readingTime=article.readingTime,
        )


class ArticleListResponse(BaseModel):
    total: int
    articles: List[ArticleSummary]


class SiteResponse(BaseModel):
    source: Optional[str] = None
    hero: Hero
    highlight: Optional[ArticleSummary] = None
    featured: List[ArticleSummary]
    navigation: Navigation


class HealthResponse(BaseModel):
    status: str
    content_source: Optional[str] = None
    articles: int
    export_available: bool
    stats: Optional[Dict[str, int]] = None
