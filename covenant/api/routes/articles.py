"""
Routes for articles and site settings
"""
from typing import Optional

from fastapi import APIRouter, Depends

from covenant.api.dependencies import get_content_cache
from covenant.api.exceptions import ArticleNotFoundError
from covenant.api.models import ArticleListResponse, ArticleSummary, SiteResponse
from covenant.content.loader import ContentCache
from covenant.content.models import Article

router = APIRouter(prefix="/api/v1", tags=["articles"])


@router.get("/site", response_model=SiteResponse)
async def get_site(cache: ContentCache = Depends(get_content_cache)):
    """Hero, highlight, featured articles and navigation"""
    content = cache.get()
    highlight = content.highlight_article()
    return SiteResponse(
        source=cache.source,
        hero=content.hero,
        highlight=ArticleSummary.from_article(highlight) if highlight else None,
        featured=[ArticleSummary.from_article(article) for article in content.featured_articles()],
        navigation=content.navigation,
    )


@router.get("/articles", response_model=ArticleListResponse)
async def list_articles(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    cache: ContentCache = Depends(get_content_cache),
):
    """All articles, optionally filtered by category or tag (case-insensitive)"""
    articles = cache.get().articles
    if category:
        articles = [a for a in articles if (a.category or "").lower() == category.lower()]
    if tag:
        articles = [a for a in articles if tag.lower() in [t.lower() for t in a.tags or []]]
    return ArticleListResponse(
        total=len(articles),
        articles=[ArticleSummary.from_article(article) for article in articles],
    )


@router.get("/articles/{slug:path}", response_model=Article, response_model_exclude_none=True)
async def get_article(slug: str, cache: ContentCache = Depends(get_content_cache)):
    article = cache.get().article(slug)
    if article is None:
        raise ArticleNotFoundError(slug)
    return article
