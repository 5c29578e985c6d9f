"""
Main routes
"""
from fastapi import APIRouter, Depends

from covenant.api.config import settings
from covenant.api.dependencies import get_content_cache
from covenant.content.loader import ContentCache

router = APIRouter()


@router.get("/")
async def root(cache: ContentCache = Depends(get_content_cache)):
    """Root endpoint with content status"""
    return {
        "message": settings.API_TITLE,
        "status": "ready" if cache.is_loaded else "idle",
        "version": settings.API_VERSION,
        "endpoints": [
            "/api/content-export",
            "/api/v1/site",
            "/api/v1/articles",
            "/api/v1/articles/{slug}",
            "/api/v1/health",
        ],
    }
