"""
Routes for health check
"""
from fastapi import APIRouter, Depends

from covenant.api.dependencies import get_content_cache, get_export_cache
from covenant.api.models import HealthResponse
from covenant.content.loader import SOURCE_FALLBACK, ContentCache, ExportCache

router = APIRouter(tags=["health"])


@router.get("/api/v1/health", response_model=HealthResponse)
async def health_check(
    cache: ContentCache = Depends(get_content_cache),
    export_cache: ExportCache = Depends(get_export_cache),
):
    """Content health: where the site is served from and what the export holds"""
    content = cache.get()
    payload = export_cache.get()
    stats = None
    if payload:
        stats = {
            "pages": len(payload.get("pages") or []),
            "assets": len(payload.get("assets") or []),
        }
    return HealthResponse(
        status="degraded" if cache.source == SOURCE_FALLBACK else "healthy",
        content_source=cache.source,
        articles=len(content.articles),
        export_available=payload is not None,
        stats=stats,
    )
