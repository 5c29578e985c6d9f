"""
Read-only access to the formatted export
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from covenant.api.config import settings
from covenant.api.dependencies import get_export_cache
from covenant.api.exceptions import ContentNotAvailableError
from covenant.content.loader import ExportCache

router = APIRouter(tags=["content"])


@router.get("/api/content-export")
async def content_export(request: Request, export_cache: ExportCache = Depends(get_export_cache)):
    """Serve the formatted export; ``?refresh`` drops the cached copy first"""
    payload = export_cache.get(refresh="refresh" in request.query_params)
    if payload is None:
        raise ContentNotAvailableError()
    return JSONResponse(payload, headers={"Cache-Control": settings.EXPORT_CACHE_CONTROL})
