"""
FastAPI application factory and configuration
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from covenant.api.config import Settings, settings as default_settings
from covenant.api.dependencies import AppState
from covenant.api.exceptions import ArticleNotFoundError, ContentNotAvailableError
from covenant.api.routes import articles, content_export, health, root


# Setup logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


async def error_detail_handler(request: Request, exc: HTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


def create_app(settings: Settings = None) -> FastAPI:
    """Factory function for the FastAPI app"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_state = AppState()
        app_state.configure(settings)
        logger.info("Loading site content...")
        cache = app_state.get_content_cache()
        content = cache.get()
        logger.info(f"Serving {len(content.articles)} articles from source: {cache.source}")

        yield

        logger.info("Shutting down content API...")
        app_state.reset()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ContentNotAvailableError, error_detail_handler)
    app.add_exception_handler(ArticleNotFoundError, error_detail_handler)

    app.include_router(root.router)
    app.include_router(health.router)
    app.include_router(content_export.router)
    app.include_router(articles.router)

    return app
