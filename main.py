"""
Entry point for The Covenant content API

    uvicorn main:app            # or
    python main.py
"""
import uvicorn

from covenant.api.app import create_app
from covenant.api.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
