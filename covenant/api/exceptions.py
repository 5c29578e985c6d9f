"""
Custom exceptions for the content API
"""
from fastapi import HTTPException


class ContentNotAvailableError(HTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="Contenido no disponible")


class ArticleNotFoundError(HTTPException):
    def __init__(self, slug: str):
        super().__init__(status_code=404, detail=f"Article not found: {slug}")
