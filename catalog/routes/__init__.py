"""APIRouter registration for the catalog service."""

from __future__ import annotations

from fastapi import APIRouter

from catalog.routes.authors import router as authors_router
from catalog.routes.books import router as books_router
from catalog.routes.search import router as search_router

api_router = APIRouter()
api_router.include_router(authors_router, tags=["Authors"])
api_router.include_router(books_router, tags=["Books"])
api_router.include_router(search_router, tags=["Search"])

__all__ = ["api_router"]
