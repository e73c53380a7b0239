"""Catalog service package.

Exposes the FastAPI application factory for the authors/books catalog with
conditional (ETag-versioned) writes and ranked book search. Business logic
lives in `catalog/logic/` and route handlers in `catalog/routes/`.
"""

from __future__ import annotations

from catalog.main import create_app

__all__ = ["create_app"]
