"""FastAPI application factory for the catalog service.

Wires cross-cutting concerns (logging, request ids, problem+json error
handlers), applies SQL migrations at startup when enabled and mounts the
API routers under ``/api/v1``. Business logic lives in ``catalog/logic/``
and route handlers in ``catalog/routes/``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from catalog.config import AppConfig, load_config
from catalog.db.base import get_engine
from catalog.db.migrations_runner import apply_migrations
from catalog.http.problem import (
    handle_catalog_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from catalog.http.request_id import RequestIdMiddleware
from catalog.logging_setup import configure_logging
from catalog.logic.errors import CatalogError
from catalog.routes import api_router

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="Catalog Service", version="1.0.0")
    app.state.config = cfg

    app.add_exception_handler(CatalogError, handle_catalog_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    # Engine is bound eagerly so repositories share the configured URL
    engine = get_engine(cfg.database.url)

    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not cfg.database.auto_migrate:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        try:
            applied = apply_migrations(engine)
        except SQLAlchemyError:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("startup_migrations_applied count=%s", len(applied))

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": type(e).__name__}
        return {"status": "ok", "db": True}

    return app


__all__ = ["create_app"]
