"""Problem+JSON utilities and global exception handlers.

Defines RFC7807 media type and handler callables that produce
application/problem+json responses for domain errors, FastAPI HTTP errors,
request validation failures and anything unexpected.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog.logic.errors import CatalogError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(problem: dict, status_code: int, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(problem, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_catalog_error(request: Request, exc: CatalogError) -> JSONResponse:  # noqa: D401
    if exc.status >= 500:
        logger.error("catalog_error path=%s code=%s", request.url.path, exc.code, exc_info=exc)
    else:
        logger.info(
            "request.rejected method=%s path=%s status=%s code=%s",
            request.method,
            request.url.path,
            exc.status,
            exc.code,
        )
    return problem_response(exc.to_problem(), exc.status)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {
            "title": "Error",
            "status": status_code,
            "detail": str(exc.detail or ""),
        }
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return problem_response(detail, status_code, headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Bad Request",
        "status": 400,
        "detail": "Request validation failed",
        "code": "VALIDATION",
        "errors": jsonable_encoder(exc.errors()),
    }
    logger.info("request.invalid method=%s path=%s errors=%s", request.method, request.url.path, len(exc.errors()))
    return problem_response(problem, 400)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response({"title": "Internal Server Error", "status": 500}, 500)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_catalog_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
