"""Domain error taxonomy for the catalog core.

Every failure the core surfaces to callers is one of these classes. Each
carries the HTTP status, problem title and a stable machine code so the
problem+json handler in ``catalog.http.problem`` can render it without
knowing which layer raised it. None of them are retried by the core.
"""

from __future__ import annotations


class CatalogError(Exception):
    status: int = 500
    title: str = "Internal Server Error"
    code: str = "INTERNAL"

    def __init__(self, detail: str, *, code: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code

    def to_problem(self) -> dict[str, object]:
        return {
            "title": self.title,
            "status": self.status,
            "detail": self.detail,
            "code": self.code,
        }


class NotFound(CatalogError):
    status = 404
    title = "Not Found"
    code = "NOT_FOUND"


class Conflict(CatalogError):
    status = 409
    title = "Conflict"
    code = "CONFLICT_ID"


class PreconditionFailed(CatalogError):
    status = 412
    title = "Precondition Failed"
    code = "PRE_IF_MATCH_MISMATCH"


class PreconditionRequired(PreconditionFailed):
    """Missing If-Match on a write that targets an existing resource."""

    title = "Precondition Required"
    code = "PRE_IF_MATCH_MISSING"


class BadRequest(CatalogError):
    status = 400
    title = "Bad Request"
    code = "VALIDATION"


def author_not_found(author_id: object) -> NotFound:
    return NotFound(f"Author with id '{author_id}' was not found")


def book_not_found(book_id: object) -> NotFound:
    return NotFound(f"Book with id '{book_id}' was not found")


def version_mismatch(expected: int, actual: int) -> PreconditionFailed:
    return PreconditionFailed(
        f"Entity version mismatch. Expected {expected} but was {actual}",
        code="PRE_VERSION_MISMATCH",
    )


__all__ = [
    "CatalogError",
    "NotFound",
    "Conflict",
    "PreconditionFailed",
    "PreconditionRequired",
    "BadRequest",
    "author_not_found",
    "book_not_found",
    "version_mismatch",
]
