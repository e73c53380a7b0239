"""Author resource routes.

Reads return the current ETag (or 304 on a matching If-None-Match). PUT
creates with ``If-None-Match: *`` and otherwise updates under If-Match;
PATCH and DELETE always require If-Match. Deleting an author detaches it
from every book that referenced it.
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response

from catalog.guards.precondition import conditional_headers
from catalog.http.media import CatalogJSONResponse
from catalog.logic import repository_authors
from catalog.logic.conditional import (
    ConditionalHeaders,
    WriteMode,
    is_not_modified,
    require_expected_version,
    require_if_match,
    resolve_write_mode,
)
from catalog.logic.errors import PreconditionFailed
from catalog.logic.paging import resolve_page
from catalog.models.api import AuthorIn, AuthorPatch, author_body, page_body
from catalog.models.resources import AuthorDraft
from catalog.routes.common import app_config, not_modified, tagged_response

router = APIRouter()
logger = logging.getLogger(__name__)

_KIND = "author"


@router.get("/authors", summary="List authors")
def list_authors(
    request: Request,
    page_number: Annotated[Optional[int], Query(alias="page[number]")] = None,
    page_size: Annotated[Optional[int], Query(alias="page[size]")] = None,
):
    page = resolve_page(page_number, page_size, app_config(request).pagination)
    items, total = repository_authors.list_authors(page.offset, page.size)
    body = page_body([author_body(a) for a in items], total=total, page=page.number, size=page.size)
    return CatalogJSONResponse(body)


@router.get("/authors/{author_id}", summary="Get an author")
def get_author(author_id: UUID, headers: ConditionalHeaders = Depends(conditional_headers)):
    author = repository_authors.require_author(author_id)
    if is_not_modified(headers.if_none_match, author):
        return not_modified(author)
    return tagged_response(author_body(author), author)


@router.put("/authors/{author_id}", summary="Create or replace an author")
def put_author(
    author_id: UUID,
    payload: AuthorIn,
    headers: ConditionalHeaders = Depends(conditional_headers),
):
    draft = AuthorDraft(name=payload.name)
    if resolve_write_mode(headers, _KIND) is WriteMode.CREATE:
        created = repository_authors.create_author(author_id, draft)
        return tagged_response(
            author_body(created), created, status_code=201, location=f"/api/v1/authors/{created.id}"
        )
    current = repository_authors.require_author(author_id)
    expected = require_expected_version(headers.if_match, current)
    updated = repository_authors.update_author(author_id, expected, draft)
    return tagged_response(author_body(updated), updated)


@router.patch("/authors/{author_id}", summary="Merge-patch an author")
def patch_author(
    author_id: UUID,
    payload: AuthorPatch,
    headers: ConditionalHeaders = Depends(conditional_headers),
):
    if_match = require_if_match(headers, _KIND)
    current = repository_authors.require_author(author_id)
    expected = require_expected_version(if_match, current)
    if payload.is_empty():
        raise PreconditionFailed(
            "Patch request must contain at least one updatable field", code="PRE_EMPTY_PATCH"
        )
    draft = AuthorDraft(name=payload.name_value() or current.name)
    updated = repository_authors.update_author(author_id, expected, draft)
    return tagged_response(author_body(updated), updated)


@router.delete("/authors/{author_id}", status_code=204, summary="Delete an author")
def delete_author(author_id: UUID, headers: ConditionalHeaders = Depends(conditional_headers)):
    if_match = require_if_match(headers, _KIND)
    current = repository_authors.require_author(author_id)
    expected = require_expected_version(if_match, current)
    detached = repository_authors.delete_author(author_id, expected)
    logger.info("author.delete.cascade id=%s books_updated=%s", author_id, len(detached))
    return Response(status_code=204)


__all__ = ["router"]
