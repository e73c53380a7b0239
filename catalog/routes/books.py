"""Book resource routes."""

from __future__ import annotations

import logging
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response

from catalog.guards.precondition import conditional_headers
from catalog.http.media import CatalogJSONResponse
from catalog.logic import repository_authors, repository_books
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
from catalog.models.api import BookIn, BookPatch, book_body, page_body
from catalog.models.genre import parse_genres
from catalog.models.resources import Book, BookDraft
from catalog.routes.common import EmbedOption, app_config, not_modified, parse_embed, tagged_response

router = APIRouter()
logger = logging.getLogger(__name__)

_KIND = "book"

EmbedParam = Annotated[Optional[List[str]], Query(alias="embed")]


def _render(book: Book, embed: set[EmbedOption]) -> dict:
    if EmbedOption.AUTHORS in embed:
        return book_body(book, repository_authors.find_authors_by_ids(book.author_ids))
    return book_body(book)


def _draft_from(payload: BookIn) -> BookDraft:
    return BookDraft(
        title=payload.title,
        price=payload.price.to_money(),
        author_ids=tuple(payload.authors),
        genres=tuple(parse_genres(payload.genres)),
    )


@router.get("/books", summary="List books")
def list_books(
    request: Request,
    page_number: Annotated[Optional[int], Query(alias="page[number]")] = None,
    page_size: Annotated[Optional[int], Query(alias="page[size]")] = None,
    embed: EmbedParam = None,
):
    options = parse_embed(embed)
    page = resolve_page(page_number, page_size, app_config(request).pagination)
    items, total = repository_books.list_books(page.offset, page.size)
    body = page_body([_render(b, options) for b in items], total=total, page=page.number, size=page.size)
    return CatalogJSONResponse(body)


@router.get("/books/{book_id}", summary="Get a book")
def get_book(
    book_id: UUID,
    embed: EmbedParam = None,
    headers: ConditionalHeaders = Depends(conditional_headers),
):
    options = parse_embed(embed)
    book = repository_books.require_book(book_id)
    if is_not_modified(headers.if_none_match, book):
        return not_modified(book)
    return tagged_response(_render(book, options), book)


@router.put("/books/{book_id}", summary="Create or replace a book")
def put_book(
    book_id: UUID,
    payload: BookIn,
    headers: ConditionalHeaders = Depends(conditional_headers),
):
    draft = _draft_from(payload)
    if resolve_write_mode(headers, _KIND) is WriteMode.CREATE:
        created = repository_books.create_book(book_id, draft)
        return tagged_response(book_body(created), created, status_code=201, location=f"/api/v1/books/{created.id}")
    current = repository_books.require_book(book_id)
    expected = require_expected_version(headers.if_match, current)
    updated = repository_books.update_book(book_id, expected, draft)
    return tagged_response(book_body(updated), updated)


@router.patch("/books/{book_id}", summary="Merge-patch a book")
def patch_book(
    book_id: UUID,
    payload: BookPatch,
    headers: ConditionalHeaders = Depends(conditional_headers),
):
    if_match = require_if_match(headers, _KIND)
    current = repository_books.require_book(book_id)
    expected = require_expected_version(if_match, current)
    if payload.is_empty():
        raise PreconditionFailed(
            "Patch request must contain at least one updatable field", code="PRE_EMPTY_PATCH"
        )
    draft = BookDraft(
        title=payload.title_value() or current.title,
        price=payload.price.to_money() if payload.price is not None else current.price,
        author_ids=tuple(payload.authors) if payload.authors is not None else current.author_ids,
        genres=tuple(parse_genres(payload.genres)) if payload.genres is not None else current.genres,
    )
    updated = repository_books.update_book(book_id, expected, draft)
    return tagged_response(book_body(updated), updated)


@router.delete("/books/{book_id}", status_code=204, summary="Delete a book")
def delete_book(book_id: UUID, headers: ConditionalHeaders = Depends(conditional_headers)):
    if_match = require_if_match(headers, _KIND)
    current = repository_books.require_book(book_id)
    expected = require_expected_version(if_match, current)
    repository_books.delete_book(book_id, expected)
    return Response(status_code=204)


__all__ = ["router"]
