"""Book persistence with version-gated writes.

A book row carries title, price and the version counter; its ordered author
ids and genre codes live in ``book_authors`` / ``book_genres`` and are
rewritten wholesale on every successful update.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from catalog.db.base import get_engine
from catalog.db.tables import authors, book_authors, book_genres, books
from catalog.logic import versioned_store as store
from catalog.logic.errors import Conflict, book_not_found
from catalog.models.genre import Genre
from catalog.models.resources import Book, BookDraft, Money, ResourceMetadata

logger = logging.getLogger(__name__)


def _dedupe(ids: Iterable[UUID]) -> tuple[UUID, ...]:
    seen: list[UUID] = []
    for author_id in ids:
        if author_id not in seen:
            seen.append(author_id)
    return tuple(seen)


def _load_books(conn: Connection, book_ids: Sequence[UUID]) -> dict[UUID, Book]:
    if not book_ids:
        return {}
    rows = conn.execute(select(books).where(books.c.id.in_(list(book_ids)))).mappings().all()
    author_rows = conn.execute(
        select(book_authors.c.book_id, book_authors.c.author_id)
        .where(book_authors.c.book_id.in_(list(book_ids)))
        .order_by(book_authors.c.book_id, book_authors.c.author_order)
    ).all()
    genre_rows = conn.execute(
        select(book_genres.c.book_id, book_genres.c.genre)
        .where(book_genres.c.book_id.in_(list(book_ids)))
        .order_by(book_genres.c.book_id, book_genres.c.genre_order)
    ).all()

    author_ids: dict[UUID, list[UUID]] = {}
    for book_id, author_id in author_rows:
        author_ids.setdefault(book_id, []).append(author_id)
    genre_codes: dict[UUID, list[Genre]] = {}
    for book_id, code in genre_rows:
        genre_codes.setdefault(book_id, []).append(Genre(code))

    loaded: dict[UUID, Book] = {}
    for r in rows:
        loaded[r["id"]] = Book(
            id=r["id"],
            title=r["title"],
            author_ids=tuple(author_ids.get(r["id"], [])),
            genres=tuple(genre_codes.get(r["id"], [])),
            price=Money(amount=Decimal(r["price"]).quantize(Decimal("0.01")), currency=r["price_currency"]),
            metadata=ResourceMetadata(
                created_at=store.as_utc(r["created_at"]),
                updated_at=store.as_utc(r["updated_at"]),
                version=int(r["version"]),
            ),
        )
    return loaded


def _load_book(conn: Connection, book_id: UUID) -> Book | None:
    return _load_books(conn, [book_id]).get(book_id)


def _check_author_references(conn: Connection, author_ids: Sequence[UUID]) -> None:
    if not author_ids:
        return
    found = set(
        conn.execute(select(authors.c.id).where(authors.c.id.in_(list(author_ids)))).scalars().all()
    )
    missing = [str(a) for a in author_ids if a not in found]
    if missing:
        logger.info("book.reference.missing authors=%s", ",".join(missing))
        raise Conflict(
            f"Unknown author id(s): {', '.join(missing)}",
            code="CONFLICT_REFERENCE",
        )


def _write_relations(conn: Connection, book_id: UUID, draft: BookDraft) -> None:
    conn.execute(delete(book_authors).where(book_authors.c.book_id == book_id))
    conn.execute(delete(book_genres).where(book_genres.c.book_id == book_id))
    if draft.author_ids:
        conn.execute(
            book_authors.insert(),
            [
                {"book_id": book_id, "author_order": i, "author_id": author_id}
                for i, author_id in enumerate(draft.author_ids)
            ],
        )
    if draft.genres:
        conn.execute(
            book_genres.insert(),
            [
                {"book_id": book_id, "genre_order": i, "genre": genre.value}
                for i, genre in enumerate(draft.genres)
            ],
        )


def _normalise(draft: BookDraft) -> BookDraft:
    genres: list[Genre] = []
    for g in draft.genres:
        if g not in genres:
            genres.append(g)
    return BookDraft(
        title=draft.title,
        price=draft.price,
        author_ids=_dedupe(draft.author_ids),
        genres=tuple(genres),
    )


def _row_values(draft: BookDraft) -> dict:
    return {
        "title": draft.title,
        "price": draft.price.amount,
        "price_currency": draft.price.currency,
    }


def get_book(book_id: UUID) -> Book | None:
    with get_engine().connect() as conn:
        return _load_book(conn, book_id)


def require_book(book_id: UUID) -> Book:
    book = get_book(book_id)
    if book is None:
        raise book_not_found(book_id)
    return book


def create_book(book_id: UUID, draft: BookDraft) -> Book:
    """Persist a new book at version 0; an existing id is a Conflict."""
    draft = _normalise(draft)
    try:
        with get_engine().begin() as conn:
            if store.current_version(conn, books, book_id) is not None:
                raise Conflict(f"Book with id '{book_id}' already exists")
            _check_author_references(conn, draft.author_ids)
            store.insert_versioned(conn, books, book_id, _row_values(draft))
            _write_relations(conn, book_id, draft)
            created = _load_book(conn, book_id)
            if created is None:
                raise book_not_found(book_id)
    except IntegrityError:
        logger.info("book.create.integrity_conflict id=%s", book_id)
        raise Conflict(f"Book with id '{book_id}' already exists") from None
    logger.info("book.created id=%s version=%s", created.id, created.version)
    return created


def update_book(book_id: UUID, expected_version: int, draft: BookDraft) -> Book:
    draft = _normalise(draft)
    with get_engine().begin() as conn:
        store.update_versioned(conn, books, book_id, expected_version, _row_values(draft), book_not_found)
        _check_author_references(conn, draft.author_ids)
        _write_relations(conn, book_id, draft)
        updated = _load_book(conn, book_id)
        if updated is None:
            raise book_not_found(book_id)
    logger.info("book.updated id=%s version=%s", updated.id, updated.version)
    return updated


def delete_book(book_id: UUID, expected_version: int) -> None:
    with get_engine().begin() as conn:
        store.delete_versioned(conn, books, book_id, expected_version, book_not_found)
    logger.info("book.deleted id=%s version=%s", book_id, expected_version)


def list_books(offset: int, limit: int) -> tuple[list[Book], int]:
    """Return one page of books ordered by ``updated_at`` then id, plus the total."""
    with get_engine().connect() as conn:
        total = int(conn.execute(select(func.count()).select_from(books)).scalar_one())
        ids = conn.execute(
            select(books.c.id)
            .order_by(books.c.updated_at.asc(), books.c.id.asc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        loaded = _load_books(conn, ids)
    return [loaded[i] for i in ids if i in loaded], total


def find_book_ids_by_author(author_id: UUID) -> list[UUID]:
    with get_engine().connect() as conn:
        return list(
            conn.execute(
                select(book_authors.c.book_id)
                .where(book_authors.c.author_id == author_id)
                .distinct()
            ).scalars().all()
        )


def remove_author_from_book(book_id: UUID, author_id: UUID) -> Book:
    """Drop ``author_id`` from a book through the version-gated update path.

    The book is read fresh so the write is gated on its own current version.
    """
    book = require_book(book_id)
    draft = BookDraft(
        title=book.title,
        price=book.price,
        author_ids=tuple(a for a in book.author_ids if a != author_id),
        genres=book.genres,
    )
    return update_book(book.id, book.version, draft)


__all__ = [
    "get_book",
    "require_book",
    "create_book",
    "update_book",
    "delete_book",
    "list_books",
    "find_book_ids_by_author",
    "remove_author_from_book",
]
