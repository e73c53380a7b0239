"""Author persistence with version-gated writes.

Author names are a natural key: no two authors may share a name ignoring
case. Deleting an author removes it from every book that references it,
one version-gated book update at a time.
"""

from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.engine import Connection, RowMapping
from sqlalchemy.exc import IntegrityError

from catalog.db.base import get_engine
from catalog.db.tables import authors
from catalog.logic import repository_books
from catalog.logic import versioned_store as store
from catalog.logic.errors import Conflict, NotFound, PreconditionFailed, author_not_found
from catalog.models.resources import Author, AuthorDraft, ResourceMetadata

logger = logging.getLogger(__name__)


def _to_author(r: RowMapping) -> Author:
    return Author(
        id=r["id"],
        name=r["name"],
        metadata=ResourceMetadata(
            created_at=store.as_utc(r["created_at"]),
            updated_at=store.as_utc(r["updated_at"]),
            version=int(r["version"]),
        ),
    )


def _load_author(conn: Connection, author_id: UUID) -> Author | None:
    row = conn.execute(select(authors).where(authors.c.id == author_id)).mappings().first()
    return _to_author(row) if row is not None else None


def _name_conflict(name: str) -> Conflict:
    return Conflict(f"Author with name '{name}' already exists", code="CONFLICT_NATURAL_KEY")


def _check_name_available(conn: Connection, name: str, exclude_id: UUID | None = None) -> None:
    stmt = select(authors.c.id).where(func.lower(authors.c.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(authors.c.id != exclude_id)
    if conn.execute(stmt).first() is not None:
        logger.info("author.conflict reason=natural_key name=%s", name)
        raise _name_conflict(name)


def get_author(author_id: UUID) -> Author | None:
    with get_engine().connect() as conn:
        return _load_author(conn, author_id)


def require_author(author_id: UUID) -> Author:
    author = get_author(author_id)
    if author is None:
        raise author_not_found(author_id)
    return author


def create_author(author_id: UUID, draft: AuthorDraft) -> Author:
    """Persist a new author at version 0.

    Raises Conflict when the id is taken or another author already uses the
    same name ignoring case.
    """
    try:
        with get_engine().begin() as conn:
            if store.current_version(conn, authors, author_id) is not None:
                logger.info("author.conflict reason=id id=%s", author_id)
                raise Conflict(f"Author with id '{author_id}' already exists")
            _check_name_available(conn, draft.name)
            store.insert_versioned(conn, authors, author_id, {"name": draft.name})
            created = _load_author(conn, author_id)
            if created is None:
                raise author_not_found(author_id)
    except IntegrityError:
        # lost a race on the unique name index or the primary key
        logger.info("author.create.integrity_conflict id=%s", author_id)
        raise _name_conflict(draft.name) from None
    logger.info("author.created id=%s version=%s", created.id, created.version)
    return created


def update_author(author_id: UUID, expected_version: int, draft: AuthorDraft) -> Author:
    try:
        with get_engine().begin() as conn:
            store.update_versioned(conn, authors, author_id, expected_version, {"name": draft.name}, author_not_found)
            _check_name_available(conn, draft.name, exclude_id=author_id)
            updated = _load_author(conn, author_id)
            if updated is None:
                raise author_not_found(author_id)
    except IntegrityError:
        logger.info("author.update.integrity_conflict id=%s", author_id)
        raise _name_conflict(draft.name) from None
    logger.info("author.updated id=%s version=%s", updated.id, updated.version)
    return updated


def delete_author(author_id: UUID, expected_version: int) -> list[UUID]:
    """Delete an author, then detach it from every book that lists it.

    The author row goes first in its own transaction. Each referencing book
    is then re-read and updated against its own current version; a book
    that disappeared or moved in the meantime is skipped with a warning.
    Returns the ids of the books that were updated.
    """
    with get_engine().begin() as conn:
        store.delete_versioned(conn, authors, author_id, expected_version, author_not_found)
    logger.info("author.deleted id=%s version=%s", author_id, expected_version)

    updated: list[UUID] = []
    for book_id in repository_books.find_book_ids_by_author(author_id):
        try:
            repository_books.remove_author_from_book(book_id, author_id)
        except (NotFound, PreconditionFailed, Conflict) as exc:
            logger.warning("author.cascade.skip author=%s book=%s reason=%s", author_id, book_id, exc.detail)
            continue
        updated.append(book_id)
    return updated


def list_authors(offset: int, limit: int) -> tuple[list[Author], int]:
    with get_engine().connect() as conn:
        total = int(conn.execute(select(func.count()).select_from(authors)).scalar_one())
        rows = conn.execute(
            select(authors)
            .order_by(authors.c.updated_at.asc(), authors.c.id.asc())
            .offset(offset)
            .limit(limit)
        ).mappings().all()
    return [_to_author(r) for r in rows], total


def find_authors_by_ids(author_ids: Sequence[UUID]) -> list[Author]:
    """Return the existing authors among ``author_ids`` in the given order."""
    if not author_ids:
        return []
    with get_engine().connect() as conn:
        rows = conn.execute(select(authors).where(authors.c.id.in_(list(author_ids)))).mappings().all()
    by_id = {r["id"]: _to_author(r) for r in rows}
    return [by_id[a] for a in author_ids if a in by_id]


__all__ = [
    "get_author",
    "require_author",
    "create_author",
    "update_author",
    "delete_author",
    "list_authors",
    "find_authors_by_ids",
]
