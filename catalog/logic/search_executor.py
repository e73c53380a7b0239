"""Execution of planned book searches.

The page of rows and the total count are read inside one transaction (at
REPEATABLE READ on PostgreSQL) so both observe the same filtered set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, exists, func, literal, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql.elements import ColumnElement

from catalog.db.base import get_engine
from catalog.db.tables import authors, book_authors, book_genres, books
from catalog.logic.paging import PageRequest
from catalog.logic.search_planner import SearchPlan
from catalog.logic.search_sort import SortOrder, SortProperty
from catalog.logic.text_search import TextSearchRenderer, renderer_for
from catalog.models.genre import Genre
from catalog.models.resources import Money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    id: UUID
    title: str
    author_names: tuple[str, ...]
    genres: tuple[Genre, ...]
    price: Money
    score: float


@dataclass(frozen=True)
class SearchPage:
    items: tuple[SearchHit, ...]
    total: int
    page: PageRequest


def _predicates(plan: SearchPlan, renderer: TextSearchRenderer) -> list[ColumnElement]:
    preds: list[ColumnElement] = [renderer.match(t) for t in plan.terms]
    if plan.genres:
        preds.append(
            exists(
                select(literal(1))
                .select_from(book_genres)
                .where(
                    book_genres.c.book_id == books.c.id,
                    book_genres.c.genre.in_([g.value for g in plan.genres]),
                )
            )
        )
    return preds


def rank_expression(plan: SearchPlan, renderer: TextSearchRenderer) -> ColumnElement | None:
    """Sum of the per-term ranks, or None when no term contributes one."""
    rank: ColumnElement | None = None
    for term in plan.terms:
        part = renderer.rank(term)
        rank = part if rank is None else rank + part
    return rank


def _first_author_name() -> ColumnElement:
    return func.coalesce(
        select(func.min(authors.c.name))
        .select_from(book_authors.join(authors, authors.c.id == book_authors.c.author_id))
        .where(book_authors.c.book_id == books.c.id)
        .scalar_subquery(),
        "",
    )


def _first_genre_code() -> ColumnElement:
    return func.coalesce(
        select(func.min(book_genres.c.genre)).where(book_genres.c.book_id == books.c.id).scalar_subquery(),
        "",
    )


def order_by_clauses(orders: Sequence[SortOrder], rank: ColumnElement | None) -> list[ColumnElement]:
    """Map resolved sort orders onto columns.

    ``score`` without a rank is a constant and is left out of ORDER BY; the
    remaining keys still give a deterministic order.
    """
    clauses: list[ColumnElement] = []
    for order in orders:
        if order.prop is SortProperty.SCORE:
            if rank is None:
                continue
            column = rank
        elif order.prop is SortProperty.TITLE:
            column = books.c.title
        elif order.prop is SortProperty.AUTHOR:
            column = _first_author_name()
        elif order.prop is SortProperty.GENRE:
            column = _first_genre_code()
        elif order.prop is SortProperty.PRICE:
            column = books.c.price
        elif order.prop is SortProperty.CREATED_AT:
            column = books.c.created_at
        elif order.prop is SortProperty.UPDATED_AT:
            column = books.c.updated_at
        else:
            column = books.c.id
        clauses.append(column.desc() if order.descending else column.asc())
    return clauses


def _author_names(conn: Connection, book_ids: Sequence[UUID]) -> dict[UUID, list[str]]:
    names: dict[UUID, list[str]] = {}
    if not book_ids:
        return names
    rows = conn.execute(
        select(book_authors.c.book_id, authors.c.name)
        .select_from(book_authors.join(authors, authors.c.id == book_authors.c.author_id))
        .where(book_authors.c.book_id.in_(list(book_ids)))
        .order_by(book_authors.c.book_id, book_authors.c.author_order)
    ).all()
    for book_id, name in rows:
        names.setdefault(book_id, []).append(name)
    return names


def _genres(conn: Connection, book_ids: Sequence[UUID]) -> dict[UUID, list[Genre]]:
    codes: dict[UUID, list[Genre]] = {}
    if not book_ids:
        return codes
    rows = conn.execute(
        select(book_genres.c.book_id, book_genres.c.genre)
        .where(book_genres.c.book_id.in_(list(book_ids)))
        .order_by(book_genres.c.book_id, book_genres.c.genre_order)
    ).all()
    for book_id, code in rows:
        codes.setdefault(book_id, []).append(Genre(code))
    return codes


def _connect(engine: Engine) -> Connection:
    conn = engine.connect()
    if engine.dialect.name == "postgresql":
        conn = conn.execution_options(isolation_level="REPEATABLE READ")
    return conn


def execute_search(
    plan: SearchPlan,
    orders: Sequence[SortOrder],
    page: PageRequest,
    *,
    text_search_config: str = "simple",
    engine: Engine | None = None,
) -> SearchPage:
    """Run ``plan`` and return one page of hits with the total match count."""
    eng = engine or get_engine()
    renderer = renderer_for(eng.dialect.name, text_search_config)
    preds = _predicates(plan, renderer)
    where = None if plan.is_unfiltered else and_(*preds)
    rank = rank_expression(plan, renderer)
    score = rank.label("score") if rank is not None else literal(0.0).label("score")

    data_stmt = select(
        books.c.id,
        books.c.title,
        books.c.price,
        books.c.price_currency,
        score,
    )
    count_stmt = select(func.count()).select_from(books)
    if where is not None:
        data_stmt = data_stmt.where(where)
        count_stmt = count_stmt.where(where)
    data_stmt = data_stmt.order_by(*order_by_clauses(orders, rank)).offset(page.offset).limit(page.size)

    with _connect(eng) as conn:
        with conn.begin():
            rows = conn.execute(data_stmt).mappings().all()
            total = int(conn.execute(count_stmt).scalar_one())
            ids = [r["id"] for r in rows]
            names = _author_names(conn, ids)
            genre_map = _genres(conn, ids)

    items = tuple(
        SearchHit(
            id=r["id"],
            title=r["title"],
            author_names=tuple(names.get(r["id"], [])),
            genres=tuple(genre_map.get(r["id"], [])),
            price=Money(amount=Decimal(r["price"]).quantize(Decimal("0.01")), currency=r["price_currency"]),
            score=float(r["score"] or 0.0) if rank is not None else 0.0,
        )
        for r in rows
    )
    logger.info(
        "search.executed filters=%s page=%s size=%s returned=%s total=%s",
        plan.describe(),
        page.number,
        page.size,
        len(items),
        total,
    )
    return SearchPage(items=items, total=total, page=page)


__all__ = [
    "SearchHit",
    "SearchPage",
    "rank_expression",
    "order_by_clauses",
    "execute_search",
]
