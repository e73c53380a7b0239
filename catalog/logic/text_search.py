"""Rendering of planned text terms into dialect-specific SQL expressions.

PostgreSQL builds weighted ``tsvector`` documents on the fly and matches
them with ``websearch_to_tsquery``; ranks come from ``ts_rank_cd``. SQLite
calls the ``catalog_ts_match`` / ``catalog_ts_rank`` functions registered by
``catalog.db.sqlite_text_search`` with the same field/weight layout.
User input only ever reaches the database as a bound parameter.
"""

from __future__ import annotations

from sqlalchemy import Float, Integer, String, bindparam, cast, func, literal, select
from sqlalchemy.dialects.postgresql import REGCONFIG, aggregate_order_by
from sqlalchemy.sql.elements import BindParameter, ColumnElement

from catalog.db.tables import authors, book_authors, book_genres, books, genres
from catalog.logic.search_planner import SearchField, TextTerm

FIELD_WEIGHTS: dict[SearchField, str] = {
    SearchField.TITLE: "A",
    SearchField.AUTHORS: "B",
    SearchField.GENRES: "C",
}

_DOCUMENT_FIELDS: dict[SearchField, tuple[SearchField, ...]] = {
    SearchField.TITLE: (SearchField.TITLE,),
    SearchField.AUTHORS: (SearchField.AUTHORS,),
    SearchField.GENRES: (SearchField.GENRES,),
    SearchField.ALL: (SearchField.TITLE, SearchField.AUTHORS, SearchField.GENRES),
}


def _query_param(term: TextTerm) -> BindParameter:
    return bindparam(term.param, term.query, type_=String)


class TextSearchRenderer:
    """Base renderer: knows how to read each document field for a book row."""

    def field_text(self, search_field: SearchField) -> ColumnElement:
        if search_field is SearchField.TITLE:
            return books.c.title
        if search_field is SearchField.AUTHORS:
            return self.author_names_text()
        if search_field is SearchField.GENRES:
            return self.genre_labels_text()
        raise ValueError(f"{search_field} is not a single document field")

    def author_names_text(self) -> ColumnElement:
        raise NotImplementedError

    def genre_labels_text(self) -> ColumnElement:
        raise NotImplementedError

    def match(self, term: TextTerm) -> ColumnElement:
        raise NotImplementedError

    def rank(self, term: TextTerm) -> ColumnElement:
        raise NotImplementedError


class PostgresTextSearch(TextSearchRenderer):
    def __init__(self, config: str = "simple") -> None:
        self.config = config

    def _regconfig(self) -> ColumnElement:
        return cast(literal(self.config), REGCONFIG)

    def author_names_text(self) -> ColumnElement:
        return (
            select(
                func.string_agg(authors.c.name, aggregate_order_by(literal(" "), book_authors.c.author_order))
            )
            .select_from(book_authors.join(authors, authors.c.id == book_authors.c.author_id))
            .where(book_authors.c.book_id == books.c.id)
            .scalar_subquery()
        )

    def genre_labels_text(self) -> ColumnElement:
        return (
            select(func.string_agg(genres.c.label, aggregate_order_by(literal(" "), book_genres.c.genre_order)))
            .select_from(book_genres.join(genres, genres.c.code == book_genres.c.genre))
            .where(book_genres.c.book_id == books.c.id)
            .scalar_subquery()
        )

    def _field_document(self, search_field: SearchField) -> ColumnElement:
        text = func.coalesce(self.field_text(search_field), "")
        return func.setweight(func.to_tsvector(self._regconfig(), text), FIELD_WEIGHTS[search_field])

    def document(self, search_field: SearchField) -> ColumnElement:
        parts = [self._field_document(f) for f in _DOCUMENT_FIELDS[search_field]]
        doc = parts[0]
        for part in parts[1:]:
            doc = doc.op("||")(part)
        return doc

    def tsquery(self, term: TextTerm) -> ColumnElement:
        return func.websearch_to_tsquery(self._regconfig(), _query_param(term))

    def match(self, term: TextTerm) -> ColumnElement:
        return self.document(term.field).op("@@")(self.tsquery(term))

    def rank(self, term: TextTerm) -> ColumnElement:
        return func.ts_rank_cd(self.document(term.field), self.tsquery(term), type_=Float)


class SqliteTextSearch(TextSearchRenderer):
    def author_names_text(self) -> ColumnElement:
        # book_authors is scanned through its (book_id, author_order) key,
        # so names arrive in author order
        return (
            select(func.group_concat(authors.c.name, " "))
            .select_from(book_authors.join(authors, authors.c.id == book_authors.c.author_id))
            .where(book_authors.c.book_id == books.c.id)
            .scalar_subquery()
        )

    def genre_labels_text(self) -> ColumnElement:
        return (
            select(func.group_concat(genres.c.label, " "))
            .select_from(book_genres.join(genres, genres.c.code == book_genres.c.genre))
            .where(book_genres.c.book_id == books.c.id)
            .scalar_subquery()
        )

    def _arguments(self, term: TextTerm) -> list:
        args: list = [_query_param(term)]
        for search_field in _DOCUMENT_FIELDS[term.field]:
            args.append(literal(FIELD_WEIGHTS[search_field]))
            args.append(self.field_text(search_field))
        return args

    def match(self, term: TextTerm) -> ColumnElement:
        return func.catalog_ts_match(*self._arguments(term), type_=Integer) == 1

    def rank(self, term: TextTerm) -> ColumnElement:
        return func.catalog_ts_rank(*self._arguments(term), type_=Float)


def renderer_for(dialect_name: str, config: str = "simple") -> TextSearchRenderer:
    if dialect_name == "postgresql":
        return PostgresTextSearch(config)
    if dialect_name == "sqlite":
        return SqliteTextSearch()
    raise ValueError(f"Text search is not supported on dialect '{dialect_name}'")


__all__ = [
    "FIELD_WEIGHTS",
    "TextSearchRenderer",
    "PostgresTextSearch",
    "SqliteTextSearch",
    "renderer_for",
]
