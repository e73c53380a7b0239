"""Core table metadata for the catalog schema.

DDL is owned by the SQL files under ``migrations/`` and ``sqlite_migrations/``;
these definitions only give repositories typed column access (UUIDs, tz-aware
timestamps, decimals) that renders correctly on both PostgreSQL and SQLite.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Uuid,
)

metadata = MetaData()

genres = Table(
    "genres",
    metadata,
    Column("code", String(32), primary_key=True),
    Column("label", String(64), nullable=False),
)

authors = Table(
    "authors",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("version", BigInteger, nullable=False, default=0),
)

books = Table(
    "books",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("price_currency", String(3), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("version", BigInteger, nullable=False, default=0),
)

book_authors = Table(
    "book_authors",
    metadata,
    Column("book_id", Uuid(as_uuid=True), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("author_order", Integer, primary_key=True),
    Column("author_id", Uuid(as_uuid=True), nullable=False),
)

book_genres = Table(
    "book_genres",
    metadata,
    Column("book_id", Uuid(as_uuid=True), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_order", Integer, primary_key=True),
    Column("genre", String(32), ForeignKey("genres.code"), nullable=False),
)

__all__ = ["metadata", "genres", "authors", "books", "book_authors", "book_genres"]
