"""Domain records for authors and books.

Records are immutable snapshots of one persisted row; every write returns a
fresh record so the version in a response always comes from the row that
produced it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from catalog.models.genre import Genre

DEFAULT_CURRENCY = "EUR"


@dataclass(frozen=True)
class ResourceMetadata:
    created_at: datetime
    updated_at: datetime
    version: int


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class Author:
    id: UUID
    name: str
    metadata: ResourceMetadata

    @property
    def version(self) -> int:
        return self.metadata.version


@dataclass(frozen=True)
class Book:
    id: UUID
    title: str
    author_ids: tuple[UUID, ...]
    genres: tuple[Genre, ...]
    price: Money
    metadata: ResourceMetadata

    @property
    def version(self) -> int:
        return self.metadata.version


@dataclass(frozen=True)
class AuthorDraft:
    name: str


@dataclass(frozen=True)
class BookDraft:
    title: str
    price: Money
    author_ids: tuple[UUID, ...] = field(default_factory=tuple)
    genres: tuple[Genre, ...] = field(default_factory=tuple)


__all__ = [
    "DEFAULT_CURRENCY",
    "ResourceMetadata",
    "Money",
    "Author",
    "Book",
    "AuthorDraft",
    "BookDraft",
]
