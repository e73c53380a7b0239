"""Pydantic request bodies and JSON representations for the catalog API."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.models.resources import DEFAULT_CURRENCY, Author, Book, Money


class MoneyIn(BaseModel):
    amount: Decimal = Field(ge=0, decimal_places=2)
    currency: str = DEFAULT_CURRENCY

    @field_validator("currency", mode="before")
    @classmethod
    def normalise_currency(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            return DEFAULT_CURRENCY
        code = str(v).strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("currency must be a 3-letter ISO-4217 code")
        return code

    def to_money(self) -> Money:
        return Money(amount=self.amount, currency=self.currency)


class AuthorIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class AuthorPatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, max_length=255)

    def name_value(self) -> str | None:
        if self.name is None or not self.name.strip():
            return None
        return self.name.strip()

    def is_empty(self) -> bool:
        return self.name_value() is None


class BookIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(max_length=255)
    authors: List[UUID] = Field(default_factory=list)
    # Raw codes; parsed against the genre catalogue by the route so an
    # unknown code surfaces as BAD_GENRE rather than a schema error
    genres: List[str] = Field(default_factory=list)
    price: MoneyIn

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class BookPatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, max_length=255)
    authors: Optional[List[UUID]] = None
    genres: Optional[List[str]] = None
    price: Optional[MoneyIn] = None

    def title_value(self) -> str | None:
        if self.title is None or not self.title.strip():
            return None
        return self.title.strip()

    def is_empty(self) -> bool:
        return (
            self.title_value() is None
            and self.authors is None
            and self.genres is None
            and self.price is None
        )


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def money_body(money: Money) -> dict:
    return {"amount": float(money.amount), "currency": money.currency}


def _metadata_body(resource: Author | Book) -> dict:
    meta = resource.metadata
    return {
        "createdAt": format_timestamp(meta.created_at),
        "updatedAt": format_timestamp(meta.updated_at),
        "version": meta.version,
    }


def author_body(author: Author) -> dict:
    return {"id": str(author.id), "name": author.name, "metadata": _metadata_body(author)}


def book_body(book: Book, embedded_authors: Iterable[Author] | None = None) -> dict:
    body: dict[str, Any] = {
        "id": str(book.id),
        "title": book.title,
        "authors": [str(a) for a in book.author_ids],
        "genres": [g.value for g in book.genres],
        "price": money_body(book.price),
        "metadata": _metadata_body(book),
    }
    if embedded_authors is not None:
        body["_embedded"] = {"authors": [author_body(a) for a in embedded_authors]}
    return body


def page_body(content: list, *, total: int, page: int, size: int) -> dict:
    total_pages = (total + size - 1) // size if size > 0 else 0
    return {
        "content": content,
        "meta": {
            "totalElements": total,
            "totalPages": total_pages,
            "page": page,
            "size": size,
        },
    }


__all__ = [
    "MoneyIn",
    "AuthorIn",
    "AuthorPatch",
    "BookIn",
    "BookPatch",
    "format_timestamp",
    "money_body",
    "author_body",
    "book_body",
    "page_body",
]
