"""Sort token resolution for book search."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from catalog.logic.errors import BadRequest


class SortProperty(str, enum.Enum):
    TITLE = "title"
    AUTHOR = "author"
    GENRE = "genre"
    PRICE = "price"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    SCORE = "score"
    # internal tie-break only, not accepted from clients
    ID = "id"


_ALLOWED = {p.value: p for p in SortProperty if p is not SortProperty.ID}


@dataclass(frozen=True)
class SortOrder:
    prop: SortProperty
    descending: bool = False


DEFAULT_SORT: tuple[SortOrder, ...] = (
    SortOrder(SortProperty.SCORE, descending=True),
    SortOrder(SortProperty.UPDATED_AT, descending=True),
)

TIE_BREAK: tuple[SortOrder, ...] = (
    SortOrder(SortProperty.UPDATED_AT, descending=True),
    SortOrder(SortProperty.ID),
)


def _bad_sort(detail: str) -> BadRequest:
    return BadRequest(detail, code="BAD_SORT")


def parse_sort_token(token: str) -> SortOrder:
    raw = token.strip()
    descending = raw.startswith("-")
    name = raw[1:].strip() if descending else raw
    if not name:
        raise _bad_sort(f"Sort token '{token}' does not name a property")
    prop = _ALLOWED.get(name)
    if prop is None:
        raise _bad_sort(
            f"Unsupported sort property '{name}'. Allowed: {', '.join(sorted(_ALLOWED))}"
        )
    return SortOrder(prop, descending)


def resolve_sort(sort: str | None) -> tuple[SortOrder, ...]:
    """Turn ``sort`` into a total order.

    Blank input yields the default (score desc, updatedAt desc); empty
    entries between commas are ignored, a bare ``-`` is not. Explicit
    orders are completed with updatedAt desc and id asc unless the client
    already ordered on those properties, so pages never overlap.
    """
    tokens = [tok for tok in (sort or "").split(",") if tok.strip()]
    if not tokens:
        return DEFAULT_SORT + (SortOrder(SortProperty.ID),)
    orders = [parse_sort_token(tok) for tok in tokens]
    seen = {o.prop for o in orders}
    for tie in TIE_BREAK:
        if tie.prop not in seen:
            orders.append(tie)
            seen.add(tie.prop)
    return tuple(orders)


__all__ = [
    "SortProperty",
    "SortOrder",
    "DEFAULT_SORT",
    "TIE_BREAK",
    "parse_sort_token",
    "resolve_sort",
]
