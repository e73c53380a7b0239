"""Storage-agnostic planning of book search requests.

The planner never renders SQL. It turns raw filter values into a
``SearchPlan``: a tuple of weighted text terms (each one a predicate, a rank
contribution and a bound parameter at once) plus exact-match genre codes.
``catalog.logic.text_search`` renders a plan for a concrete database.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from catalog.models.genre import Genre, parse_genres

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class SearchField(str, enum.Enum):
    """A slice of the per-book search document.

    Title carries weight A, the ordered author names weight B and the genre
    labels weight C. ``ALL`` is the concatenation of the three.
    """

    TITLE = "title"
    AUTHORS = "authors"
    GENRES = "genres"
    ALL = "all"


@dataclass(frozen=True)
class TextTerm:
    field: SearchField
    query: str
    param: str


@dataclass(frozen=True)
class SearchPlan:
    terms: tuple[TextTerm, ...] = ()
    genres: tuple[Genre, ...] = field(default_factory=tuple)

    @property
    def has_rank(self) -> bool:
        # genre filters narrow the set but never add a rank signal
        return bool(self.terms)

    @property
    def is_unfiltered(self) -> bool:
        return not self.terms and not self.genres

    def describe(self) -> str:
        parts = [f"{t.field.value}={t.query!r}" for t in self.terms]
        if self.genres:
            parts.append("genres=" + ",".join(g.value for g in self.genres))
        return " ".join(parts) or "none"


def sanitize_query(value: str | None) -> str | None:
    """Collapse whitespace runs and trim; blank input yields None."""
    if value is None:
        return None
    collapsed = _WHITESPACE_RE.sub(" ", value).strip()
    return collapsed or None


def plan_search(
    title: str | None = None,
    author: str | None = None,
    genres: Iterable[str | Genre] | None = None,
    q: str | None = None,
) -> SearchPlan:
    """Build a plan from raw filters.

    Unknown genre codes raise BadRequest before anything else is planned.
    """
    genre_codes = tuple(parse_genres(genres))
    terms: list[TextTerm] = []
    for search_field, raw in (
        (SearchField.TITLE, title),
        (SearchField.AUTHORS, author),
        (SearchField.ALL, q),
    ):
        value = sanitize_query(raw)
        if value is None:
            continue
        terms.append(TextTerm(search_field, value, f"{search_field.value}_query"))
    plan = SearchPlan(terms=tuple(terms), genres=genre_codes)
    logger.debug("search.plan %s", plan.describe())
    return plan


__all__ = ["SearchField", "TextTerm", "SearchPlan", "sanitize_query", "plan_search"]
