"""Fixed genre catalogue."""

from __future__ import annotations

import enum
from typing import Iterable

from catalog.logic.errors import BadRequest


class Genre(str, enum.Enum):
    FICTION = "FICTION"
    NON_FICTION = "NON_FICTION"
    MYSTERY = "MYSTERY"
    SCIENCE_FICTION = "SCIENCE_FICTION"
    FANTASY = "FANTASY"
    BIOGRAPHY = "BIOGRAPHY"
    HISTORY = "HISTORY"
    CHILDREN = "CHILDREN"
    ROMANCE = "ROMANCE"
    SELF_HELP = "SELF_HELP"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Genre.FICTION: "Fiction",
    Genre.NON_FICTION: "Non-fiction",
    Genre.MYSTERY: "Mystery",
    Genre.SCIENCE_FICTION: "Science Fiction",
    Genre.FANTASY: "Fantasy",
    Genre.BIOGRAPHY: "Biography",
    Genre.HISTORY: "History",
    Genre.CHILDREN: "Children",
    Genre.ROMANCE: "Romance",
    Genre.SELF_HELP: "Self-help",
}


def parse_genre(value: str | Genre) -> Genre:
    if isinstance(value, Genre):
        return value
    token = str(value).strip()
    try:
        return Genre(token.upper())
    except ValueError:
        raise BadRequest(f"Unknown genre '{token}'", code="BAD_GENRE") from None


def parse_genres(values: Iterable[str | Genre] | None) -> list[Genre]:
    """Parse genre codes case-insensitively, dropping repeats.

    Each value may itself be a comma separated list. Blank entries are
    ignored; an unknown code raises BadRequest naming it.
    """
    result: list[Genre] = []
    for value in values or []:
        parts = [value] if isinstance(value, Genre) else str(value).split(",")
        for part in parts:
            if not isinstance(part, Genre) and not part.strip():
                continue
            genre = parse_genre(part)
            if genre not in result:
                result.append(genre)
    return result


__all__ = ["Genre", "parse_genre", "parse_genres"]
