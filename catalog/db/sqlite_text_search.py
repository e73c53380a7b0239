"""Weighted full-text matching and ranking as SQLite functions.

PostgreSQL answers book search with ``websearch_to_tsquery`` and
``ts_rank_cd`` over weighted ``tsvector`` documents. SQLite has no equivalent
that works on documents assembled at query time, so the same semantics are
registered on every SQLite connection as two deterministic functions:

``catalog_ts_match(query, weight, text, [weight, text, ...])`` -> 1 / 0
``catalog_ts_rank(query, weight, text, [weight, text, ...])`` -> float

Each ``weight`` is one of the tsvector weight letters ``A``..``D``; the
``text`` that follows it is tokenized into lower-cased words whose positions
continue from the previous field, as when weighted tsvectors are concatenated.

Query grammar follows ``websearch_to_tsquery`` with the ``simple`` profile:
whitespace separated words are ANDed, ``or`` separates alternatives, a quoted
string is a phrase, and a leading ``-`` negates a word or phrase. Ranking is
cover density: every minimal span containing all positive query words adds
its harmonic-mean weight divided by one plus the number of non-matching words
inside the span, so closer matches score higher.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

WEIGHTS = {"A": 1.0, "B": 0.4, "C": 0.2, "D": 0.1}

_WORD_RE = re.compile(r"\w+", re.UNICODE)
_QUERY_TOKEN_RE = re.compile(r'(-?)"([^"]*)"?|(-?)([^\s"]+)')


@dataclass(frozen=True)
class Clause:
    words: tuple[str, ...]
    negated: bool = False


Branch = tuple[Clause, ...]


def tokenize(text: str | None) -> list[str]:
    if not text:
        return []
    return _WORD_RE.findall(text.lower())


@lru_cache(maxsize=512)
def parse_websearch(query: str) -> tuple[Branch, ...]:
    """Parse a websearch-style query into OR-ed branches of AND-ed clauses."""
    branches: list[Branch] = []
    current: list[Clause] = []
    for m in _QUERY_TOKEN_RE.finditer(query or ""):
        quoted_neg, quoted, bare_neg, bare = m.groups()
        if quoted is not None:
            words = tuple(tokenize(quoted))
            negated = bool(quoted_neg)
        else:
            if bare.lower() == "or" and not bare_neg:
                if current:
                    branches.append(tuple(current))
                    current = []
                continue
            words = tuple(tokenize(bare))
            negated = bool(bare_neg)
        if words:
            current.append(Clause(words, negated))
    if current:
        branches.append(tuple(current))
    return tuple(branches)


@dataclass(frozen=True)
class _Document:
    positions: dict[str, list[int]]
    weight_at: dict[int, float]


def _build_document(fields: Sequence[object]) -> _Document:
    positions: dict[str, list[int]] = {}
    weight_at: dict[int, float] = {}
    pos = 0
    for i in range(0, len(fields) - 1, 2):
        weight = WEIGHTS.get(str(fields[i] or "D").upper(), WEIGHTS["D"])
        text = fields[i + 1]
        for word in tokenize(None if text is None else str(text)):
            positions.setdefault(word, []).append(pos)
            weight_at[pos] = weight
            pos += 1
        # gap keeps phrases from spanning two fields
        pos += 1
    return _Document(positions, weight_at)


def _clause_present(doc: _Document, clause: Clause) -> bool:
    first, *rest = clause.words
    for start in doc.positions.get(first, []):
        if all(start + offset + 1 in doc.positions.get(word, []) for offset, word in enumerate(rest)):
            return True
    return False


def _branch_matches(doc: _Document, branch: Branch) -> bool:
    positive = [c for c in branch if not c.negated]
    negative = [c for c in branch if c.negated]
    if any(_clause_present(doc, c) for c in negative):
        return False
    return all(_clause_present(doc, c) for c in positive)


def _covers(hits: list[tuple[int, str]], wanted: int) -> Iterable[list[tuple[int, str]]]:
    start = 0
    while start < len(hits):
        seen: set[str] = set()
        end = None
        for i in range(start, len(hits)):
            seen.add(hits[i][1])
            if len(seen) == wanted:
                end = i
                break
        if end is None:
            return
        seen = set()
        begin = end
        for j in range(end, start - 1, -1):
            seen.add(hits[j][1])
            if len(seen) == wanted:
                begin = j
                break
        yield hits[begin:end + 1]
        start = begin + 1


def _branch_rank(doc: _Document, branch: Branch) -> float:
    words = {w for c in branch if not c.negated for w in c.words}
    if not words:
        return 0.0
    hits = sorted((p, w) for w in words for p in doc.positions.get(w, []))
    score = 0.0
    for cover in _covers(hits, len(words)):
        inv_sum = sum(1.0 / doc.weight_at[p] for p, _ in cover)
        span = cover[-1][0] - cover[0][0] + 1
        noise = span - len(cover)
        score += (len(cover) / inv_sum) / (1 + noise)
    return score


def ts_match(query: str | None, *fields: object) -> int:
    branches = parse_websearch(query or "")
    if not branches:
        return 0
    doc = _build_document(fields)
    return 1 if any(_branch_matches(doc, b) for b in branches) else 0


def ts_rank(query: str | None, *fields: object) -> float:
    branches = parse_websearch(query or "")
    if not branches:
        return 0.0
    doc = _build_document(fields)
    return sum(_branch_rank(doc, b) for b in branches if _branch_matches(doc, b))


def register_text_search_functions(dbapi_connection) -> None:  # type: ignore[no-untyped-def]
    """Register ``catalog_ts_match`` / ``catalog_ts_rank`` on a sqlite3 connection."""
    dbapi_connection.create_function("catalog_ts_match", -1, ts_match, deterministic=True)
    dbapi_connection.create_function("catalog_ts_rank", -1, ts_rank, deterministic=True)


__all__ = [
    "WEIGHTS",
    "Clause",
    "tokenize",
    "parse_websearch",
    "ts_match",
    "ts_rank",
    "register_text_search_functions",
]
