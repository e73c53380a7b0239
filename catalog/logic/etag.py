"""Strong entity tag helpers.

Single source of truth for the catalog's ``ETag`` values. A tag is the
SHA-256 hex digest of ``<id>:<version>`` wrapped in double quotes, so the
same (id, version) pair always yields the same tag and every version bump
yields a new one. Header values are parsed here as well: comma separated
lists, the ``*`` wildcard and weak (``W/``) validators are accepted on input
but only strong tags are ever produced.
"""

from __future__ import annotations

import hashlib
import logging
import re
from uuid import UUID

__all__ = [
    "WILDCARD",
    "compute_etag",
    "split_etag_header",
    "normalize_etag",
    "compare_etag",
    "extract_version",
    "names_etag",
]

logger = logging.getLogger(__name__)

WILDCARD = "*"
_VERSION_RE = re.compile(r"[+-]?[0-9]+")


def compute_etag(resource_id: UUID | str, version: int) -> str:
    """Return the strong tag for ``resource_id`` at ``version``."""
    digest = hashlib.sha256()
    digest.update(str(resource_id).encode("utf-8"))
    digest.update(b":")
    digest.update(str(int(version)).encode("utf-8"))
    return f'"{digest.hexdigest()}"'


def split_etag_header(value: str | None) -> list[str]:
    """Split a raw If-Match/If-None-Match value into trimmed candidates.

    Commas inside a quoted tag do not split it. Empty entries are dropped.
    """
    if value is None:
        return []
    parts: list[str] = []
    buf: list[str] = []
    in_quote = False
    for ch in value:
        if ch == '"':
            in_quote = not in_quote
            buf.append(ch)
        elif ch == "," and not in_quote:
            parts.append("".join(buf).strip())
            buf.clear()
        else:
            buf.append(ch)
    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def normalize_etag(raw: str) -> str:
    """Strip a weak prefix and make sure the tag is quoted. ``*`` is kept."""
    token = raw.strip()
    if token == WILDCARD:
        return token
    if token[:2] == "W/":
        token = token[2:].lstrip()
    if not token.startswith('"'):
        token = f'"{token}"'
    return token


def _normalized_candidates(value: str | None) -> list[str]:
    return [normalize_etag(c) for c in split_etag_header(value)]


def compare_etag(header_value: str | None, current: str) -> bool:
    """Return True when the header value matches ``current``.

    A missing or blank header never matches; ``*`` anywhere in the list
    matches unconditionally.
    """
    if header_value is None or not header_value.strip():
        return False
    candidates = _normalized_candidates(header_value)
    if WILDCARD in candidates:
        return True
    return normalize_etag(current) in candidates


def names_etag(header_value: str | None, current: str) -> bool:
    """Return True when the header lists ``current`` explicitly (not via ``*``)."""
    return normalize_etag(current) in _normalized_candidates(header_value)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def extract_version(header_value: str | None, resource_id: UUID | str) -> int | None:
    """Recover the version from an invertible ``"<id>:<version>"`` candidate.

    Returns the first candidate that parses, or None when no candidate
    carries version information for ``resource_id``.
    """
    if header_value is None or not header_value.strip() or resource_id is None:
        return None
    prefix = f"{resource_id}:"
    for candidate in _normalized_candidates(header_value):
        if candidate == WILDCARD:
            continue
        inner = _unquote(candidate)
        if not inner.startswith(prefix):
            continue
        remainder = inner[len(prefix):]
        if _VERSION_RE.fullmatch(remainder):
            return int(remainder)
        logger.debug("etag.extract_version skipped candidate=%s", candidate)
    return None
