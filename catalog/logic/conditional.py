"""Conditional request evaluation for versioned resources.

Turns the ``If-Match`` / ``If-None-Match`` pair of a write into one of two
outcomes: create-if-absent, or a version-gated write carrying the version the
client asserts is current. Reads use the same helpers to decide 304.

Version recovery: an invertible ``"<id>:<version>"`` candidate wins when
present. Otherwise a candidate that names the current strong tag pins the
version of the row that tag was computed from, since a SHA-256 tag over
``id:version`` identifies exactly one version. A bare ``*`` carries no
version information and is rejected for version-gated writes.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from catalog.logic.errors import PreconditionFailed, PreconditionRequired
from catalog.logic.etag import WILDCARD, compare_etag, compute_etag, extract_version, names_etag

logger = logging.getLogger(__name__)


class VersionedResource(Protocol):
    @property
    def id(self) -> UUID: ...

    @property
    def version(self) -> int: ...


class WriteMode(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class ConditionalHeaders:
    if_match: str | None = None
    if_none_match: str | None = None

    @property
    def requests_create(self) -> bool:
        return (self.if_none_match or "").strip() == WILDCARD

    @property
    def has_if_match(self) -> bool:
        return bool(self.if_match and self.if_match.strip())


def etag_for(resource: VersionedResource) -> str:
    return compute_etag(resource.id, resource.version)


def resolve_write_mode(headers: ConditionalHeaders, kind: str) -> WriteMode:
    """Decide create vs. update for a PUT from its conditional headers."""
    if headers.requests_create:
        return WriteMode.CREATE
    require_if_match(headers, kind)
    return WriteMode.UPDATE


def require_if_match(headers: ConditionalHeaders, kind: str) -> str:
    if not headers.has_if_match:
        logger.info("precondition.fail reason=missing kind=%s", kind)
        raise PreconditionRequired(
            f"If-Match header is required when updating an existing {kind}"
        )
    return str(headers.if_match)


def require_expected_version(if_match: str | None, current: VersionedResource) -> int:
    """Check ``if_match`` against ``current`` and return the asserted version.

    Raises PreconditionFailed when the header does not match the current tag
    or when no version can be recovered from it.
    """
    current_tag = etag_for(current)
    if not compare_etag(if_match, current_tag):
        logger.info("precondition.fail reason=mismatch id=%s version=%s", current.id, current.version)
        raise PreconditionFailed("If-Match header does not match the current entity tag")

    expected = extract_version(if_match, current.id)
    if expected is None and names_etag(if_match, current_tag):
        expected = current.version
    if expected is None:
        logger.info("precondition.fail reason=no_version id=%s", current.id)
        raise PreconditionFailed(
            "If-Match header must include an entity tag with version information",
            code="PRE_IF_MATCH_NO_VERSION",
        )
    return expected


def is_not_modified(if_none_match: str | None, current: VersionedResource) -> bool:
    return compare_etag(if_none_match, etag_for(current))


__all__ = [
    "VersionedResource",
    "WriteMode",
    "ConditionalHeaders",
    "etag_for",
    "resolve_write_mode",
    "require_if_match",
    "require_expected_version",
    "is_not_modified",
]
