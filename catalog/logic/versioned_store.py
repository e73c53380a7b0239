"""Compare-and-swap primitives shared by the author and book repositories.

Every version-gated write is a single ``UPDATE``/``DELETE`` whose ``WHERE``
clause pins both the id and the version the caller expects. Zero affected
rows means the caller lost: the row is re-read inside the same transaction
to tell a missing resource from a stale version. No in-process locking is
involved; two writers racing from the same version get exactly one success.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID

from sqlalchemy import Table, delete, select, update
from sqlalchemy.engine import Connection

from catalog.logic.errors import NotFound, version_mismatch

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def current_version(conn: Connection, table: Table, resource_id: UUID) -> int | None:
    return conn.execute(select(table.c.version).where(table.c.id == resource_id)).scalar_one_or_none()


def _raise_lost_race(
    conn: Connection,
    table: Table,
    resource_id: UUID,
    expected_version: int,
    not_found: Callable[[UUID], NotFound],
) -> None:
    actual = current_version(conn, table, resource_id)
    if actual is None:
        raise not_found(resource_id)
    logger.info(
        "precondition.fail reason=version table=%s id=%s expected=%s actual=%s",
        table.name,
        resource_id,
        expected_version,
        actual,
    )
    raise version_mismatch(expected_version, int(actual))


def insert_versioned(conn: Connection, table: Table, resource_id: UUID, values: dict[str, Any]) -> datetime:
    """Insert a new row at version 0 and return its creation timestamp."""
    now = utcnow()
    conn.execute(
        table.insert().values(id=resource_id, created_at=now, updated_at=now, version=0, **values)
    )
    return now


def update_versioned(
    conn: Connection,
    table: Table,
    resource_id: UUID,
    expected_version: int,
    values: dict[str, Any],
    not_found: Callable[[UUID], NotFound],
) -> tuple[int, datetime]:
    """Apply ``values`` iff the stored version equals ``expected_version``.

    Returns the new version and ``updated_at``. Raises NotFound when the row
    is absent and PreconditionFailed (stating both versions) when it moved.
    """
    now = utcnow()
    result = conn.execute(
        update(table)
        .where(table.c.id == resource_id, table.c.version == expected_version)
        .values(version=table.c.version + 1, updated_at=now, **values)
    )
    if result.rowcount == 0:
        _raise_lost_race(conn, table, resource_id, expected_version, not_found)
    return expected_version + 1, now


def delete_versioned(
    conn: Connection,
    table: Table,
    resource_id: UUID,
    expected_version: int,
    not_found: Callable[[UUID], NotFound],
) -> None:
    result = conn.execute(
        delete(table).where(table.c.id == resource_id, table.c.version == expected_version)
    )
    if result.rowcount == 0:
        _raise_lost_race(conn, table, resource_id, expected_version, not_found)


__all__ = [
    "utcnow",
    "as_utc",
    "current_version",
    "insert_versioned",
    "update_versioned",
    "delete_versioned",
]
