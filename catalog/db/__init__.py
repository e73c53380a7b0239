"""Database bootstrap utilities for the catalog service.

Exposes the engine accessor and the SQL migrations runner. Table metadata
for typed queries lives in ``catalog.db.tables``; route handlers never
import from this package directly.
"""

from catalog.db.base import dispose_engine, get_engine
from catalog.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "apply_migrations",
]
