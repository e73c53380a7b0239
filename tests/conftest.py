"""Shared pytest fixtures for the catalog service.

Each test gets its own file-backed SQLite database with the SQLite
migrations applied through the production runner, and a ticking clock so
``createdAt``/``updatedAt`` ordering is deterministic.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from catalog.config import AppConfig, DatabaseConfig
from catalog.db.base import dispose_engine, get_engine
from catalog.db.migrations_runner import PROJECT_ROOT, apply_migrations
from catalog.logic import versioned_store
from catalog.main import create_app

API = "/api/v1"


class TickingClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.current = self.current + self.step
        return self.current


@pytest.fixture(autouse=True)
def clock(monkeypatch: pytest.MonkeyPatch) -> TickingClock:
    ticking = TickingClock()
    monkeypatch.setattr(versioned_store, "utcnow", ticking)
    return ticking


@pytest.fixture()
def database_url(tmp_path: Path) -> Iterator[str]:
    url = f"sqlite+pysqlite:///{tmp_path / 'catalog.db'}"
    engine = get_engine(url)
    apply_migrations(engine, migrations_dir=PROJECT_ROOT / "sqlite_migrations")
    yield url
    dispose_engine()


@pytest.fixture()
def app_config(database_url: str) -> AppConfig:
    return AppConfig(database=DatabaseConfig(url=database_url, auto_migrate=False))


@pytest.fixture()
def client(app_config: AppConfig) -> Iterator[TestClient]:
    with TestClient(create_app(app_config)) as c:
        yield c


@pytest.fixture()
def make_author(client: TestClient) -> Callable[..., dict]:
    """PUT-create an author and return its body plus ``etag``."""
    def _make(name: str, author_id: str | None = None) -> dict:
        aid = author_id or str(uuid.uuid4())
        resp = client.put(f"{API}/authors/{aid}", json={"name": name}, headers={"If-None-Match": "*"})
        assert resp.status_code == 201, resp.text
        return {**resp.json(), "etag": resp.headers["ETag"]}

    return _make


@pytest.fixture()
def make_book(client: TestClient) -> Callable[..., dict]:
    """PUT-create a book and return its body plus ``etag``."""
    def _make(
        title: str,
        authors: list[str] | None = None,
        genres: list[str] | None = None,
        amount: float = 10.0,
        book_id: str | None = None,
    ) -> dict:
        bid = book_id or str(uuid.uuid4())
        payload = {
            "title": title,
            "authors": authors or [],
            "genres": genres or [],
            "price": {"amount": amount, "currency": "EUR"},
        }
        resp = client.put(f"{API}/books/{bid}", json=payload, headers={"If-None-Match": "*"})
        assert resp.status_code == 201, resp.text
        return {**resp.json(), "etag": resp.headers["ETag"]}

    return _make
