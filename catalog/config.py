"""Configuration loading for the catalog service.

This module loads application configuration with the following rules:
- Primary source: environment variables.
- Fallback: optional `catalog_config.json` at the project root.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator


ROOT_CATALOG_CONFIG = Path(__file__).resolve().parents[1] / "catalog_config.json"
DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"
_TEXT_SEARCH_CONFIG_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
logger = logging.getLogger(__name__)


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(key, default)
    if value is not None and not value.strip():
        return default
    return value


def _as_bool(text: str) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    url: str
    auto_migrate: bool = Field(default=True)

    @field_validator("url")
    @classmethod
    def url_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.url must be a non-empty string")
        return v.strip()


class SearchConfig(BaseModel):
    # PostgreSQL text search configuration (regconfig) used for every field
    text_search_config: str = Field(default="simple")

    @field_validator("text_search_config")
    @classmethod
    def config_must_be_identifier(cls, v: str) -> str:
        v = (v or "").strip()
        if not _TEXT_SEARCH_CONFIG_RE.match(v):
            raise ValueError("search.text_search_config must be a plain identifier such as 'simple' or 'english'")
        return v


class PaginationConfig(BaseModel):
    default_size: int = Field(default=20, gt=0)
    max_size: int = Field(default=100, gt=0)

    @model_validator(mode="after")
    def default_within_max(self) -> "PaginationConfig":
        if self.default_size > self.max_size:
            raise ValueError("pagination.default_size must not exceed pagination.max_size")
        return self


class AppConfig(BaseModel):
    database: DatabaseConfig
    search: SearchConfig = Field(default_factory=SearchConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) catalog_config.json at project root (optional)
    3) Defaults suitable for local development
    """

    base = _read_json_file(config_path or ROOT_CATALOG_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    url = _env("TEST_DATABASE_URL") or _env("DATABASE_URL") or _base("database.url") or DEFAULT_DATABASE_URL
    auto_migrate_text = _env("AUTO_APPLY_MIGRATIONS") or _base("database.auto_migrate", "true")
    fts_config = _env("CATALOG_SEARCH_FTS_CONFIG") or _base("search.text_search_config", "simple")
    default_size_text = _env("CATALOG_PAGE_DEFAULT_SIZE") or _base("pagination.default_size", "20")
    max_size_text = _env("CATALOG_PAGE_MAX_SIZE") or _base("pagination.max_size", "100")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(url=url, auto_migrate=_as_bool(str(auto_migrate_text))),
            search=SearchConfig(text_search_config=str(fts_config)),
            pagination=PaginationConfig(
                default_size=str(default_size_text).strip(),
                max_size=str(max_size_text).strip(),
            ),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SearchConfig",
    "PaginationConfig",
    "load_config",
]
