"""Helpers shared by the catalog route modules."""

from __future__ import annotations

import enum
from typing import Iterable

from fastapi import Request, Response

from catalog.config import AppConfig, load_config
from catalog.http.media import CatalogJSONResponse
from catalog.logic.conditional import VersionedResource, etag_for
from catalog.logic.errors import BadRequest


class EmbedOption(str, enum.Enum):
    AUTHORS = "authors"


def app_config(request: Request) -> AppConfig:
    cfg = getattr(request.app.state, "config", None)
    if cfg is None:
        cfg = load_config()
        request.app.state.config = cfg
    return cfg


def parse_embed(values: Iterable[str] | None) -> set[EmbedOption]:
    """Parse ``embed`` values (repeatable, comma separated, any case)."""
    options: set[EmbedOption] = set()
    for value in values or []:
        for token in value.split(","):
            token = token.strip().lower()
            if not token:
                continue
            try:
                options.add(EmbedOption(token))
            except ValueError:
                raise BadRequest(f"Unsupported embed value '{token}'", code="BAD_EMBED") from None
    return options


def tagged_response(
    body: dict,
    resource: VersionedResource,
    status_code: int = 200,
    location: str | None = None,
) -> CatalogJSONResponse:
    headers = {"ETag": etag_for(resource)}
    if location is not None:
        headers["Location"] = location
    return CatalogJSONResponse(body, status_code=status_code, headers=headers)


def not_modified(resource: VersionedResource) -> Response:
    return Response(status_code=304, headers={"ETag": etag_for(resource)})


__all__ = ["EmbedOption", "app_config", "parse_embed", "tagged_response", "not_modified"]
