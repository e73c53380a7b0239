"""Catalog media types and the JSON response class that carries them."""

from __future__ import annotations

from fastapi.responses import JSONResponse

CATALOG_MEDIA_TYPE = "application/vnd.vbookstore.catalog+json;version=1"


class CatalogJSONResponse(JSONResponse):
    media_type = CATALOG_MEDIA_TYPE


__all__ = ["CATALOG_MEDIA_TYPE", "CatalogJSONResponse"]
