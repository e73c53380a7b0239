"""Page number/size normalisation shared by list and search endpoints."""

from __future__ import annotations

from dataclasses import dataclass

from catalog.config import PaginationConfig


@dataclass(frozen=True)
class PageRequest:
    number: int
    size: int

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.size


def resolve_page(number: int | None, size: int | None, config: PaginationConfig | None = None) -> PageRequest:
    """Clamp a 1-based page request into range.

    Page numbers below 1 become 1; a missing or non-positive size falls back
    to the default and sizes above the maximum are capped.
    """
    cfg = config or PaginationConfig()
    page_number = number if number is not None and number >= 1 else 1
    if size is None or size < 1:
        page_size = cfg.default_size
    else:
        page_size = min(size, cfg.max_size)
    return PageRequest(number=page_number, size=page_size)


__all__ = ["PageRequest", "resolve_page"]
