"""Ranked book search route."""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Query, Request

from catalog.http.media import CatalogJSONResponse
from catalog.logic.paging import resolve_page
from catalog.logic.search_executor import SearchHit, execute_search
from catalog.logic.search_planner import plan_search
from catalog.logic.search_sort import resolve_sort
from catalog.models.api import money_body, page_body
from catalog.routes.common import app_config

router = APIRouter()


def _item(hit: SearchHit) -> dict:
    return {
        "id": str(hit.id),
        "title": hit.title,
        "authors": list(hit.author_names),
        "genres": [g.value for g in hit.genres],
        "price": money_body(hit.price),
        "score": hit.score,
        "_links": {"self": {"href": f"/api/v1/books/{hit.id}"}},
    }


@router.get("/book-search", summary="Search books by title, author, genre or free text")
def search_books(
    request: Request,
    title: Annotated[Optional[str], Query(alias="filter[title]")] = None,
    author: Annotated[Optional[str], Query(alias="filter[author]")] = None,
    genres: Annotated[Optional[List[str]], Query(alias="filter[genres]")] = None,
    q: Annotated[Optional[str], Query(alias="filter[q]")] = None,
    page_number: Annotated[Optional[int], Query(alias="page[number]")] = None,
    page_size: Annotated[Optional[int], Query(alias="page[size]")] = None,
    sort: Annotated[Optional[str], Query()] = None,
):
    cfg = app_config(request)
    plan = plan_search(title=title, author=author, genres=genres, q=q)
    orders = resolve_sort(sort)
    page = resolve_page(page_number, page_size, cfg.pagination)
    result = execute_search(plan, orders, page, text_search_config=cfg.search.text_search_config)
    body = page_body([_item(h) for h in result.items], total=result.total, page=page.number, size=page.size)
    return CatalogJSONResponse(body)


__all__ = ["router"]
