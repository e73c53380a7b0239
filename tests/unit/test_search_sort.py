from __future__ import annotations

import pytest

from catalog.logic.errors import BadRequest
from catalog.logic.search_sort import SortOrder, SortProperty, resolve_sort


def _pairs(orders):
    return [(o.prop, o.descending) for o in orders]


@pytest.mark.parametrize("sort", [None, "", "  ", ","])
def test_default_order_is_score_then_recency(sort):
    assert _pairs(resolve_sort(sort)) == [
        (SortProperty.SCORE, True),
        (SortProperty.UPDATED_AT, True),
        (SortProperty.ID, False),
    ]


def test_explicit_tokens_get_tie_break():
    assert _pairs(resolve_sort("title")) == [
        (SortProperty.TITLE, False),
        (SortProperty.UPDATED_AT, True),
        (SortProperty.ID, False),
    ]


def test_client_direction_on_tie_break_key_is_kept():
    assert _pairs(resolve_sort("-price, updatedAt")) == [
        (SortProperty.PRICE, True),
        (SortProperty.UPDATED_AT, False),
        (SortProperty.ID, False),
    ]


def test_all_allowed_properties_parse():
    orders = resolve_sort("title,-author,genre,price,createdAt,-updatedAt,-score")
    assert orders[:7] == (
        SortOrder(SortProperty.TITLE),
        SortOrder(SortProperty.AUTHOR, True),
        SortOrder(SortProperty.GENRE),
        SortOrder(SortProperty.PRICE),
        SortOrder(SortProperty.CREATED_AT),
        SortOrder(SortProperty.UPDATED_AT, True),
        SortOrder(SortProperty.SCORE, True),
    )


@pytest.mark.parametrize("sort", ["bogus", "title,-bogus", "id"])
def test_unknown_property_names_the_token(sort):
    with pytest.raises(BadRequest) as err:
        resolve_sort(sort)
    assert err.value.code == "BAD_SORT"
    assert sort.split(",")[-1].lstrip("-") in err.value.detail


def test_stray_minus_is_rejected():
    with pytest.raises(BadRequest) as err:
        resolve_sort("title,-")
    assert err.value.code == "BAD_SORT"
