"""Conditional header evaluation for version-gated writes."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import pytest

from catalog.logic.conditional import (
    ConditionalHeaders,
    WriteMode,
    etag_for,
    is_not_modified,
    require_expected_version,
    resolve_write_mode,
)
from catalog.logic.errors import PreconditionFailed, PreconditionRequired


@dataclass(frozen=True)
class Resource:
    id: uuid.UUID
    version: int


@pytest.fixture()
def current() -> Resource:
    return Resource(uuid.uuid4(), 4)


def test_if_none_match_wildcard_means_create():
    assert resolve_write_mode(ConditionalHeaders(if_none_match="*"), "author") is WriteMode.CREATE


def test_if_match_present_means_update():
    headers = ConditionalHeaders(if_match='"abc"')
    assert resolve_write_mode(headers, "author") is WriteMode.UPDATE


@pytest.mark.parametrize("if_match", [None, "", "  "])
def test_missing_if_match_is_precondition_required(if_match):
    with pytest.raises(PreconditionRequired) as err:
        resolve_write_mode(ConditionalHeaders(if_match=if_match, if_none_match='"x"'), "book")
    assert err.value.status == 412
    assert err.value.code == "PRE_IF_MATCH_MISSING"
    assert "existing book" in err.value.detail


def test_current_tag_yields_current_version(current):
    assert require_expected_version(etag_for(current), current) == 4
    assert require_expected_version(f"W/{etag_for(current)}", current) == 4


def test_stale_tag_is_rejected(current):
    stale = etag_for(Resource(current.id, 3))
    with pytest.raises(PreconditionFailed) as err:
        require_expected_version(stale, current)
    assert err.value.code == "PRE_IF_MATCH_MISMATCH"


def test_wildcard_alone_carries_no_version(current):
    with pytest.raises(PreconditionFailed) as err:
        require_expected_version("*", current)
    assert err.value.code == "PRE_IF_MATCH_NO_VERSION"


def test_invertible_candidate_wins_over_current_tag(current):
    header = f'"{current.id}:2", *'
    assert require_expected_version(header, current) == 2


def test_not_modified_only_for_matching_tag(current):
    assert is_not_modified(etag_for(current), current)
    assert is_not_modified("*", current)
    assert not is_not_modified(None, current)
    assert not is_not_modified(etag_for(Resource(current.id, 5)), current)
