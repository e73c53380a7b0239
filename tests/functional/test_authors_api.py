"""Author endpoints: conditional create/update/delete and reads."""

from __future__ import annotations

import uuid

from catalog.http.media import CATALOG_MEDIA_TYPE
from catalog.http.problem import PROBLEM_MEDIA_TYPE
from catalog.logic.etag import compute_etag

API = "/api/v1"


def test_create_returns_201_with_location_etag_and_version_zero(client):
    aid = str(uuid.uuid4())
    resp = client.put(f"{API}/authors/{aid}", json={"name": "Eric Evans"}, headers={"If-None-Match": "*"})
    assert resp.status_code == 201
    assert resp.headers["Location"] == f"/api/v1/authors/{aid}"
    assert resp.headers["ETag"] == compute_etag(aid, 0)
    assert resp.headers["content-type"] == CATALOG_MEDIA_TYPE
    body = resp.json()
    assert body["id"] == aid
    assert body["name"] == "Eric Evans"
    assert body["metadata"]["version"] == 0
    assert body["metadata"]["createdAt"] == body["metadata"]["updatedAt"]


def test_get_returns_etag_and_304_on_matching_if_none_match(client, make_author):
    author = make_author("Martin Fowler")
    resp = client.get(f"{API}/authors/{author['id']}")
    assert resp.status_code == 200
    assert resp.headers["ETag"] == author["etag"]

    cached = client.get(f"{API}/authors/{author['id']}", headers={"If-None-Match": author["etag"]})
    assert cached.status_code == 304
    assert cached.headers["ETag"] == author["etag"]
    assert cached.content == b""


def test_get_unknown_author_is_404_problem(client):
    resp = client.get(f"{API}/authors/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
    assert resp.json()["code"] == "NOT_FOUND"


def test_put_with_if_none_match_on_existing_id_is_conflict(client, make_author):
    author = make_author("Kent Beck")
    resp = client.put(
        f"{API}/authors/{author['id']}", json={"name": "Someone Else"}, headers={"If-None-Match": "*"}
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT_ID"
    assert client.get(f"{API}/authors/{author['id']}").json()["name"] == "Kent Beck"


def test_duplicate_name_ignoring_case_is_conflict(client, make_author):
    make_author("Rebecca Wirfs-Brock")
    resp = client.put(
        f"{API}/authors/{uuid.uuid4()}", json={"name": "rebecca wirfs-brock"}, headers={"If-None-Match": "*"}
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT_NATURAL_KEY"


def test_update_without_if_match_is_precondition_required(client, make_author):
    author = make_author("Vaughn Vernon")
    resp = client.put(f"{API}/authors/{author['id']}", json={"name": "V. Vernon"})
    assert resp.status_code == 412
    problem = resp.json()
    assert problem["code"] == "PRE_IF_MATCH_MISSING"
    assert problem["title"] == "Precondition Required"
    assert "If-Match header is required" in problem["detail"]


def test_update_with_current_tag_bumps_version_and_tag(client, make_author):
    author = make_author("Greg Young")
    resp = client.put(
        f"{API}/authors/{author['id']}", json={"name": "Gregory Young"}, headers={"If-Match": author["etag"]}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Gregory Young"
    assert body["metadata"]["version"] == 1
    assert resp.headers["ETag"] == compute_etag(author["id"], 1)
    assert resp.headers["ETag"] != author["etag"]
    assert body["metadata"]["updatedAt"] > body["metadata"]["createdAt"]


def test_update_with_stale_tag_is_rejected_and_leaves_version(client, make_author):
    author = make_author("Udi Dahan")
    first = client.put(
        f"{API}/authors/{author['id']}", json={"name": "Udi D."}, headers={"If-Match": author["etag"]}
    )
    assert first.status_code == 200
    stale = client.put(
        f"{API}/authors/{author['id']}", json={"name": "Udi Again"}, headers={"If-Match": author["etag"]}
    )
    assert stale.status_code == 412
    assert stale.json()["code"] == "PRE_IF_MATCH_MISMATCH"
    current = client.get(f"{API}/authors/{author['id']}").json()
    assert current["metadata"]["version"] == 1
    assert current["name"] == "Udi D."


def test_wildcard_if_match_has_no_version(client, make_author):
    author = make_author("Alberto Brandolini")
    resp = client.put(f"{API}/authors/{author['id']}", json={"name": "A. B."}, headers={"If-Match": "*"})
    assert resp.status_code == 412
    assert resp.json()["code"] == "PRE_IF_MATCH_NO_VERSION"


def test_weak_if_match_is_accepted(client, make_author):
    author = make_author("Sam Newman")
    resp = client.put(
        f"{API}/authors/{author['id']}", json={"name": "Sam N."}, headers={"If-Match": f"W/{author['etag']}"}
    )
    assert resp.status_code == 200


def test_patch_updates_name(client, make_author):
    author = make_author("Mathias Verraes")
    resp = client.patch(
        f"{API}/authors/{author['id']}",
        content='{"name": "M. Verraes"}',
        headers={"If-Match": author["etag"], "Content-Type": "application/merge-patch+json"},
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "M. Verraes"
    assert resp.json()["metadata"]["version"] == 1


def test_empty_patch_is_precondition_failure_after_if_match_check(client, make_author):
    author = make_author("Nick Tune")
    empty = client.patch(f"{API}/authors/{author['id']}", json={"name": "  "}, headers={"If-Match": author["etag"]})
    assert empty.status_code == 412
    assert empty.json()["code"] == "PRE_EMPTY_PATCH"

    stale = client.patch(f"{API}/authors/{author['id']}", json={}, headers={"If-Match": '"nope"'})
    assert stale.json()["code"] == "PRE_IF_MATCH_MISMATCH"


def test_delete_requires_matching_tag(client, make_author):
    author = make_author("Scott Millett")
    missing = client.delete(f"{API}/authors/{author['id']}")
    assert missing.status_code == 412
    resp = client.delete(f"{API}/authors/{author['id']}", headers={"If-Match": author["etag"]})
    assert resp.status_code == 204
    assert client.get(f"{API}/authors/{author['id']}").status_code == 404


def test_list_is_paginated_by_update_time(client, make_author):
    names = [f"Author {i}" for i in range(5)]
    created = [make_author(n) for n in names]
    # touching the first author moves it to the end
    client.put(
        f"{API}/authors/{created[0]['id']}", json={"name": "Author 0b"}, headers={"If-Match": created[0]["etag"]}
    )
    page1 = client.get(f"{API}/authors", params={"page[number]": 1, "page[size]": 2}).json()
    page3 = client.get(f"{API}/authors", params={"page[number]": 3, "page[size]": 2}).json()
    assert page1["meta"] == {"totalElements": 5, "totalPages": 3, "page": 1, "size": 2}
    assert [a["name"] for a in page1["content"]] == ["Author 1", "Author 2"]
    assert [a["name"] for a in page3["content"]] == ["Author 0b"]


def test_page_parameters_are_clamped(client, make_author):
    make_author("Only One")
    body = client.get(f"{API}/authors", params={"page[number]": 0, "page[size]": 1000}).json()
    assert body["meta"]["page"] == 1
    assert body["meta"]["size"] == 100
    body = client.get(f"{API}/authors", params={"page[size]": 0}).json()
    assert body["meta"]["size"] == 20


def test_invalid_body_is_400_problem(client):
    resp = client.put(f"{API}/authors/{uuid.uuid4()}", json={"name": ""}, headers={"If-None-Match": "*"})
    assert resp.status_code == 400
    problem = resp.json()
    assert problem["code"] == "VALIDATION"
    assert problem["errors"]


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get(f"{API}/authors", headers={"X-Request-Id": "req-123"})
    assert echoed.headers["X-Request-Id"] == "req-123"
    generated = client.get(f"{API}/authors")
    assert generated.headers["X-Request-Id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "db": True}


def test_stale_version_with_taken_name_is_412_not_409(client, make_author):
    make_author("Taken Name")
    author = make_author("Own Name")
    client.put(f"{API}/authors/{author['id']}", json={"name": "Own Name 2"}, headers={"If-Match": author["etag"]})

    resp = client.put(
        f"{API}/authors/{author['id']}",
        json={"name": "taken name"},
        headers={"If-Match": f'*, "{author["id"]}:0"'},
    )
    assert resp.status_code == 412
    assert resp.json()["code"] == "PRE_VERSION_MISMATCH"
