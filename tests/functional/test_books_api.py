"""Book endpoints: references, genres, money, embedding and the author-delete cascade."""

from __future__ import annotations

import uuid

from catalog.logic.etag import compute_etag

API = "/api/v1"


def _payload(title="Refactoring", authors=None, genres=None, price=None):
    return {
        "title": title,
        "authors": authors or [],
        "genres": genres or [],
        "price": price or {"amount": 39.9, "currency": "eur"},
    }


def test_create_book_normalises_genres_authors_and_currency(client, make_author):
    fowler = make_author("Martin Fowler")
    beck = make_author("Kent Beck")
    bid = str(uuid.uuid4())
    resp = client.put(
        f"{API}/books/{bid}",
        json=_payload(
            authors=[fowler["id"], beck["id"], fowler["id"]],
            genres=["non_fiction", "NON_FICTION", "self_help"],
        ),
        headers={"If-None-Match": "*"},
    )
    assert resp.status_code == 201, resp.text
    assert resp.headers["Location"] == f"/api/v1/books/{bid}"
    assert resp.headers["ETag"] == compute_etag(bid, 0)
    body = resp.json()
    assert body["authors"] == [fowler["id"], beck["id"]]
    assert body["genres"] == ["NON_FICTION", "SELF_HELP"]
    assert body["price"] == {"amount": 39.9, "currency": "EUR"}
    assert body["metadata"]["version"] == 0


def test_currency_defaults_to_eur(client):
    resp = client.put(
        f"{API}/books/{uuid.uuid4()}",
        json=_payload(price={"amount": 5}),
        headers={"If-None-Match": "*"},
    )
    assert resp.status_code == 201
    assert resp.json()["price"]["currency"] == "EUR"


def test_unknown_author_reference_is_conflict(client):
    resp = client.put(
        f"{API}/books/{uuid.uuid4()}", json=_payload(authors=[str(uuid.uuid4())]), headers={"If-None-Match": "*"}
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT_REFERENCE"


def test_unknown_genre_is_bad_request(client):
    resp = client.put(f"{API}/books/{uuid.uuid4()}", json=_payload(genres=["poetry"]), headers={"If-None-Match": "*"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_GENRE"


def test_negative_or_overprecise_price_is_rejected(client):
    for amount in (-1, 1.234):
        resp = client.put(
            f"{API}/books/{uuid.uuid4()}",
            json=_payload(price={"amount": amount, "currency": "EUR"}),
            headers={"If-None-Match": "*"},
        )
        assert resp.status_code == 400, amount


def test_existing_id_with_if_none_match_is_conflict(client, make_book):
    book = make_book("Clean Code")
    resp = client.put(f"{API}/books/{book['id']}", json=_payload(title="Other"), headers={"If-None-Match": "*"})
    assert resp.status_code == 409
    assert client.get(f"{API}/books/{book['id']}").json()["title"] == "Clean Code"


def test_update_then_stale_update(client, make_book):
    book = make_book("Working Effectively with Legacy Code")
    ok = client.put(f"{API}/books/{book['id']}", json=_payload(title="WEWLC"), headers={"If-Match": book["etag"]})
    assert ok.status_code == 200
    assert ok.json()["metadata"]["version"] == 1
    assert ok.headers["ETag"] == compute_etag(book["id"], 1)

    stale = client.put(f"{API}/books/{book['id']}", json=_payload(title="Again"), headers={"If-Match": book["etag"]})
    assert stale.status_code == 412


def test_update_missing_book_is_404(client):
    resp = client.put(
        f"{API}/books/{uuid.uuid4()}", json=_payload(), headers={"If-Match": '"whatever"'}
    )
    assert resp.status_code == 404


def test_patch_keeps_absent_fields(client, make_author, make_book):
    author = make_author("Robert C. Martin")
    book = make_book("Clean Architecture", authors=[author["id"]], genres=["NON_FICTION"], amount=30)
    resp = client.patch(
        f"{API}/books/{book['id']}",
        json={"price": {"amount": 25.5}},
        headers={"If-Match": book["etag"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Clean Architecture"
    assert body["authors"] == [author["id"]]
    assert body["genres"] == ["NON_FICTION"]
    assert body["price"] == {"amount": 25.5, "currency": "EUR"}


def test_empty_book_patch_is_precondition_failure(client, make_book):
    book = make_book("Patterns of Enterprise Application Architecture")
    resp = client.patch(f"{API}/books/{book['id']}", json={"title": " "}, headers={"If-Match": book["etag"]})
    assert resp.status_code == 412
    assert resp.json()["code"] == "PRE_EMPTY_PATCH"


def test_embed_authors_in_author_order(client, make_author, make_book):
    a = make_author("Erich Gamma")
    b = make_author("Richard Helm")
    book = make_book("Design Patterns", authors=[b["id"], a["id"]])
    resp = client.get(f"{API}/books/{book['id']}", params={"embed": "AUTHORS"})
    assert resp.status_code == 200
    embedded = resp.json()["_embedded"]["authors"]
    assert [e["name"] for e in embedded] == ["Richard Helm", "Erich Gamma"]

    listed = client.get(f"{API}/books", params=[("embed", "authors")]).json()
    assert listed["content"][0]["_embedded"]["authors"][0]["id"] == b["id"]


def test_unknown_embed_is_bad_request(client, make_book):
    book = make_book("Domain Modeling Made Functional")
    resp = client.get(f"{API}/books/{book['id']}", params={"embed": "authors,publisher"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_EMBED"


def test_book_get_304(client, make_book):
    book = make_book("Accelerate")
    resp = client.get(f"{API}/books/{book['id']}", headers={"If-None-Match": f'"x", {book["etag"]}'})
    assert resp.status_code == 304


def test_delete_book(client, make_book):
    book = make_book("The Phoenix Project")
    assert client.delete(f"{API}/books/{book['id']}", headers={"If-Match": '"nope"'}).status_code == 412
    assert client.delete(f"{API}/books/{book['id']}", headers={"If-Match": book["etag"]}).status_code == 204
    assert client.get(f"{API}/books/{book['id']}").status_code == 404


def test_author_delete_cascades_through_versioned_book_updates(client, make_author, make_book):
    evans = make_author("Eric Evans")
    vernon = make_author("Vaughn Vernon")
    ddd = make_book("Domain-Driven Design", authors=[evans["id"]])
    both = make_book("DDD Distilled", authors=[vernon["id"], evans["id"]])
    other = make_book("Implementing DDD", authors=[vernon["id"]])

    resp = client.delete(f"{API}/authors/{evans['id']}", headers={"If-Match": evans["etag"]})
    assert resp.status_code == 204

    ddd_after = client.get(f"{API}/books/{ddd['id']}").json()
    both_after = client.get(f"{API}/books/{both['id']}").json()
    other_after = client.get(f"{API}/books/{other['id']}").json()
    assert ddd_after["authors"] == []
    assert ddd_after["metadata"]["version"] == 1
    assert both_after["authors"] == [vernon["id"]]
    assert both_after["metadata"]["version"] == 1
    assert other_after["metadata"]["version"] == 0
