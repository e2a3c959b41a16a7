"""HTTP surface tests running the full app against mocked upstreams."""

from __future__ import annotations

from typing import Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app

HERCULES_BARCODE = "3459370470833"


class Upstreams:
    """Answers barcode lookups and TMDB calls, counting every request."""

    def __init__(self) -> None:
        self.products: dict[str, list[dict[str, object]]] = {
            HERCULES_BARCODE: [{"title": "Hercules (1997) DVD", "brand": "Disney"}],
            "2222": [{"title": "Up DVD"}],
        }
        self.upc_status = 200
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "upc.example.com":
            return self._lookup(request)
        return self._tmdb(request)

    def count(self, host: str) -> int:
        return sum(1 for request in self.requests if request.url.host == host)

    def _lookup(self, request: httpx.Request) -> httpx.Response:
        if self.upc_status != 200:
            return httpx.Response(self.upc_status, json={"message": "Rate limited"})
        items = self.products.get(request.url.params["upc"], [])
        return httpx.Response(200, json={"code": "OK", "total": len(items), "items": items})

    def _tmdb(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/3/search/movie":
            query = request.url.params["query"]
            results = []
            if query == "hercules":
                results = [
                    {"id": 11970, "title": "Hercules", "release_date": "1997-06-13", "poster_path": "/h.jpg"},
                    {"id": 60304, "title": "Hercules", "release_date": "2014-07-23", "poster_path": None},
                ]
            return httpx.Response(200, json={"page": 1, "results": results})
        if path == "/3/movie/11970":
            return httpx.Response(
                200,
                json={
                    "id": 11970,
                    "title": "Hercules",
                    "poster_path": "/h.jpg",
                    "release_date": "1997-06-13",
                    "production_companies": [{"name": "Walt Disney Pictures"}],
                },
            )
        if path == "/3/movie/11970/credits":
            return httpx.Response(
                200, json={"id": 11970, "crew": [{"job": "Director", "name": "Ron Clements"}]}
            )
        return httpx.Response(404, json={"status_code": 34, "status_message": "Not found."})


@pytest.fixture
def upstreams() -> Upstreams:
    return Upstreams()


@pytest.fixture
def client(
    make_settings: Callable[..., Settings], upstreams: Upstreams
) -> Iterator[TestClient]:
    app = create_app(make_settings(), transport=httpx.MockTransport(upstreams))
    with TestClient(app) as test_client:
        yield test_client


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_scan_then_confirm(client: TestClient, upstreams: Upstreams) -> None:
    scan = client.post("/catalog/scan", json={"barcode": HERCULES_BARCODE})

    assert scan.status_code == 200
    candidates = scan.json()
    assert candidates[0] == {
        "tmdbId": 11970,
        "title": "Hercules",
        "releaseYear": 1997,
        "imageUrl": "https://image.tmdb.org/t/p/w200/h.jpg",
    }
    assert candidates[1]["imageUrl"] is None

    confirm = client.post(
        "/catalog/confirm", json={"tmdbId": 11970, "barcode": HERCULES_BARCODE}
    )

    assert confirm.status_code == 201
    entry = confirm.json()
    assert entry["barcode"] == HERCULES_BARCODE
    assert entry["director"] == "Ron Clements"
    assert entry["brand"] == "Walt Disney Pictures"
    assert entry["imageUrl"] == "https://image.tmdb.org/t/p/w500/h.jpg"
    assert entry["releaseYear"] == 1997
    assert entry["comments"] == ""

    tmdb_calls = upstreams.count("tmdb.example.com")
    rescan = client.post("/catalog/scan", json={"barcode": HERCULES_BARCODE})
    assert rescan.status_code == 409
    assert "message" in rescan.json()
    assert upstreams.count("tmdb.example.com") == tmdb_calls

    reconfirm = client.post(
        "/catalog/confirm", json={"tmdbId": 11970, "barcode": HERCULES_BARCODE}
    )
    assert reconfirm.status_code == 409


@pytest.mark.parametrize(
    ("barcode", "status"),
    [
        ("0000", 404),
        ("2222", 404),
        ("", 400),
    ],
)
def test_scan_failures(client: TestClient, barcode: str, status: int) -> None:
    response = client.post("/catalog/scan", json={"barcode": barcode})

    assert response.status_code == status
    assert response.json()["message"]


def test_scan_reports_upstream_failure(client: TestClient, upstreams: Upstreams) -> None:
    upstreams.upc_status = 429

    response = client.post("/catalog/scan", json={"barcode": "999"})

    assert response.status_code == 429
    assert response.json() == {"message": "External API Error", "detail": "Rate limited"}


def test_confirm_requires_both_fields(client: TestClient) -> None:
    response = client.post("/catalog/confirm", json={"barcode": "123"})

    assert response.status_code == 400


def test_manual_entry_crud(client: TestClient) -> None:
    created = client.post("/catalog", json={"barcode": "X", "title": "Y"})

    assert created.status_code == 201
    entry = created.json()
    assert entry["comments"] == ""
    assert entry["imageUrl"] == "https://placehold.co/300x400?text=Manual+Entry"
    assert entry["id"]

    assert client.get("/catalog/barcode/X").json()["id"] == entry["id"]
    assert client.get(f"/catalog/{entry['id']}").json() == entry
    assert [item["id"] for item in client.get("/catalog").json()] == [entry["id"]]
    assert client.get("/catalog/search", params={"title": "Y"}).json()["id"] == entry["id"]

    patched = client.patch(f"/catalog/{entry['id']}", json={"comments": "Shelf B"})
    assert patched.status_code == 200
    assert patched.json()["comments"] == "Shelf B"
    assert patched.json()["title"] == "Y"

    deleted = client.delete(f"/catalog/{entry['id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Entry deleted successfully"}
    assert client.get(f"/catalog/{entry['id']}").status_code == 404
    assert client.delete(f"/catalog/{entry['id']}").status_code == 404


def test_manual_entry_errors(client: TestClient) -> None:
    assert client.post("/catalog", json={"title": "Heat"}).status_code == 400
    assert client.post("/catalog", json={"barcode": "1", "title": "Heat"}).status_code == 201
    duplicate = client.post("/catalog", json={"barcode": "1", "title": "Ronin"})
    assert duplicate.status_code == 409


def test_invalid_body_returns_bad_request(client: TestClient) -> None:
    response = client.post("/catalog", json={"barcode": "1", "title": "Heat", "releaseYear": "soon"})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request body."
    assert body["errors"]


def test_search_mode_query_parameter(client: TestClient) -> None:
    client.post("/catalog", json={"barcode": "1", "title": "The Matrix"})

    assert client.get("/catalog/search", params={"title": "matrix"}).status_code == 404
    contains = client.get("/catalog/search", params={"title": "matrix", "mode": "contains"})
    assert contains.status_code == 200
    assert contains.json()["barcode"] == "1"
