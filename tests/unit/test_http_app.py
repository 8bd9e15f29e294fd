from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from sitetree.http_app import app
from sitetree.lifespan import app_state, build_links_tree_service


@pytest.fixture()
def client():
    app_state["links_tree_service"] = build_links_tree_service()
    try:
        yield TestClient(app)
    finally:
        app_state.clear()


def test_healthz(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_post_then_get_tree(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/links/tree",
        json={
            "url": "https://example.com",
            "links": ["https://example.com/a", "https://example.com/a/b", "https://example.com/c"],
            "skippedUrls": {"https://example.com/logo.png": "Media URL (image)"},
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    tree = body["tree"]
    assert tree["totalUrls"] == 4
    assert [c["name"] for c in tree["children"]] == ["a", "c"]
    assert tree["skippedUrls"] == {
        "media": {"images": [{"url": "https://example.com/logo.png", "reason": "Media URL (image)"}]}
    }

    resp = client.get("/api/v1/links/tree", params={"rootUrl": "https://example.com"})
    assert resp.status_code == 200
    assert resp.json()["totalUrls"] == 4


def test_get_unknown_tree_is_404(client: TestClient) -> None:
    resp = client.get("/api/v1/links/tree", params={"rootUrl": "https://unknown.example.org"})
    assert resp.status_code == 404


def test_invalid_urls_are_rejected(client: TestClient) -> None:
    assert client.get("/api/v1/links/tree", params={"rootUrl": "not-a-url"}).status_code == 400
    assert client.post("/api/v1/links/tree", json={"url": "https://"}).status_code == 400
    assert client.post("/api/v1/links/tree", json={"url": "ftp://example.com"}).status_code == 422


def test_service_unavailable_without_lifespan() -> None:
    app_state.clear()
    resp = TestClient(app).post("/api/v1/links/tree", json={"url": "https://example.com"})
    assert resp.status_code == 503
