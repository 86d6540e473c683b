from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from discovery.app import app
from discovery.search import history
from discovery.search.config import SearchConfig
from discovery.store.data_store import RecordStore


def _login(c, username="user", password="user123"):
    c.post("/auth/login", json={"username": username, "password": password})


def _store() -> RecordStore:
    return RecordStore([
        {"id": "c-1", "company_name": "Harbour Lights", "subscription_tier": "showcase"},
        {"id": "c-2", "company_name": "Bay Caterers"},
    ])


@pytest.fixture
def user_client():
    c = TestClient(app)
    _login(c)
    return c


# ── Library functions ────────────────────────────────────────────────────


def test_history_is_newest_first_and_capped():
    config = SearchConfig(history_max_entries=3)
    for term in ("dj", "band", "florist", "venue"):
        history.add_history("u-1", term, config=config)
    entries, total = history.list_history("u-1", limit=10)
    assert total == 3
    assert [e["search_query"] for e in entries] == ["venue", "florist", "band"]


def test_history_pages_with_offset():
    for term in ("a", "b", "c"):
        history.add_history("u-1", term)
    entries, total = history.list_history("u-1", limit=1, offset=1)
    assert total == 3
    assert [e["search_query"] for e in entries] == ["b"]


def test_libraries_are_per_user():
    history.add_history("u-1", "dj")
    history.save_search("u-1", "DJs", "dj")
    history.add_favorite("u-1", "c-1")
    assert history.list_history("u-2", limit=10) == ([], 0)
    assert history.list_saved("u-2") == []
    assert history.list_favorites("u-2") == []


def test_saved_search_can_only_be_deleted_by_owner():
    entry = history.save_search("u-1", "DJs", "dj")
    assert history.delete_saved("u-2", entry["id"]) is False
    assert history.delete_saved("u-1", entry["id"]) is True
    assert history.list_saved("u-1") == []


def test_favoriting_twice_keeps_one_entry():
    first = history.add_favorite("u-1", "c-1")
    second = history.add_favorite("u-1", "c-1")
    assert first == second
    assert len(history.list_favorites("u-1")) == 1


# ── Login required ───────────────────────────────────────────────────────


@pytest.mark.parametrize("method, path", [
    ("get", "/search/history"),
    ("post", "/search/history"),
    ("delete", "/search/history"),
    ("get", "/search/saved"),
    ("post", "/search/saved"),
    ("delete", "/search/saved?id=x"),
    ("get", "/search/favorites"),
    ("post", "/search/favorites"),
    ("delete", "/search/favorites?contractor_id=c-1"),
])
def test_library_endpoints_require_login(method, path):
    c = TestClient(app)
    kwargs = {"json": {}} if method == "post" else {}
    resp = getattr(c, method)(path, **kwargs)
    assert resp.status_code == 401


# ── History endpoints ────────────────────────────────────────────────────


def test_save_and_list_history(user_client):
    resp = user_client.post("/search/history", json={
        "search_query": "photography",
        "filters": {"service_types": "photography"},
        "result_count": 5,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["search_entry"]["search_query"] == "photography"

    listing = user_client.get("/search/history", params={"limit": 10, "offset": 0}).json()
    assert listing["total"] == 1
    assert listing["searches"][0]["result_count"] == 5


def test_history_requires_query(user_client):
    resp = user_client.post("/search/history", json={"filters": {}, "result_count": 5})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Search query is required"


def test_history_bad_paging_params_default(user_client):
    user_client.post("/search/history", json={"search_query": "dj"})
    body = user_client.get("/search/history", params={"limit": "lots", "offset": "-3"}).json()
    assert (body["limit"], body["offset"]) == (12, 0)
    assert body["total"] == 1


def test_clear_history(user_client):
    user_client.post("/search/history", json={"search_query": "dj"})
    assert user_client.delete("/search/history").json()["removed"] == 1
    assert user_client.get("/search/history").json()["total"] == 0


# ── Saved searches ───────────────────────────────────────────────────────


def test_saved_search_lifecycle(user_client):
    resp = user_client.post("/search/saved", json={
        "name": "Photography Search",
        "search_query": "photography",
        "filters": {"service_types": "photography"},
    })
    assert resp.status_code == 200
    saved = resp.json()["saved_search"]

    listing = user_client.get("/search/saved").json()["saved_searches"]
    assert [s["name"] for s in listing] == ["Photography Search"]

    resp = user_client.delete("/search/saved", params={"id": saved["id"]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert user_client.get("/search/saved").json()["saved_searches"] == []


def test_saved_search_requires_name_and_query(user_client):
    resp = user_client.post("/search/saved", json={"name": "Photography Search"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Name and search query are required"


def test_delete_saved_search_requires_id(user_client):
    resp = user_client.delete("/search/saved")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Search ID is required"


def test_delete_unknown_saved_search(user_client):
    assert user_client.delete("/search/saved", params={"id": "nope"}).status_code == 404


# ── Favorites ────────────────────────────────────────────────────────────


def test_favorites_lifecycle(install_store, user_client):
    install_store(_store())
    resp = user_client.post("/search/favorites", json={"contractor_id": "c-1"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["favorite"]["contractor_id"] == "c-1"

    favorites = user_client.get("/search/favorites").json()["favorites"]
    assert len(favorites) == 1
    assert favorites[0]["contractor"]["companyName"] == "Harbour Lights"
    assert favorites[0]["contractor"]["isPremium"] is True

    resp = user_client.delete("/search/favorites", params={"contractor_id": "c-1"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert user_client.get("/search/favorites").json()["favorites"] == []


def test_favorite_requires_contractor_id(install_store, user_client):
    install_store(_store())
    resp = user_client.post("/search/favorites", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Contractor ID is required"
    assert user_client.delete("/search/favorites").status_code == 400


def test_favorite_unknown_contractor(install_store, user_client):
    install_store(_store())
    assert user_client.post("/search/favorites", json={"contractor_id": "c-404"}).status_code == 404


def test_favorite_whose_contractor_left_has_no_details(install_store, user_client):
    install_store(_store())
    user_client.post("/search/favorites", json={"contractor_id": "c-2"})
    install_store(RecordStore([]))
    favorites = user_client.get("/search/favorites").json()["favorites"]
    assert favorites[0]["contractor_id"] == "c-2"
    assert favorites[0]["contractor"] is None
