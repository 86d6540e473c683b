from __future__ import annotations

import time

from fastapi.testclient import TestClient

from discovery.analytics.aggregator import (
    compute_click_through,
    compute_search_analytics,
    compute_trending_terms,
    events_since,
    resolve_report_period,
)
from discovery.analytics.events import get_events, record_event
from discovery.analytics.recorder import (
    SearchAnalytics,
    SearchClick,
    record_click,
    record_filter_usage,
    record_latency,
    record_query,
)
from discovery.app import app
from discovery.store.data_store import RecordStore

client = TestClient(app)


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


def _payload(**overrides) -> SearchAnalytics:
    values = {
        "query": "dj",
        "filters": {"q": "dj", "location": "Auckland"},
        "result_count": 4,
        "latency_ms": 12.5,
        "query_shape": "advanced",
        "strategy": "advanced",
        "user_id": "u-1",
    }
    values.update(overrides)
    return SearchAnalytics(**values)


def _store() -> RecordStore:
    return RecordStore([
        {"id": "c-1", "first_name": "Ana", "last_name": "DJ", "location": "Auckland",
         "service_categories": ["dj"], "services": [{"price_min": 300, "price_max": 900}]},
        {"id": "c-2", "company_name": "Bay Caterers", "location": "Tauranga",
         "service_categories": ["catering"], "services": [{"price_min": 800, "price_max": 4000}]},
    ])


def test_recorder_writes_one_event_per_concern():
    payload = _payload()
    record_query(payload)
    record_filter_usage(payload)
    record_latency(payload)

    assert len(get_events("search_query")) == 1
    assert [e["filter_type"] for e in get_events("search_filter")] == ["q", "location"]
    assert get_events("search_latency")[0]["latency_ms"] == 12.5


def test_filter_usage_without_filters_writes_nothing():
    record_filter_usage(_payload(filters={}))
    assert get_events("search_filter") == []


def test_report_empty_initially():
    report = compute_search_analytics([])
    assert report["total_searches"] == 0
    assert report["avg_latency_ms"] == 0.0
    assert report["top_queries"] == []
    assert report["zero_result_rate"] == 0.0


def test_report_summarises_queries_filters_and_latency():
    for payload in (
        _payload(latency_ms=10.0),
        _payload(query="DJ ", latency_ms=20.0),
        _payload(query=None, filters={}, result_count=0, latency_ms=3.0, query_shape="simple"),
    ):
        record_query(payload)
        record_filter_usage(payload)
        record_latency(payload)

    report = compute_search_analytics(get_events())

    assert report["total_searches"] == 3
    assert report["avg_latency_ms"] == 11.0
    assert report["latency_by_shape"] == {"advanced": 15.0, "simple": 3.0}
    assert report["top_queries"] == [{"query": "dj", "count": 2}]
    assert report["top_filters"][0]["filter"] in ("q", "location")
    assert report["top_filters"][0]["usage_rate"] == 66.7
    assert report["zero_result_queries"] == [{"query": "(no text)", "count": 1}]
    assert report["zero_result_rate"] == 33.3


def test_report_respects_limit():
    for i in range(5):
        record_event("search_query", {"query": f"query {i}", "result_count": 1, "filters": {}})
    report = compute_search_analytics(get_events(), limit=2)
    assert len(report["top_queries"]) == 2


def test_search_analytics_endpoint_tracks_searches(install_store):
    install_store(_store())
    c = TestClient(app)
    c.get("/contractors/search", params={"q": "dj"})
    c.get("/contractors/search", params={"q": "dj", "location": "Auckland"})
    c.get("/contractors/search", params={"q": "harp"})

    _login_admin(c)
    resp = c.get("/admin/analytics/search")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_searches"] == 3
    assert body["top_queries"][0] == {"query": "dj", "count": 2}
    assert body["zero_result_queries"] == [{"query": "harp", "count": 1}]


def test_search_analytics_records_logged_in_user(install_store):
    install_store(_store())
    c = TestClient(app)
    c.post("/auth/login", json={"username": "user", "password": "user123"})
    c.get("/contractors/search", params={"q": "dj"})
    assert get_events("search_query")[0]["user_id"] == "u-demo-user"


# ── Click-through and trending ───────────────────────────────────────────


def _query_event(query, user_id=None, result_count=3, timestamp=None):
    event = {"type": "search_query", "query": query, "user_id": user_id,
             "result_count": result_count, "filters": {}}
    event["timestamp"] = timestamp if timestamp is not None else time.time()
    return event


def test_click_through_rate():
    for i in range(4):
        record_query(_payload(query=f"q{i}"))
    record_click(SearchClick(contractor_id="c-1", query="q0", position=1))
    record_click(SearchClick(contractor_id="c-1", query="q1", position=3))
    record_click(SearchClick(contractor_id="c-2", query="q2"))

    ctr = compute_click_through(get_events())
    assert ctr["total_searches"] == 4
    assert ctr["total_clicks"] == 3
    assert ctr["click_through_rate"] == 75.0
    assert ctr["avg_click_position"] == 2.0
    assert ctr["top_clicked"][0] == {"contractor_id": "c-1", "clicks": 2}


def test_click_through_without_searches():
    ctr = compute_click_through([])
    assert ctr["click_through_rate"] == 0.0
    assert ctr["avg_click_position"] == 0.0


def test_trending_terms_count_users_and_results():
    events = [
        _query_event("DJ", "u-1", result_count=4),
        _query_event("dj ", "u-2", result_count=2),
        _query_event("dj", "u-1", result_count=0),
        _query_event("band", None, result_count=1),
        _query_event("", "u-3"),
    ]
    trending = compute_trending_terms(events, limit=5)
    assert trending[0] == {"query": "dj", "search_count": 3, "unique_users": 2, "avg_results": 2.0}
    assert trending[1]["query"] == "band"
    assert trending[1]["unique_users"] == 0
    assert len(trending) == 2


def test_trending_ties_are_alphabetical():
    events = [_query_event("venue"), _query_event("band")]
    assert [t["query"] for t in compute_trending_terms(events)] == ["band", "venue"]


def test_report_periods():
    assert resolve_report_period("day") == ("day", 1)
    assert resolve_report_period("month") == ("month", 30)
    assert resolve_report_period("decade") == ("week", 7)
    assert resolve_report_period(None) == ("week", 7)


def test_events_since_window():
    now = 1_000_000.0
    events = [_query_event("new", timestamp=now - 3600), _query_event("old", timestamp=now - 3 * 86400)]
    assert [e["query"] for e in events_since(events, 1, now=now)] == ["new"]
    assert len(events_since(events, 7, now=now)) == 2


def test_report_includes_trending_and_click_through():
    record_query(_payload())
    record_click(SearchClick(contractor_id="c-1", query="dj", position=1))
    report = compute_search_analytics(get_events())
    assert report["trending_terms"][0]["query"] == "dj"
    assert report["click_through"]["click_through_rate"] == 100.0


def test_trending_and_clickthrough_endpoints(install_store):
    install_store(_store())
    c = TestClient(app)
    c.get("/contractors/search", params={"q": "dj"})
    c.get("/contractors/search", params={"q": "dj"})
    c.post("/contractors/search/click", json={"contractor_id": "c-1", "query": "dj", "position": 1})

    _login_admin(c)
    trending = c.get("/admin/analytics/search/trending", params={"period": "day", "limit": 5}).json()
    assert trending["period"] == "day"
    assert trending["trending_terms"][0]["search_count"] == 2

    ctr = c.get("/admin/analytics/search/clickthrough").json()
    assert ctr["period"] == "week"
    assert ctr["ctr_metrics"]["click_through_rate"] == 50.0


def test_trending_endpoint_requires_admin():
    c = TestClient(app)
    c.post("/auth/login", json={"username": "contractor", "password": "contractor123"})
    assert c.get("/admin/analytics/search/trending").status_code == 403
    assert c.get("/admin/analytics/search/clickthrough").status_code == 403
