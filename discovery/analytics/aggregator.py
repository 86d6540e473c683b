from __future__ import annotations

import time
from collections import Counter, defaultdict
from typing import Any

from ..search.config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .recorder import CLICK_EVENT, FILTER_EVENT, LATENCY_EVENT, QUERY_EVENT


def _normalise_query(text: str | None) -> str:
    return (text or "").strip().lower()


def resolve_report_period(period: str | None, config: SearchConfig = DEFAULT_SEARCH_CONFIG) -> tuple[str, int]:
    """Map a period name to days; unknown names fall back to the default period."""
    if period in config.report_periods:
        return period, config.report_periods[period]
    return config.default_report_period, config.report_periods[config.default_report_period]


def events_since(events: list[dict[str, Any]], days: int, now: float | None = None) -> list[dict[str, Any]]:
    cutoff = (now if now is not None else time.time()) - days * 86400
    return [e for e in events if e.get("timestamp", 0) >= cutoff]


def compute_trending_terms(events: list[dict[str, Any]], limit: int = 5) -> list[dict[str, Any]]:
    """Most searched non-empty terms with distinct users and mean result count."""
    counts: Counter[str] = Counter()
    users: dict[str, set[str]] = defaultdict(set)
    results: dict[str, list[int]] = defaultdict(list)
    for e in events:
        if e["type"] != QUERY_EVENT:
            continue
        term = _normalise_query(e.get("query"))
        if not term:
            continue
        counts[term] += 1
        results[term].append(e.get("result_count", 0))
        if e.get("user_id"):
            users[term].add(e["user_id"])

    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [
        {
            "query": term,
            "search_count": count,
            "unique_users": len(users[term]),
            "avg_results": round(sum(results[term]) / len(results[term]), 1),
        }
        for term, count in ranked
    ]


def compute_click_through(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = sum(1 for e in events if e["type"] == QUERY_EVENT)
    clicks = [e for e in events if e["type"] == CLICK_EVENT]
    positions = [e["position"] for e in clicks if e.get("position") is not None]
    return {
        "total_searches": searches,
        "total_clicks": len(clicks),
        "click_through_rate": round(len(clicks) / searches * 100, 1) if searches else 0.0,
        "avg_click_position": round(sum(positions) / len(positions), 1) if positions else 0.0,
        "top_clicked": [
            {"contractor_id": cid, "clicks": n}
            for cid, n in Counter(e["contractor_id"] for e in clicks).most_common(5)
        ],
    }


def compute_search_analytics(events: list[dict[str, Any]], limit: int = 10) -> dict[str, Any]:
    queries = [e for e in events if e["type"] == QUERY_EVENT]
    filters = [e for e in events if e["type"] == FILTER_EVENT]
    latencies = [e for e in events if e["type"] == LATENCY_EVENT]
    total = len(queries)

    # Average latency, overall and per query shape
    times = [e["latency_ms"] for e in latencies]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0
    by_shape: dict[str, list[float]] = defaultdict(list)
    for e in latencies:
        by_shape[e.get("query_shape", "unknown")].append(e["latency_ms"])
    shape_latency = {
        shape: round(sum(values) / len(values), 1) for shape, values in by_shape.items()
    }

    # Top queries (free text only)
    query_counter: Counter[str] = Counter()
    for q in queries:
        text = _normalise_query(q.get("query"))
        if text:
            query_counter[text] += 1
    top_queries = [{"query": n, "count": c} for n, c in query_counter.most_common(limit)]

    # Filter usage by dimension, with the most common value per dimension
    filter_counter: Counter[str] = Counter()
    value_counters: dict[str, Counter[str]] = defaultdict(Counter)
    for f in filters:
        filter_counter[f["filter_type"]] += 1
        value_counters[f["filter_type"]][f["filter_value"]] += 1
    top_filters = [
        {
            "filter": name,
            "count": count,
            "usage_rate": round(count / total * 100, 1) if total else 0.0,
            "top_value": value_counters[name].most_common(1)[0][0],
        }
        for name, count in filter_counter.most_common(limit)
    ]

    # Queries that found nothing
    zero_counter: Counter[str] = Counter()
    for q in queries:
        if q.get("result_count", 0) == 0:
            zero_counter[_normalise_query(q.get("query")) or "(no text)"] += 1
    zero_results = [{"query": n, "count": c} for n, c in zero_counter.most_common(limit)]

    return {
        "total_searches": total,
        "avg_latency_ms": avg_time,
        "latency_by_shape": shape_latency,
        "top_queries": top_queries,
        "top_filters": top_filters,
        "zero_result_queries": zero_results,
        "zero_result_rate": round(sum(zero_counter.values()) / total * 100, 1) if total else 0.0,
        "trending_terms": compute_trending_terms(events, limit),
        "click_through": compute_click_through(events),
    }
