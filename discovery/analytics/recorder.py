"""
Fire-and-forget search analytics.

Each search produces three independent writes: the query itself, one event
per populated filter dimension, and a latency sample. The HTTP layer
schedules them as background tasks; a failing write is logged and dropped
so it can never change the outcome of the search request. Result clicks
reported by the client go through the same path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .events import record_event

logger = logging.getLogger(__name__)

QUERY_EVENT = "search_query"
FILTER_EVENT = "search_filter"
LATENCY_EVENT = "search_latency"
CLICK_EVENT = "search_click"


@dataclass(frozen=True)
class SearchAnalytics:
    query: str | None
    filters: dict[str, Any]
    result_count: int
    latency_ms: float
    query_shape: str
    strategy: str
    user_id: str | None = None
    sort: str = "relevance"


def record_query(payload: SearchAnalytics) -> None:
    try:
        record_event(QUERY_EVENT, {
            "user_id": payload.user_id,
            "query": payload.query or "",
            "filters": payload.filters,
            "sort": payload.sort,
            "result_count": payload.result_count,
        })
    except Exception:
        logger.warning("Failed to record search query", exc_info=True)


def record_filter_usage(payload: SearchAnalytics) -> None:
    for filter_type, filter_value in payload.filters.items():
        try:
            record_event(FILTER_EVENT, {
                "user_id": payload.user_id,
                "filter_type": filter_type,
                "filter_value": str(filter_value),
            })
        except Exception:
            logger.warning("Failed to record filter usage for %s", filter_type, exc_info=True)


def record_latency(payload: SearchAnalytics) -> None:
    try:
        record_event(LATENCY_EVENT, {
            "latency_ms": payload.latency_ms,
            "query_shape": payload.query_shape,
            "strategy": payload.strategy,
            "result_count": payload.result_count,
        })
    except Exception:
        logger.warning("Failed to record search latency", exc_info=True)


@dataclass(frozen=True)
class SearchClick:
    contractor_id: str
    query: str | None = None
    position: int | None = None
    user_id: str | None = None


def record_click(click: SearchClick) -> None:
    try:
        record_event(CLICK_EVENT, {
            "user_id": click.user_id,
            "contractor_id": click.contractor_id,
            "query": click.query or "",
            "position": click.position,
        })
    except Exception:
        logger.warning("Failed to record search click on %s", click.contractor_id, exc_info=True)


WRITERS = (record_query, record_filter_usage, record_latency)
