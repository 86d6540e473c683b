"""
Lenient parsing of raw search parameters.

Nothing in here raises for bad input: values that fail coercion are treated
as absent, and out-of-range values are clamped or defaulted.
"""

from __future__ import annotations

import math
from typing import Mapping

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import FilterCriteria, PageRequest, SortMode


def _to_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _to_int(raw: str | None) -> int | None:
    value = _to_float(raw)
    if value is None or not value.is_integer():
        return None
    return int(value)


def _text(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def _tri_state(raw: str | None) -> bool | None:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def _sort_mode(raw: str | None) -> SortMode:
    try:
        return SortMode(raw)
    except ValueError:
        return SortMode.relevance


def parse_criteria(params: Mapping[str, str]) -> FilterCriteria:
    price_min = _to_float(params.get("price_min"))
    price_max = _to_float(params.get("price_max"))
    # Inverted bounds are swapped rather than rejected
    if price_min is not None and price_max is not None and price_min > price_max:
        price_min, price_max = price_max, price_min

    rating_min = _to_float(params.get("rating_min"))
    if rating_min is not None:
        rating_min = min(5.0, max(1.0, rating_min))

    radius = _to_float(params.get("radius"))
    if radius is not None and radius <= 0:
        radius = None

    return FilterCriteria(
        query=_text(params.get("q")),
        service_types=_csv(params.get("service_types")),
        location=_text(params.get("location")),
        radius=radius,
        regions=_csv(params.get("regions")),
        price_min=price_min,
        price_max=price_max,
        rating_min=rating_min,
        response_time=_text(params.get("response_time")),
        has_portfolio=_tri_state(params.get("has_portfolio")),
        sort=_sort_mode(params.get("sort")),
    )


def parse_page(
    params: Mapping[str, str],
    max_limit: int | None = None,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> PageRequest:
    """Parse page/limit; ``max_limit`` defaults to the search cap."""
    cap = max_limit or config.max_limit

    page = _to_int(params.get("page"))
    if page is None or page < 1:
        page = 1

    limit = _to_int(params.get("limit"))
    if limit is None or limit < 1:
        limit = min(config.default_limit, cap)
    limit = min(limit, cap)

    return PageRequest(page=page, limit=limit)


def parse_offset(params: Mapping[str, str]) -> int:
    """Row offset for list endpoints; negative or non-numeric means 0."""
    offset = _to_int(params.get("offset"))
    return offset if offset is not None and offset > 0 else 0


def parse_query(
    params: Mapping[str, str],
    max_limit: int | None = None,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> tuple[FilterCriteria, PageRequest]:
    return parse_criteria(params), parse_page(params, max_limit=max_limit, config=config)
