from __future__ import annotations

import pandas as pd

from ..store.data_store import RecordStore
from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import FilterOptions, RangeOption


def _distinct(values) -> list[str]:
    """Case-insensitive distinct values, keeping the first spelling seen, sorted."""
    seen: dict[str, str] = {}
    for value in values:
        text = str(value).strip()
        if text and text.lower() not in seen:
            seen[text.lower()] = text
    return sorted(seen.values(), key=str.lower)


def filter_options(store: RecordStore, config: SearchConfig = DEFAULT_SEARCH_CONFIG) -> FilterOptions:
    df = store.contractors()

    service_types = _distinct(t for types in df["service_categories"] for t in types)
    regions = _distinct(a for areas in df["service_areas"] for a in areas)

    min_price = df["min_price"].min() if not df.empty else None
    max_price = df["max_price"].max() if not df.empty else None

    return FilterOptions(
        service_types=service_types,
        regions=regions,
        price_ranges=[RangeOption(label=label, min=lo, max=hi) for label, lo, hi in config.price_ranges],
        rating_ranges=[RangeOption(label=label, min=lo, max=hi) for label, lo, hi in config.rating_ranges],
        min_price=float(min_price) if min_price is not None and pd.notna(min_price) else None,
        max_price=float(max_price) if max_price is not None and pd.notna(max_price) else None,
    )


def suggestions(store: RecordStore, query: str | None, config: SearchConfig = DEFAULT_SEARCH_CONFIG) -> list[str]:
    """Names, companies and service types containing ``query``; short queries get nothing."""
    q = (query or "").strip().lower()
    if len(q) < config.suggestion_min_chars:
        return []

    df = store.contractors()
    candidates: list[str] = []
    for column in ("display_name", "company_name"):
        candidates.extend(v for v in df[column] if isinstance(v, str))
    candidates.extend(t for types in df["service_categories"] for t in types)

    matches = [c for c in _distinct(candidates) if q in c.lower()]
    # Prefix matches first, then the rest, each alphabetical
    matches.sort(key=lambda c: (not c.lower().startswith(q), c.lower()))
    return matches[:config.suggestion_limit]
