from __future__ import annotations

from functools import partial
from typing import Any, Callable

import pandas as pd

from .models import FilterCriteria

Predicate = Callable[[pd.DataFrame], pd.Series]


def _overlaps_text(value: str, needle: str) -> bool:
    """Substring match in either direction, e.g. "auckland" ~ "auckland, nz"."""
    if not value:
        return False
    return needle in value or value in needle


def _item_overlaps(item: dict[str, Any], low: float | None, high: float | None) -> bool:
    item_low = item.get("price_min")
    item_high = item.get("price_max")
    if item_low is None and item_high is None:
        return False
    if item_low is None:
        item_low = item_high
    if item_high is None:
        item_high = item_low
    if high is not None and float(item_low) > high:
        return False
    if low is not None and float(item_high) < low:
        return False
    return True


def _text_predicate(query: str, df: pd.DataFrame) -> pd.Series:
    q = query.lower()
    mask = (
        df["name_lower"].str.contains(q, regex=False, na=False)
        | df["company_lower"].str.contains(q, regex=False, na=False)
        | df["description_lower"].str.contains(q, regex=False, na=False)
    )
    categories = df["categories_lower"].apply(lambda cl: any(q in c for c in cl))
    return mask | categories.astype(bool)


def _service_type_predicate(service_types: list[str], df: pd.DataFrame) -> pd.Series:
    wanted = {s.strip().lower() for s in service_types}
    return df["categories_lower"].apply(lambda cl: bool(wanted & set(cl))).astype(bool)


def _location_predicate(location: str, df: pd.DataFrame) -> pd.Series:
    loc = location.strip().lower()
    primary = df["location_lower"].apply(lambda v: _overlaps_text(v, loc))
    address = df["address_lower"].apply(lambda v: _overlaps_text(v, loc))
    areas = df["areas_lower"].apply(lambda al: any(_overlaps_text(a, loc) for a in al))
    return (primary.astype(bool) | address.astype(bool) | areas.astype(bool))


def _region_predicate(regions: list[str], df: pd.DataFrame) -> pd.Series:
    wanted = [r.strip().lower() for r in regions]
    areas = df["areas_lower"].apply(lambda al: any(r in al for r in wanted))
    primary = df["location_lower"].apply(lambda v: any(r in v for r in wanted))
    return areas.astype(bool) | primary.astype(bool)


def _price_predicate(low: float | None, high: float | None, df: pd.DataFrame) -> pd.Series:
    return df["services"].apply(
        lambda items: any(_item_overlaps(item, low, high) for item in items)
    ).astype(bool)


def _rating_predicate(rating_min: float, df: pd.DataFrame) -> pd.Series:
    return df["average_rating"].astype(float) >= rating_min


def _portfolio_predicate(has_portfolio: bool, df: pd.DataFrame) -> pd.Series:
    return (df["portfolio_count"].astype(int) > 0) == has_portfolio


def is_advanced(criteria: FilterCriteria) -> bool:
    """True when any discriminating filter is present.

    Portfolio presence, response time and radius alone keep a query simple.
    """
    return bool(
        criteria.query
        or criteria.service_types
        or criteria.location
        or criteria.regions
        or criteria.price_min is not None
        or criteria.price_max is not None
        or criteria.rating_min is not None
    )


def compose(criteria: FilterCriteria) -> dict[str, Predicate]:
    """Return one predicate per populated filter dimension, keyed by dimension."""
    predicates: dict[str, Predicate] = {}
    if criteria.query:
        predicates["q"] = partial(_text_predicate, criteria.query)
    if criteria.service_types:
        predicates["service_types"] = partial(_service_type_predicate, criteria.service_types)
    if criteria.location:
        predicates["location"] = partial(_location_predicate, criteria.location)
    if criteria.regions:
        predicates["regions"] = partial(_region_predicate, criteria.regions)
    if criteria.price_min is not None or criteria.price_max is not None:
        predicates["price"] = partial(_price_predicate, criteria.price_min, criteria.price_max)
    if criteria.rating_min is not None:
        predicates["rating_min"] = partial(_rating_predicate, criteria.rating_min)
    if criteria.has_portfolio is not None:
        predicates["has_portfolio"] = partial(_portfolio_predicate, criteria.has_portfolio)
    return predicates


def build_mask(df: pd.DataFrame, criteria: FilterCriteria) -> pd.Series:
    """Conjunction of every populated dimension; all-True when none are set."""
    mask = pd.Series(True, index=df.index)
    if df.empty:
        return mask
    for predicate in compose(criteria).values():
        mask = mask & predicate(df)
    return mask


def apply_filters(df: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
    """Rows matching the composite predicate, in input order."""
    return df.loc[build_mask(df, criteria)]
