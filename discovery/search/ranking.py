from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

import pandas as pd

from ..store.data_store import RecordStore
from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .filters import apply_filters, is_advanced
from .models import FilterCriteria, RankedResult, SortMode

# (column, ascending) per sort mode; input position is always the final key
SORT_KEYS: dict[SortMode, list[tuple[str, bool]]] = {
    SortMode.relevance: [("tier_rank", False), ("average_rating", False)],
    SortMode.rating: [("average_rating", False), ("review_count", False)],
    SortMode.price_low: [("min_price", True)],
    SortMode.price_high: [("max_price", False)],
    SortMode.newest: [("created_at_ts", False)],
    SortMode.oldest: [("created_at_ts", True)],
}


def sort_frame(
    df: pd.DataFrame,
    sort: SortMode,
    leading: list[tuple[str, bool]] | None = None,
) -> pd.DataFrame:
    """Deterministic multi-key sort; rows missing a key value go last."""
    keys = (leading or []) + SORT_KEYS[sort] + [("position", True)]
    return df.sort_values(
        by=[column for column, _ in keys],
        ascending=[asc for _, asc in keys],
        na_position="last",
        kind="stable",
    )


def _text_scores(df: pd.DataFrame, query: str, weights: dict[str, float]) -> pd.Series:
    """Weighted count of the fields in which ``query`` appears."""
    q = query.lower()
    score = pd.Series(0.0, index=df.index)
    for column, weight in weights.items():
        if column == "categories_lower":
            hits = df[column].apply(lambda cl: any(q in c for c in cl)).astype(bool)
        else:
            hits = df[column].str.contains(q, regex=False, na=False)
        score = score + hits.astype(float) * weight
    return score


class RankedSearchBackend(Protocol):
    """Capability-rich ranked lookup: criteria in, ordered ids and total out."""

    def search(self, criteria: FilterCriteria) -> RankedResult: ...


class LocalRankedSearch:
    """Ranked lookup over the in-memory store.

    Free-text relevance leads the ordering for ``sort=relevance``; every
    other sort mode uses the shared key table so both strategies agree.
    """

    def __init__(self, store: RecordStore, config: SearchConfig = DEFAULT_SEARCH_CONFIG) -> None:
        self._store = store
        self._config = config

    def search(self, criteria: FilterCriteria) -> RankedResult:
        candidates = apply_filters(self._store.contractors(), criteria)
        if candidates.empty:
            return RankedResult(ids=[], total=0)

        leading = None
        if criteria.query and criteria.sort == SortMode.relevance:
            candidates = candidates.assign(
                _relevance=_text_scores(candidates, criteria.query, self._config.text_weights)
            )
            leading = [("_relevance", False)]

        ordered = sort_frame(candidates, criteria.sort, leading=leading)
        ids = ordered["id"].tolist()
        return RankedResult(ids=ids, total=len(ids))


class RankingStrategy(ABC):
    name: str

    @abstractmethod
    def rank(self, criteria: FilterCriteria) -> RankedResult:
        """Return every matching contractor id in final order."""


class AdvancedRanking(RankingStrategy):
    name = "advanced"

    def __init__(self, backend: RankedSearchBackend) -> None:
        self._backend = backend

    def rank(self, criteria: FilterCriteria) -> RankedResult:
        return self._backend.search(criteria)


class BasicRanking(RankingStrategy):
    name = "basic"

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def rank(self, criteria: FilterCriteria) -> RankedResult:
        # Only portfolio presence can be active for a simple query
        candidates = apply_filters(self._store.contractors(), criteria)
        ordered = sort_frame(candidates, criteria.sort)
        ids = ordered["id"].tolist()
        return RankedResult(ids=ids, total=len(ids))


def select_strategy(
    criteria: FilterCriteria,
    store: RecordStore,
    backend: RankedSearchBackend | None = None,
) -> RankingStrategy:
    if is_advanced(criteria):
        return AdvancedRanking(backend or LocalRankedSearch(store))
    return BasicRanking(store)
