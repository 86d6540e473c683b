from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Mapping

from ..analytics.recorder import SearchAnalytics
from ..store.data_store import RecordStore
from .assembler import assemble
from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .filters import is_advanced
from .models import FilterCriteria, SearchResultPage
from .pagination import paginate, total_pages
from .query_parser import parse_query
from .ranking import RankedSearchBackend, select_strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchOutcome:
    result: SearchResultPage
    analytics: SearchAnalytics


def _echo(criteria: FilterCriteria) -> dict:
    echoed = criteria.populated_filters()
    echoed["sort"] = criteria.sort.value
    return echoed


def search_contractors(
    params: Mapping[str, str],
    store: RecordStore,
    backend: RankedSearchBackend | None = None,
    user_id: str | None = None,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> SearchOutcome:
    start_time = time.time()

    criteria, page = parse_query(params, max_limit=config.max_limit, config=config)

    # --- Rank (strategy chosen only by the simple/advanced decision) ---
    strategy = select_strategy(criteria, store, backend)
    ranked = strategy.rank(criteria)

    # --- Page, then fetch details for just that page ---
    page_ids = paginate(ranked.ids, page)
    details = store.get_contractors(page_ids)
    contractors = assemble(page_ids, details)

    result = SearchResultPage(
        contractors=contractors,
        total=ranked.total,
        page=page.page,
        limit=page.limit,
        total_pages=total_pages(ranked.total, page.limit),
        search_query=_echo(criteria),
    )

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.debug(
        "search strategy=%s total=%d page=%d elapsed_ms=%.1f",
        strategy.name, ranked.total, page.page, elapsed_ms,
    )

    analytics = SearchAnalytics(
        query=criteria.query,
        filters=criteria.populated_filters(),
        result_count=ranked.total,
        latency_ms=elapsed_ms,
        query_shape="advanced" if is_advanced(criteria) else "simple",
        strategy=strategy.name,
        user_id=user_id,
        sort=criteria.sort.value,
    )
    return SearchOutcome(result=result, analytics=analytics)
