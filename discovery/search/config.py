from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SearchConfig:
    default_limit: int = 12
    max_limit: int = int(os.getenv("SEARCH_MAX_LIMIT", "50"))
    report_max_limit: int = int(os.getenv("REPORT_MAX_LIMIT", "100"))
    suggestion_min_chars: int = 2
    suggestion_limit: int = 8
    # Oldest history entries beyond this are dropped per user
    history_max_entries: int = int(os.getenv("SEARCH_HISTORY_MAX", "100"))
    default_report_period: str = "week"
    report_periods: dict[str, int] = field(
        default_factory=lambda: {"day": 1, "week": 7, "month": 30}
    )
    trending_limit: int = 5
    # (label, min, max); max of None is open-ended
    price_ranges: tuple[tuple[str, float, float | None], ...] = (
        ("Under $500", 0, 500),
        ("$500 - $1,000", 500, 1000),
        ("$1,000 - $2,500", 1000, 2500),
        ("$2,500 - $5,000", 2500, 5000),
        ("$5,000+", 5000, None),
    )
    rating_ranges: tuple[tuple[str, float, float], ...] = (
        ("4.5+ Stars", 4.5, 5),
        ("4+ Stars", 4, 5),
        ("3+ Stars", 3, 5),
    )
    # Per-field weights for free-text relevance in the local ranked search
    text_weights: dict[str, float] = field(
        default_factory=lambda: {
            "name_lower": 3.0,
            "company_lower": 3.0,
            "categories_lower": 2.0,
            "description_lower": 1.0,
        }
    )


DEFAULT_SEARCH_CONFIG = SearchConfig()
