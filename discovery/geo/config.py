from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

_REGIONS_JSON = Path(__file__).resolve().parent.parent / "data" / "regions.json"


@dataclass(frozen=True)
class GeoConfig:
    default_period: str = "30d"
    periods: dict[str, int] = field(default_factory=lambda: {"7d": 7, "30d": 30, "90d": 90})
    heatmap_top_n: int = 10
    # Heatmap normalisation heuristic: value at which a category reads 100
    heatmap_divisors: dict[str, float] = field(
        default_factory=lambda: {
            "users": 100.0,
            "contractors": 50.0,
            "events": 20.0,
            "revenue": 10000.0,
        }
    )
    regions_path: Path = _REGIONS_JSON
    fetch_workers: int = 3


DEFAULT_GEO_CONFIG = GeoConfig()


@lru_cache(maxsize=None)
def load_regions(path: Path = _REGIONS_JSON) -> dict[str, tuple[str, ...]]:
    """Region name -> allowlisted country names, in file order."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    return {name: tuple(countries) for name, countries in raw.items()}
