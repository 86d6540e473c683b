"""
Geographic analytics over user, event and job records.

Records are grouped under a location key derived with a fixed precedence
(``location`` -> ``city`` -> ``country`` -> ``"Unknown"``). Counters live in a
dictionary local to one call and are discarded with the response.

Growth figures and trend directions have no defined computation yet; they
are returned as ``0.0`` / ``"stable"`` and listed under ``stubs``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any

from ..store.data_store import RecordStore
from .config import DEFAULT_GEO_CONFIG, GeoConfig, load_regions

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown"
CONTRACTOR_ROLE = "contractor"
HEATMAP_CATEGORIES = ("users", "contractors", "events", "revenue")
STUB_FIELDS = [
    "locations[].growth",
    "regions[].averageGrowth",
    "summary.globalGrowth",
    "trends",
]

Record = dict[str, Any]


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def location_key(record: Record) -> str:
    for field in ("location", "city", "country"):
        value = _text(record.get(field))
        if value:
            return value
    return UNKNOWN_LOCATION


def _budget(record: Record) -> float:
    try:
        return float(record.get("budget") or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _is_contractor(user: Record) -> bool:
    return (_text(user.get("role")) or "").lower() == CONTRACTOR_ROLE


def resolve_period(period: str | None, config: GeoConfig = DEFAULT_GEO_CONFIG) -> tuple[str, int]:
    """Unknown periods fall back to the default window."""
    if period in config.periods:
        return period, config.periods[period]
    return config.default_period, config.periods[config.default_period]


def fetch_streams(
    store: RecordStore,
    since: datetime,
    config: GeoConfig = DEFAULT_GEO_CONFIG,
) -> dict[str, list[Record]]:
    """Fetch the three streams concurrently; any failure propagates."""
    with ThreadPoolExecutor(max_workers=config.fetch_workers) as pool:
        futures = {
            "users": pool.submit(store.fetch_users, since),
            "events": pool.submit(store.fetch_events, since),
            "jobs": pool.submit(store.fetch_jobs, since),
        }
        return {name: future.result() for name, future in futures.items()}


def aggregate_locations(
    users: list[Record],
    events: list[Record],
    jobs: list[Record],
) -> list[dict[str, Any]]:
    """Per-location counters, ordered by activity (ties keep first-seen order)."""
    acc: dict[str, dict[str, Any]] = {}

    def counters(record: Record) -> dict[str, Any]:
        return acc.setdefault(location_key(record), {
            "users": 0,
            "contractors": 0,
            "events": 0,
            "jobs": 0,
            "revenue": 0.0,
            "sources": set(),
        })

    for user in users:
        c = counters(user)
        if _is_contractor(user):
            c["contractors"] += 1
        else:
            c["users"] += 1
        c["sources"].add("users")

    for event in events:
        c = counters(event)
        c["events"] += 1
        c["revenue"] += _budget(event)
        c["sources"].add("events")

    for job in jobs:
        c = counters(job)
        c["jobs"] += 1
        c["revenue"] += _budget(job)
        c["sources"].add("jobs")

    locations = []
    for name, c in acc.items():
        activity = c["users"] + c["contractors"] + c["events"] + c["jobs"]
        locations.append({
            "location": name,
            "users": c["users"],
            "contractors": c["contractors"],
            "events": c["events"],
            "jobs": c["jobs"],
            "revenue": round(c["revenue"], 2),
            "growth": 0.0,
            "density": c["users"] + c["contractors"],
            "activity": activity,
            "sources": sorted(c["sources"]),
        })
    locations.sort(key=lambda loc: loc["activity"], reverse=True)
    return locations


def aggregate_regions(
    users: list[Record],
    events: list[Record],
    jobs: list[Record],
    regions: dict[str, tuple[str, ...]],
) -> list[dict[str, Any]]:
    """Roll records up into the fixed region table; unlisted countries are skipped."""
    country_region = {
        country.lower(): name for name, countries in regions.items() for country in countries
    }
    totals = {
        name: {"users": 0, "contractors": 0, "events": 0, "jobs": 0, "revenue": 0.0}
        for name in regions
    }

    def bucket(record: Record) -> dict[str, Any] | None:
        country = (_text(record.get("country")) or "").lower()
        name = country_region.get(country)
        return totals[name] if name else None

    for user in users:
        t = bucket(user)
        if t is not None:
            t["contractors" if _is_contractor(user) else "users"] += 1
    for kind, records in (("events", events), ("jobs", jobs)):
        for record in records:
            t = bucket(record)
            if t is not None:
                t[kind] += 1
                t["revenue"] += _budget(record)

    return [
        {
            "region": name,
            "countries": list(regions[name]),
            "totalUsers": t["users"],
            "totalContractors": t["contractors"],
            "totalEvents": t["events"],
            "totalJobs": t["jobs"],
            "totalRevenue": round(t["revenue"], 2),
            "averageGrowth": 0.0,
        }
        for name, t in totals.items()
    ]


def intensity(value: float, divisor: float) -> int:
    if divisor <= 0:
        return 0
    return int(round(max(0.0, min(100.0, value / divisor * 100))))


def build_heatmap(
    locations: list[dict[str, Any]],
    config: GeoConfig = DEFAULT_GEO_CONFIG,
) -> list[dict[str, Any]]:
    """Cells for the most active locations; ``locations`` must be activity-ordered."""
    cells = []
    for loc in locations[:config.heatmap_top_n]:
        for category in HEATMAP_CATEGORIES:
            cells.append({
                "location": loc["location"],
                "category": category,
                "intensity": intensity(loc[category], config.heatmap_divisors[category]),
            })
    return cells


def summarize(locations: list[dict[str, Any]]) -> dict[str, Any]:
    densities = [loc["density"] for loc in locations]
    return {
        "totalLocations": len(locations),
        "topLocation": locations[0]["location"] if locations else None,
        "averageDensity": round(sum(densities) / len(densities), 1) if densities else 0.0,
        "totalRevenue": round(sum(loc["revenue"] for loc in locations), 2),
        "globalGrowth": 0.0,
    }


def _within_region(records: list[Record], countries: tuple[str, ...]) -> list[Record]:
    allowed = {c.lower() for c in countries}
    return [r for r in records if (_text(r.get("country")) or "").lower() in allowed]


def _match_region(region: str | None, regions: dict[str, tuple[str, ...]]) -> str | None:
    if not region or region.strip().lower() == "all":
        return None
    wanted = region.strip().lower()
    for name in regions:
        if name.lower() == wanted:
            return name
    return None


def aggregate_geography(
    store: RecordStore,
    period: str | None = None,
    region: str | None = None,
    now: datetime | None = None,
    config: GeoConfig = DEFAULT_GEO_CONFIG,
) -> dict[str, Any]:
    period_label, days = resolve_period(period, config)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        # Naive datetimes are taken as UTC, matching the stored timestamps
        now = now.replace(tzinfo=timezone.utc)
    since = now - timedelta(days=days)

    streams = fetch_streams(store, since, config)
    regions = load_regions(config.regions_path)
    users, events, jobs = streams["users"], streams["events"], streams["jobs"]

    selected_region = _match_region(region, regions)
    if selected_region:
        countries = regions[selected_region]
        users = _within_region(users, countries)
        events = _within_region(events, countries)
        jobs = _within_region(jobs, countries)
        regions = {selected_region: countries}

    locations = aggregate_locations(users, events, jobs)
    logger.debug(
        "geographic aggregate period=%s region=%s locations=%d",
        period_label, selected_region or "all", len(locations),
    )

    return {
        "period": period_label,
        "region": selected_region or "all",
        "locations": locations,
        "regions": aggregate_regions(users, events, jobs, regions),
        "summary": summarize(locations),
        "trends": {
            "userDistributionTrend": "stable",
            "contractorDistributionTrend": "stable",
            "revenueTrend": "stable",
        },
        "heatmap": build_heatmap(locations, config),
        "stubs": STUB_FIELDS,
    }
