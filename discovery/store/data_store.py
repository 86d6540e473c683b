from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from ..search.models import SubscriptionTier
from .config import DEFAULT_STORE_CONFIG, StoreConfig

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when backing records cannot be read."""


_CONTRACTOR_DEFAULTS: dict[str, Any] = {
    "first_name": "",
    "last_name": "",
    "company_name": "",
    "description": "",
    "location": "",
    "avatar_url": None,
    "bio": None,
    "business_address": None,
    "verification_date": None,
    "is_verified": False,
    "average_rating": 0.0,
    "review_count": 0,
    "portfolio_count": 0,
    "subscription_tier": SubscriptionTier.essential.value,
    "created_at": None,
}


def _lower_list(values: Iterable[Any] | None) -> list[str]:
    return [str(v).strip().lower() for v in values or [] if str(v).strip()]


def _as_price(value: Any) -> float | None:
    """Numeric price or ``None``; text such as "call for quote" is not a price."""
    if value is None or isinstance(value, (bool, list, dict)):
        return None
    number = pd.to_numeric(value, errors="coerce")
    return None if pd.isna(number) else float(number)


def _clean_service(item: Any) -> dict[str, Any] | None:
    if not isinstance(item, dict):
        return None
    return {**item, "price_min": _as_price(item.get("price_min")), "price_max": _as_price(item.get("price_max"))}


def _price_bounds(services: list[dict[str, Any]]) -> tuple[float | None, float | None]:
    """Return the lowest and highest price over service line items.

    A line item with a single bound is treated as a fixed price at that bound,
    the same way the price-range filter reads it.
    """
    lows: list[float] = []
    highs: list[float] = []
    for item in services:
        low, high = item.get("price_min"), item.get("price_max")
        if low is None:
            low = high
        if high is None:
            high = low
        if low is not None:
            lows.append(low)
            highs.append(high)
    return (min(lows) if lows else None, max(highs) if highs else None)


def _normalise_contractor(raw: dict[str, Any]) -> dict[str, Any]:
    record = {**_CONTRACTOR_DEFAULTS, **{k: v for k, v in raw.items() if v is not None}}
    record["id"] = str(raw["id"])
    record["service_categories"] = list(raw.get("service_categories") or [])
    record["service_areas"] = list(raw.get("service_areas") or [])
    record["services"] = [s for s in map(_clean_service, raw.get("services") or []) if s is not None]
    record["social_links"] = dict(raw.get("social_links") or {})

    full_name = f"{record['first_name'] or ''} {record['last_name'] or ''}".strip()
    record["display_name"] = full_name or record["company_name"] or ""

    record["average_rating"] = float(record["average_rating"] or 0.0)
    record["review_count"] = int(record["review_count"] or 0)
    record["portfolio_count"] = int(record["portfolio_count"] or 0)
    record["tier_rank"] = SubscriptionTier.rank_of(record["subscription_tier"])
    record["min_price"], record["max_price"] = _price_bounds(record["services"])

    # Lowercase text fields for case-insensitive matching
    record["name_lower"] = record["display_name"].lower()
    record["company_lower"] = (record["company_name"] or "").lower()
    record["description_lower"] = (record["description"] or "").lower()
    record["location_lower"] = (record["location"] or "").lower()
    record["address_lower"] = (record["business_address"] or "").lower()
    record["categories_lower"] = _lower_list(record["service_categories"])
    record["areas_lower"] = _lower_list(record["service_areas"])
    return record


def build_contractor_frame(records: list[dict[str, Any]]) -> pd.DataFrame:
    """Normalise raw contractor records into the frame used for matching and sorting."""
    rows = [_normalise_contractor(r) for r in records if r.get("id") is not None]
    if rows:
        # First record wins for a repeated id
        df = pd.DataFrame.from_records(rows).drop_duplicates("id").reset_index(drop=True)
    else:
        df = pd.DataFrame(columns=list(_normalise_contractor({"id": ""}).keys()))
    df["position"] = range(len(df))
    df["created_at_ts"] = pd.to_datetime(df["created_at"], utc=True, errors="coerce", format="ISO8601")
    df["min_price"] = pd.to_numeric(df["min_price"], errors="coerce")
    df["max_price"] = pd.to_numeric(df["max_price"], errors="coerce")
    return df


def _build_activity_frame(records: list[dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame.from_records(records)
    if "created_at" not in df.columns:
        df["created_at"] = None
    df["created_at_ts"] = pd.to_datetime(df["created_at"], utc=True, errors="coerce", format="ISO8601")
    return df


def _records_since(frame: pd.DataFrame, since: datetime) -> list[dict[str, Any]]:
    if frame.empty:
        return []
    cutoff = pd.Timestamp(since)
    if cutoff.tzinfo is None:
        cutoff = cutoff.tz_localize("UTC")
    window = frame.loc[frame["created_at_ts"] >= cutoff]
    window = window.drop(columns=["created_at_ts"])
    # NaN from heterogeneous records becomes None for downstream field checks
    window = window.astype(object).where(window.notna(), None)
    return window.to_dict("records")


def _read_json(path: Path, required: bool) -> list[dict[str, Any]]:
    if not path.exists():
        if required:
            raise StoreError(f"Record file not found: {path}")
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StoreError(f"Could not read records from {path}") from exc
    if not isinstance(data, list):
        raise StoreError(f"Expected a list of records in {path}")
    return data


class RecordStore:
    """In-memory contractor, user, event and job records."""

    def __init__(
        self,
        contractors: list[dict[str, Any]],
        users: list[dict[str, Any]] | None = None,
        events: list[dict[str, Any]] | None = None,
        jobs: list[dict[str, Any]] | None = None,
    ) -> None:
        self._contractors = build_contractor_frame(contractors)
        self._by_id = self._contractors.set_index("id", drop=False)
        self._users = _build_activity_frame(users or [])
        self._events = _build_activity_frame(events or [])
        self._jobs = _build_activity_frame(jobs or [])

    @classmethod
    def from_config(cls, config: StoreConfig = DEFAULT_STORE_CONFIG) -> "RecordStore":
        contractors = _read_json(config.contractors_path, required=True)
        store = cls(
            contractors,
            users=_read_json(config.users_path, required=False),
            events=_read_json(config.events_path, required=False),
            jobs=_read_json(config.jobs_path, required=False),
        )
        logger.info("Loaded %d contractors from %s", len(contractors), config.data_dir)
        return store

    def contractors(self) -> pd.DataFrame:
        return self._contractors

    def get_contractors(self, ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Return detail records keyed by id; unknown ids are omitted."""
        wanted = [i for i in ids if i in self._by_id.index]
        return {i: self._by_id.loc[i].to_dict() for i in wanted}

    def fetch_users(self, since: datetime) -> list[dict[str, Any]]:
        return _records_since(self._users, since)

    def fetch_events(self, since: datetime) -> list[dict[str, Any]]:
        return _records_since(self._events, since)

    def fetch_jobs(self, since: datetime) -> list[dict[str, Any]]:
        return _records_since(self._jobs, since)


_store: RecordStore | None = None


def get_store() -> RecordStore:
    """Return the process-wide record store, loading it on first call."""
    global _store
    if _store is None:
        _store = RecordStore.from_config()
    return _store
