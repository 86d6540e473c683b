from __future__ import annotations

from typing import Any

import pandas as pd

from .models import ContractorOut, ServiceItem, SubscriptionTier


def _optional(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return value
    return value if pd.notna(value) else None


def _optional_str(value: Any) -> str | None:
    value = _optional(value)
    return str(value) if value is not None else None


def project(record: dict[str, Any]) -> ContractorOut:
    tier = record.get("subscription_tier") or SubscriptionTier.essential.value
    return ContractorOut(
        id=str(record["id"]),
        display_name=record.get("display_name") or "",
        company_name=_optional_str(record.get("company_name")) or None,
        description=_optional_str(record.get("description")) or None,
        location=_optional_str(record.get("location")) or None,
        avatar_url=_optional_str(record.get("avatar_url")),
        bio=_optional_str(record.get("bio")),
        service_categories=list(record.get("service_categories") or []),
        average_rating=float(record.get("average_rating") or 0.0),
        review_count=int(record.get("review_count") or 0),
        is_verified=bool(record.get("is_verified")),
        subscription_tier=tier,
        business_address=_optional_str(record.get("business_address")),
        service_areas=list(record.get("service_areas") or []),
        social_links={str(k): str(v) for k, v in (record.get("social_links") or {}).items()},
        verification_date=_optional_str(record.get("verification_date")),
        services=[ServiceItem(**item) for item in record.get("services") or []],
        created_at=_optional_str(record.get("created_at")),
        is_premium=SubscriptionTier.rank_of(tier) > 0,
    )


def assemble(ids: list[str], details: dict[str, dict[str, Any]]) -> list[ContractorOut]:
    """Project detail records in the order of ``ids``; never re-sorts."""
    return [project(details[i]) for i in ids if i in details]
