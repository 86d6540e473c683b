from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SubscriptionTier(str, Enum):
    essential = "essential"
    showcase = "showcase"
    spotlight = "spotlight"

    @classmethod
    def rank_of(cls, value: str | None) -> int:
        """Position in the tier ordering; unknown tiers rank with essential."""
        order = list(cls)
        try:
            return order.index(cls(value))
        except ValueError:
            return 0


class SortMode(str, Enum):
    relevance = "relevance"
    rating = "rating"
    price_low = "price_low"
    price_high = "price_high"
    newest = "newest"
    oldest = "oldest"


class FilterCriteria(BaseModel):
    query: str | None = None
    service_types: list[str] = Field(default_factory=list)
    location: str | None = None
    radius: float | None = None
    regions: list[str] = Field(default_factory=list)
    price_min: float | None = None
    price_max: float | None = None
    rating_min: float | None = Field(default=None, ge=1.0, le=5.0)
    response_time: str | None = None
    has_portfolio: bool | None = None
    sort: SortMode = SortMode.relevance

    def populated_filters(self) -> dict[str, Any]:
        """Filter dimensions carrying a value, keyed by their query parameter name."""
        values = {
            "q": self.query,
            "service_types": ",".join(self.service_types) or None,
            "location": self.location,
            "radius": self.radius,
            "regions": ",".join(self.regions) or None,
            "price_min": self.price_min,
            "price_max": self.price_max,
            "rating_min": self.rating_min,
            "response_time": self.response_time,
            "has_portfolio": self.has_portfolio,
        }
        return {k: v for k, v in values.items() if v is not None}


class PageRequest(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1)


class RankedResult(BaseModel):
    ids: list[str]
    total: int


class ServiceItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    service_type: str | None = None
    price_min: float | None = None
    price_max: float | None = None
    availability: str | None = None


class ContractorOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    display_name: str
    company_name: str | None = None
    description: str | None = None
    location: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    service_categories: list[str] = Field(default_factory=list)
    average_rating: float = 0.0
    review_count: int = 0
    is_verified: bool = False
    subscription_tier: str = SubscriptionTier.essential.value
    business_address: str | None = None
    service_areas: list[str] = Field(default_factory=list)
    social_links: dict[str, str] = Field(default_factory=dict)
    verification_date: str | None = None
    services: list[ServiceItem] = Field(default_factory=list)
    created_at: str | None = None
    is_premium: bool = False


class SearchResultPage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    contractors: list[ContractorOut]
    total: int
    page: int
    limit: int
    total_pages: int
    search_query: dict[str, Any] = Field(default_factory=dict)


class RangeOption(BaseModel):
    label: str
    min: float
    max: float | None = None


class FilterOptions(BaseModel):
    service_types: list[str]
    regions: list[str]
    price_ranges: list[RangeOption]
    rating_ranges: list[RangeOption]
    min_price: float | None = None
    max_price: float | None = None


class SuggestionsResponse(BaseModel):
    suggestions: list[str]


# Request bodies for the per-user search library. Required fields are
# optional here so missing values get a 400 with a specific message.


class HistoryEntryIn(BaseModel):
    search_query: str | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    result_count: int = 0


class SavedSearchIn(BaseModel):
    name: str | None = None
    search_query: str | None = None
    filters: dict[str, Any] = Field(default_factory=dict)


class FavoriteIn(BaseModel):
    contractor_id: str | None = None


class SearchClickIn(BaseModel):
    contractor_id: str | None = None
    query: str | None = None
    position: int | None = Field(None, ge=1)
