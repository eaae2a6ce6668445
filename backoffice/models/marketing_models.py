"""Backoffice — Marketing Read Models.

Stable camelCase shapes served to the backoffice UI. Rebuilt from the Graph
API on every request, or read from the connected account row; nothing
here is persisted.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API-facing models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        """Serialize for a JSON response; unset optional fields are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ─────────────────────────────────────────────
# TARGETING: Graph-native snake_case, kept as-is
# ─────────────────────────────────────────────


class AudienceRef(BaseModel):
    """Pointer to a custom audience defined on Meta."""

    id: str
    name: Optional[str] = None


class GeoLocations(BaseModel):
    model_config = ConfigDict(extra="allow")

    countries: Optional[List[str]] = None
    cities: Optional[List[Dict[str, Any]]] = None
    regions: Optional[List[Dict[str, Any]]] = None


class AdSetTargeting(BaseModel):
    """Subset of Meta's targeting spec the backoffice understands.

    Genders: 1 = male, 2 = female, empty/absent = all.
    """

    model_config = ConfigDict(extra="allow")

    age_min: Optional[int] = None
    age_max: Optional[int] = None
    genders: Optional[List[int]] = None
    geo_locations: Optional[GeoLocations] = None
    custom_audiences: Optional[List[AudienceRef]] = None
    excluded_custom_audiences: Optional[List[AudienceRef]] = None


# ─────────────────────────────────────────────
# ENTITIES
# ─────────────────────────────────────────────


class InsightsMetrics(CamelModel):
    """Performance snapshot. Numbers stay decimal strings as Meta sends them."""

    spend: Optional[str] = None
    impressions: Optional[str] = None
    clicks: Optional[str] = None
    reach: Optional[str] = None
    cpc: Optional[str] = None
    cpm: Optional[str] = None
    ctr: Optional[str] = None
    cpp: Optional[str] = None
    frequency: Optional[str] = None
    conversions: Optional[str] = None
    cost_per_conversion: Optional[str] = None
    date_start: Optional[str] = None
    date_stop: Optional[str] = None


class PaginationInfo(CamelModel):
    has_next_page: bool = False
    has_previous_page: bool = False
    next_cursor: Optional[str] = None
    previous_cursor: Optional[str] = None


class Campaign(CamelModel):
    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    effective_status: Optional[str] = None
    objective: Optional[str] = None
    daily_budget: Optional[str] = None
    lifetime_budget: Optional[str] = None
    budget_remaining: Optional[str] = None
    start_time: Optional[str] = None
    stop_time: Optional[str] = None
    created_time: Optional[str] = None
    updated_time: Optional[str] = None
    insights: Optional[InsightsMetrics] = None


class AdSet(CamelModel):
    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    effective_status: Optional[str] = None
    campaign_id: Optional[str] = None
    daily_budget: Optional[str] = None
    lifetime_budget: Optional[str] = None
    budget_remaining: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    created_time: Optional[str] = None
    updated_time: Optional[str] = None
    optimization_goal: Optional[str] = None
    billing_event: Optional[str] = None
    bid_amount: Optional[str] = None
    targeting: Optional[AdSetTargeting] = None
    insights: Optional[InsightsMetrics] = None


class AdCreative(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    effective_object_story_id: Optional[str] = None


class Ad(CamelModel):
    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    effective_status: Optional[str] = None
    adset_id: Optional[str] = None
    campaign_id: Optional[str] = None
    created_time: Optional[str] = None
    updated_time: Optional[str] = None
    creative: Optional[AdCreative] = None
    insights: Optional[InsightsMetrics] = None


class AudienceOption(CamelModel):
    id: str
    name: str
    subtype: Optional[str] = None
    approximate_count: Optional[int] = None


class AdAccount(CamelModel):
    """An ad account the user's token can see; ``id`` carries the act_ prefix."""

    id: str
    account_id: Optional[str] = None
    name: Optional[str] = None
    owner: Optional[str] = None
    account_status: Optional[int] = None
    balance: Optional[str] = None
    currency: Optional[str] = None
    business_id: Optional[str] = None


class MetaAccountView(CamelModel):
    """A user's connected Meta account as the backoffice shows it; no token."""

    id: str
    user_id: str
    facebook_user_id: str
    name: Optional[str] = None
    picture_url: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
