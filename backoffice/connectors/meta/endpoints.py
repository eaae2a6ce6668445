"""Backoffice — Meta Marketing API Endpoints.

Query builders and fetch functions for each Graph API resource the
backoffice proxies: ad accounts, campaigns, ad sets, ads, custom audiences
and insights.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from backoffice.connectors.meta.client import GraphClient
from backoffice.connectors.meta.transformer import (
    transform_ad,
    transform_ad_account,
    transform_adset,
    transform_audience,
    transform_campaign,
    transform_insights_row,
    transform_paging,
)
from backoffice.core.logging import get_logger
from backoffice.models.marketing_models import (
    Ad,
    AdAccount,
    AdSet,
    AudienceOption,
    Campaign,
    CamelModel,
    InsightsMetrics,
    PaginationInfo,
)

logger = get_logger("meta.endpoints")

DEFAULT_LIMIT = 25
MAX_LIMIT = 100
AUDIENCE_LIMIT = 200

# Statuses an operator may switch between from the backoffice
TOGGLE_STATUSES = ("ACTIVE", "PAUSED")

INSIGHT_FIELDS = (
    "spend,impressions,clicks,reach,cpc,cpm,ctr,cpp,frequency,"
    "actions,cost_per_action_type,date_start,date_stop"
)
INLINE_INSIGHTS = f"insights{{{INSIGHT_FIELDS}}}"

CAMPAIGN_FIELDS = (
    "id,name,status,effective_status,objective,daily_budget,lifetime_budget,"
    "budget_remaining,start_time,stop_time,created_time,updated_time,"
    + INLINE_INSIGHTS
)
ADSET_FIELDS = (
    "id,name,status,effective_status,campaign_id,daily_budget,lifetime_budget,"
    "budget_remaining,start_time,end_time,created_time,updated_time,"
    "optimization_goal,billing_event,bid_amount,targeting,"
    + INLINE_INSIGHTS
)
AD_FIELDS = (
    "id,name,status,effective_status,adset_id,campaign_id,created_time,updated_time,"
    "creative{id,name,title,body,image_url,thumbnail_url,effective_object_story_id},"
    + INLINE_INSIGHTS
)
AUDIENCE_FIELDS = (
    "id,name,subtype,approximate_count_lower_bound,approximate_count_upper_bound"
)
ADSET_EDIT_FIELDS = "id,name,daily_budget,campaign_id,targeting"
AD_ACCOUNT_FIELDS = "id,account_id,name,owner,account_status,balance,currency,business{id}"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

M = TypeVar("M", bound=CamelModel)


@dataclass
class Page(Generic[M]):
    data: List[M]
    pagination: PaginationInfo

    def to_api(self) -> Dict[str, Any]:
        return {
            "data": [item.to_api() for item in self.data],
            "pagination": self.pagination.to_api(),
        }


@dataclass
class InsightsResult:
    """Either one aggregate snapshot or a time-bucketed series, never both."""

    insights: Optional[InsightsMetrics] = None
    insights_array: Optional[List[InsightsMetrics]] = None

    def to_api(self) -> Dict[str, Any]:
        if self.insights_array is not None:
            return {"insightsArray": [row.to_api() for row in self.insights_array]}
        if self.insights is not None:
            return {"insights": self.insights.to_api()}
        return {}


# ── Parameter helpers ──


def normalize_account_id(account_id: str) -> str:
    """Ensure the ``act_`` prefix Graph expects on ad account ids."""
    return account_id if account_id.startswith("act_") else f"act_{account_id}"


def parse_limit(raw: Any) -> int:
    """Page size: default 25, capped at 100.

    Unparseable or non-positive input silently falls back to the default.
    """
    if raw is None:
        return DEFAULT_LIMIT
    match = _LEADING_INT.match(str(raw))
    if not match:
        return DEFAULT_LIMIT
    parsed = int(match.group(1))
    if parsed <= 0:
        return DEFAULT_LIMIT
    return min(parsed, MAX_LIMIT)


def encode_status_filter(raw: Optional[str]) -> Optional[str]:
    """``"ACTIVE, PAUSED"`` → ``'["ACTIVE", "PAUSED"]'``."""
    if not raw:
        return None
    statuses = [s.strip() for s in raw.split(",") if s.strip()]
    if not statuses:
        return None
    return json.dumps(statuses)


def equal_filter(field: str, value: str) -> str:
    return json.dumps([{"field": field, "operator": "EQUAL", "value": value}])


def _listing_params(
    fields: str,
    limit: Any,
    after: Optional[str],
    before: Optional[str],
    effective_status: Optional[str] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"fields": fields, "limit": parse_limit(limit)}
    if after:
        params["after"] = after
    if before:
        params["before"] = before
    status_filter = encode_status_filter(effective_status)
    if status_filter:
        params["effective_status"] = status_filter
    return params


class MarketingEndpoints:
    """Graph API operations on behalf of one connected user."""

    def __init__(self, client: GraphClient, access_token: str):
        self.client = client
        self.access_token = access_token

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.client.call("GET", path, self.access_token, params=params)

    async def _post(self, path: str, body: Dict[str, str]) -> Dict[str, Any]:
        return await self.client.call("POST", path, self.access_token, body=body)

    # ── Ad accounts ──

    async def list_ad_accounts(self) -> List[AdAccount]:
        """Ad accounts visible to the token's owner, via the ``me`` node."""
        response = await self._get(
            "me", {"fields": f"id,adaccounts{{{AD_ACCOUNT_FIELDS}}}"}
        )
        edge = response.get("adaccounts") or {}
        return [transform_ad_account(a) for a in edge.get("data") or []]

    # ── Listings ──

    async def list_campaigns(
        self,
        account_id: str,
        limit: Any = None,
        after: Optional[str] = None,
        before: Optional[str] = None,
        effective_status: Optional[str] = None,
    ) -> Page[Campaign]:
        params = _listing_params(CAMPAIGN_FIELDS, limit, after, before, effective_status)
        response = await self._get(f"{normalize_account_id(account_id)}/campaigns", params)
        campaigns = [transform_campaign(c) for c in response.get("data") or []]
        logger.info(
            f"Fetched {len(campaigns)} campaigns",
            extra={"account_id": account_id},
        )
        return Page(data=campaigns, pagination=transform_paging(response.get("paging")))

    async def list_adsets(
        self,
        account_id: str,
        limit: Any = None,
        after: Optional[str] = None,
        before: Optional[str] = None,
        campaign_id: Optional[str] = None,
        effective_status: Optional[str] = None,
    ) -> Page[AdSet]:
        params = _listing_params(ADSET_FIELDS, limit, after, before, effective_status)
        if campaign_id:
            params["filtering"] = equal_filter("campaign.id", campaign_id)
        response = await self._get(f"{normalize_account_id(account_id)}/adsets", params)
        adsets = [transform_adset(a) for a in response.get("data") or []]
        logger.info(
            f"Fetched {len(adsets)} ad sets",
            extra={"account_id": account_id},
        )
        return Page(data=adsets, pagination=transform_paging(response.get("paging")))

    async def list_ads(
        self,
        account_id: str,
        limit: Any = None,
        after: Optional[str] = None,
        before: Optional[str] = None,
        adset_id: Optional[str] = None,
        effective_status: Optional[str] = None,
    ) -> Page[Ad]:
        params = _listing_params(AD_FIELDS, limit, after, before, effective_status)
        if adset_id:
            params["filtering"] = equal_filter("adset.id", adset_id)
        response = await self._get(f"{normalize_account_id(account_id)}/ads", params)
        ads = [transform_ad(a) for a in response.get("data") or []]
        logger.info(f"Fetched {len(ads)} ads", extra={"account_id": account_id})
        return Page(data=ads, pagination=transform_paging(response.get("paging")))

    async def list_audiences(self, account_id: str) -> List[AudienceOption]:
        """Custom audiences usable in targeting. Unnamed audiences are skipped."""
        response = await self._get(
            f"{normalize_account_id(account_id)}/customaudiences",
            {"fields": AUDIENCE_FIELDS, "limit": AUDIENCE_LIMIT},
        )
        return [
            transform_audience(a) for a in response.get("data") or [] if a.get("name")
        ]

    # ── Insights ──

    async def get_insights(
        self,
        entity_id: str,
        date_preset: Optional[str] = None,
        since: Optional[str] = None,
        until: Optional[str] = None,
        time_increment: Optional[str] = None,
    ) -> InsightsResult:
        """Aggregate or bucketed insights for one campaign, ad set or ad.

        No date default is applied here: without a preset or a full
        since/until pair, Meta's own default window is used.
        """
        params: Dict[str, Any] = {"fields": INSIGHT_FIELDS}
        if date_preset:
            params["date_preset"] = date_preset
        elif since and until:
            params["time_range"] = json.dumps({"since": since, "until": until})
        if time_increment:
            params["time_increment"] = time_increment

        response = await self._get(f"{entity_id}/insights", params)
        rows = response.get("data") or []

        if time_increment and rows:
            return InsightsResult(insights_array=[transform_insights_row(r) for r in rows])
        if rows:
            return InsightsResult(insights=transform_insights_row(rows[0]))
        return InsightsResult()

    # ── Mutations ──

    async def set_status(self, entity_id: str, status: str) -> Dict[str, Any]:
        """Switch a campaign, ad set or ad between ACTIVE and PAUSED."""
        result = await self._post(entity_id, {"status": status})
        logger.info(
            f"Status set to {status}", extra={"entity_id": entity_id}
        )
        return result

    async def get_adset_state(self, adset_id: str) -> Dict[str, Any]:
        """Current budget, campaign and targeting of an ad set, raw."""
        return await self._get(adset_id, {"fields": ADSET_EDIT_FIELDS})

    async def update_adset(self, adset_id: str, changes: Dict[str, str]) -> Dict[str, Any]:
        """POST only the fields being changed."""
        return await self._post(adset_id, changes)
