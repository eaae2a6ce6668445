"""Backoffice — Meta Raw → Read Model Transformer.

Pure functions turning Graph API snake_case objects into the camelCase
read models. Missing optional keys become ``None``; nothing here raises on
an absent field.
"""

from typing import Any, Dict, List, Optional

from backoffice.models.marketing_models import (
    Ad,
    AdAccount,
    AdCreative,
    AdSet,
    AdSetTargeting,
    AudienceOption,
    Campaign,
    InsightsMetrics,
    PaginationInfo,
)

# Highest priority first. Only these three count as a "conversion".
CONVERSION_ACTION_TYPES = ("purchase", "lead", "complete_registration")

DIRECT_METRICS = (
    "spend",
    "impressions",
    "clicks",
    "reach",
    "cpc",
    "cpm",
    "ctr",
    "cpp",
    "frequency",
    "date_start",
    "date_stop",
)


def _as_str(value: Any) -> Optional[str]:
    """Meta mixes numbers and numeric strings; the read model keeps strings."""
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def pick_conversion_value(entries: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    """Value of the highest-priority conversion action, wherever it sits in the list."""
    if not entries:
        return None
    by_type: Dict[str, Any] = {}
    for entry in entries:
        action_type = entry.get("action_type")
        if action_type in CONVERSION_ACTION_TYPES and action_type not in by_type:
            by_type[action_type] = entry.get("value")
    for action_type in CONVERSION_ACTION_TYPES:
        if action_type in by_type:
            return _as_str(by_type[action_type])
    return None


def transform_insights_row(row: Dict[str, Any]) -> InsightsMetrics:
    """Transform a single insights row."""
    metrics = {name: _as_str(row.get(name)) for name in DIRECT_METRICS}
    return InsightsMetrics(
        **metrics,
        conversions=pick_conversion_value(row.get("actions")),
        cost_per_conversion=pick_conversion_value(row.get("cost_per_action_type")),
    )


def transform_insights(
    insights: Optional[Dict[str, Any]],
) -> Optional[InsightsMetrics]:
    """Transform an inline ``insights`` edge; only the first row is used."""
    if not insights:
        return None
    rows = insights.get("data") or []
    if not rows:
        return None
    return transform_insights_row(rows[0])


def transform_campaign(campaign: Dict[str, Any]) -> Campaign:
    return Campaign(
        id=campaign["id"],
        name=campaign.get("name"),
        status=campaign.get("status"),
        effective_status=campaign.get("effective_status"),
        objective=campaign.get("objective"),
        daily_budget=_as_str(campaign.get("daily_budget")),
        lifetime_budget=_as_str(campaign.get("lifetime_budget")),
        budget_remaining=_as_str(campaign.get("budget_remaining")),
        start_time=campaign.get("start_time"),
        stop_time=campaign.get("stop_time"),
        created_time=campaign.get("created_time"),
        updated_time=campaign.get("updated_time"),
        insights=transform_insights(campaign.get("insights")),
    )


def transform_targeting(
    targeting: Optional[Dict[str, Any]],
) -> Optional[AdSetTargeting]:
    if not targeting:
        return None
    return AdSetTargeting.model_validate(targeting)


def transform_adset(adset: Dict[str, Any]) -> AdSet:
    return AdSet(
        id=adset["id"],
        name=adset.get("name"),
        status=adset.get("status"),
        effective_status=adset.get("effective_status"),
        campaign_id=adset.get("campaign_id"),
        daily_budget=_as_str(adset.get("daily_budget")),
        lifetime_budget=_as_str(adset.get("lifetime_budget")),
        budget_remaining=_as_str(adset.get("budget_remaining")),
        start_time=adset.get("start_time"),
        end_time=adset.get("end_time"),
        created_time=adset.get("created_time"),
        updated_time=adset.get("updated_time"),
        optimization_goal=adset.get("optimization_goal"),
        billing_event=adset.get("billing_event"),
        bid_amount=_as_str(adset.get("bid_amount")),
        targeting=transform_targeting(adset.get("targeting")),
        insights=transform_insights(adset.get("insights")),
    )


def transform_creative(creative: Optional[Dict[str, Any]]) -> Optional[AdCreative]:
    if not creative:
        return None
    return AdCreative(
        id=creative.get("id"),
        name=creative.get("name"),
        title=creative.get("title"),
        body=creative.get("body"),
        image_url=creative.get("image_url"),
        thumbnail_url=creative.get("thumbnail_url"),
        effective_object_story_id=creative.get("effective_object_story_id"),
    )


def transform_ad(ad: Dict[str, Any]) -> Ad:
    return Ad(
        id=ad["id"],
        name=ad.get("name"),
        status=ad.get("status"),
        effective_status=ad.get("effective_status"),
        adset_id=ad.get("adset_id"),
        campaign_id=ad.get("campaign_id"),
        created_time=ad.get("created_time"),
        updated_time=ad.get("updated_time"),
        creative=transform_creative(ad.get("creative")),
        insights=transform_insights(ad.get("insights")),
    )


def transform_audience(audience: Dict[str, Any]) -> AudienceOption:
    return AudienceOption(
        id=audience["id"],
        name=audience["name"],
        subtype=audience.get("subtype"),
        approximate_count=audience.get("approximate_count_lower_bound"),
    )


def transform_paging(paging: Optional[Dict[str, Any]]) -> PaginationInfo:
    """Page flags come from the ``next``/``previous`` links; cursors are copied as-is."""
    paging = paging or {}
    cursors = paging.get("cursors") or {}
    return PaginationInfo(
        has_next_page=bool(paging.get("next")),
        has_previous_page=bool(paging.get("previous")),
        next_cursor=cursors.get("after"),
        previous_cursor=cursors.get("before"),
    )


def transform_ad_account(account: Dict[str, Any]) -> AdAccount:
    business = account.get("business") or {}
    return AdAccount(
        id=account["id"],
        account_id=_as_str(account.get("account_id")),
        name=account.get("name"),
        owner=_as_str(account.get("owner")),
        account_status=account.get("account_status"),
        balance=_as_str(account.get("balance")),
        currency=account.get("currency"),
        business_id=_as_str(business.get("id")),
    )
