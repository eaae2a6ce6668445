"""Backoffice — Meta Marketing Proxy Routes.

Listings, status toggles, audiences and insights for a user's ad account.
Every route needs an admin session and ``userId``: the user whose stored
token is used against the Graph API.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from backoffice.api.dependencies import (
    endpoints_for_user,
    get_graph_client,
    require_admin,
)
from backoffice.api.responses import failure_response
from backoffice.connectors.meta.client import GraphClient
from backoffice.connectors.meta.endpoints import TOGGLE_STATUSES, MarketingEndpoints
from backoffice.core.auth import AdminIdentity
from backoffice.core.errors import ApiError, bad_request
from backoffice.core.logging import get_logger
from backoffice.database import get_session
from backoffice.models.marketing_models import CamelModel

logger = get_logger("api.marketing")

router = APIRouter(prefix="/accounts/{account_id}", tags=["Marketing"])


# ── Request Models ──


class CampaignStatusUpdate(CamelModel):
    campaign_id: Optional[str] = None
    status: Optional[str] = None


class AdSetStatusUpdate(CamelModel):
    adset_id: Optional[str] = None
    status: Optional[str] = None


class AdStatusUpdate(CamelModel):
    ad_id: Optional[str] = None
    status: Optional[str] = None


async def _toggle_status(
    endpoints: MarketingEndpoints,
    id_field: str,
    entity_id: Optional[str],
    status: Optional[str],
) -> dict:
    """Pass an ACTIVE/PAUSED switch through to Meta.

    The entity's current state is not checked; Meta rejects illegal moves
    (e.g. reactivating a deleted ad set).
    """
    if not entity_id or not status:
        raise bad_request(
            "Invalid request",
            f"{id_field} and status are required",
            f"Provide both {id_field} and status in the request body",
        )
    if status not in TOGGLE_STATUSES:
        raise bad_request(
            "Invalid status",
            f"status must be one of {', '.join(TOGGLE_STATUSES)}",
            "Only ACTIVE and PAUSED can be set from the backoffice",
        )
    await endpoints.set_status(entity_id, status)
    return {"id": entity_id, "status": status}


async def _insights(
    endpoints: MarketingEndpoints,
    id_key: str,
    entity_id: str,
    date_preset: Optional[str],
    since: Optional[str],
    until: Optional[str],
    time_increment: Optional[str],
) -> dict:
    result = await endpoints.get_insights(
        entity_id,
        date_preset=date_preset,
        since=since,
        until=until,
        time_increment=time_increment,
    )
    return {id_key: entity_id, **result.to_api()}


# ── Campaigns ──


@router.get("/campaigns")
async def list_campaigns(
    account_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: Optional[str] = Query(None),
    after: Optional[str] = Query(None),
    before: Optional[str] = Query(None),
    effective_status: Optional[str] = Query(None, alias="effectiveStatus"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Campaigns of an ad account with inline insights, cursor-paginated."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        page = await endpoints.list_campaigns(
            account_id, limit=limit, after=after, before=before,
            effective_status=effective_status,
        )
        return page.to_api()
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching campaigns")


@router.patch("/campaigns")
async def update_campaign_status(
    account_id: str,
    body: CampaignStatusUpdate,
    user_id: Optional[str] = Query(None, alias="userId"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Enable or pause a campaign."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        campaign = await _toggle_status(
            endpoints, "campaignId", body.campaign_id, body.status
        )
        logger.info(
            f"Campaign status changed by {admin.email}",
            extra={"entity_id": body.campaign_id, "account_id": account_id},
        )
        return {"success": True, "campaign": campaign}
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "updating campaign")


@router.get("/campaigns/{campaign_id}/insights")
async def get_campaign_insights(
    account_id: str,
    campaign_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    date_preset: Optional[str] = Query(None, alias="datePreset"),
    since: Optional[str] = Query(None),
    until: Optional[str] = Query(None),
    time_increment: Optional[str] = Query(None, alias="timeIncrement"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        return await _insights(
            endpoints, "campaignId", campaign_id, date_preset, since, until, time_increment
        )
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching campaign insights")


# ── Ad Sets ──


@router.get("/adsets")
async def list_adsets(
    account_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: Optional[str] = Query(None),
    after: Optional[str] = Query(None),
    before: Optional[str] = Query(None),
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
    effective_status: Optional[str] = Query(None, alias="effectiveStatus"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Ad sets of an ad account, optionally scoped to one campaign."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        page = await endpoints.list_adsets(
            account_id, limit=limit, after=after, before=before,
            campaign_id=campaign_id, effective_status=effective_status,
        )
        return page.to_api()
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching adsets")


@router.patch("/adsets")
async def update_adset_status(
    account_id: str,
    body: AdSetStatusUpdate,
    user_id: Optional[str] = Query(None, alias="userId"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Enable or pause an ad set."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        adset = await _toggle_status(endpoints, "adsetId", body.adset_id, body.status)
        logger.info(
            f"Ad set status changed by {admin.email}",
            extra={"entity_id": body.adset_id, "account_id": account_id},
        )
        return {"success": True, "adset": adset}
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "updating adset")


@router.get("/adsets/{adset_id}/insights")
async def get_adset_insights(
    account_id: str,
    adset_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    date_preset: Optional[str] = Query(None, alias="datePreset"),
    since: Optional[str] = Query(None),
    until: Optional[str] = Query(None),
    time_increment: Optional[str] = Query(None, alias="timeIncrement"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Aggregate insights, or one row per bucket when ``timeIncrement`` is set."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        return await _insights(
            endpoints, "adsetId", adset_id, date_preset, since, until, time_increment
        )
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching adset insights")


# ── Ads ──


@router.get("/ads")
async def list_ads(
    account_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: Optional[str] = Query(None),
    after: Optional[str] = Query(None),
    before: Optional[str] = Query(None),
    adset_id: Optional[str] = Query(None, alias="adsetId"),
    effective_status: Optional[str] = Query(None, alias="effectiveStatus"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Ads of an ad account with creatives, optionally scoped to one ad set."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        page = await endpoints.list_ads(
            account_id, limit=limit, after=after, before=before,
            adset_id=adset_id, effective_status=effective_status,
        )
        return page.to_api()
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching ads")


@router.patch("/ads")
async def update_ad_status(
    account_id: str,
    body: AdStatusUpdate,
    user_id: Optional[str] = Query(None, alias="userId"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Enable or pause an ad."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        ad = await _toggle_status(endpoints, "adId", body.ad_id, body.status)
        logger.info(
            f"Ad status changed by {admin.email}",
            extra={"entity_id": body.ad_id, "account_id": account_id},
        )
        return {"success": True, "ad": ad}
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "updating ad")


@router.get("/ads/{ad_id}/insights")
async def get_ad_insights(
    account_id: str,
    ad_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    date_preset: Optional[str] = Query(None, alias="datePreset"),
    since: Optional[str] = Query(None),
    until: Optional[str] = Query(None),
    time_increment: Optional[str] = Query(None, alias="timeIncrement"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        return await _insights(
            endpoints, "adId", ad_id, date_preset, since, until, time_increment
        )
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching ad insights")


# ── Audiences ──


@router.get("/audiences")
async def list_audiences(
    account_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Custom audiences available for include/exclude targeting."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        audiences = await endpoints.list_audiences(account_id)
        return {"audiences": [a.to_api() for a in audiences]}
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching audiences")
