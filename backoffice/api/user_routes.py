"""Backoffice — Connected User Routes.

Where an admin starts: the user's Meta connection and the ad accounts its
token can reach. The ``id`` of an ad account is the ``account_id`` path
segment of every marketing route.
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from backoffice.api.dependencies import (
    endpoints_for_user,
    get_graph_client,
    require_admin,
)
from backoffice.api.responses import failure_response
from backoffice.connectors.meta.client import GraphClient
from backoffice.connectors.meta.tokens import NOT_CONNECTED, get_connected_account
from backoffice.core.auth import AdminIdentity
from backoffice.core.errors import ApiError
from backoffice.core.logging import get_logger
from backoffice.database import get_session
from backoffice.models.marketing_models import MetaAccountView

logger = get_logger("api.users")

router = APIRouter(prefix="/users/{user_id}", tags=["Users"])


@router.get("/meta-account")
async def get_meta_account(
    user_id: str,
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """The user's connected Meta Business Account. The access token is never returned."""
    try:
        account = get_connected_account(session, user_id)
    except Exception as e:
        return failure_response(e, "fetching meta account")
    if account is None:
        raise ApiError.from_detail(NOT_CONNECTED)
    return MetaAccountView(
        id=account.id,
        user_id=account.user_id,
        facebook_user_id=account.facebook_user_id,
        name=account.name,
        picture_url=account.picture_url,
        token_expires_at=account.token_expires_at,
        created_at=account.created_at,
        updated_at=account.updated_at,
    ).to_api()


@router.get("/ad-accounts")
async def list_ad_accounts(
    user_id: str,
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Ad accounts reachable with the user's stored token."""
    try:
        endpoints = endpoints_for_user(session, client, user_id)
        accounts = await endpoints.list_ad_accounts()
        logger.info(f"Fetched {len(accounts)} ad accounts", extra={"user_id": user_id})
        return {"data": [a.to_api() for a in accounts]}
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "fetching ad accounts")
