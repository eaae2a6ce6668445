"""Backoffice — Shared Route Dependencies."""

import secrets
from typing import AsyncIterator, FrozenSet, Optional

from fastapi import Depends, Header
from sqlmodel import Session

from backoffice.config import settings
from backoffice.connectors.meta.client import GraphClient
from backoffice.connectors.meta.endpoints import MarketingEndpoints
from backoffice.connectors.meta.tokens import resolve_token
from backoffice.core.auth import AdminIdentity, is_admin
from backoffice.core.errors import MISSING_USER_ID, NOT_AUTHENTICATED, ApiError
from backoffice.core.logging import get_logger
from backoffice.core.result import Err
from backoffice.database import get_session
from backoffice.models.account_models import User

logger = get_logger("api.auth")


def get_admin_allowlist() -> FrozenSet[str]:
    return settings.admin_email_set


async def get_graph_client() -> AsyncIterator[GraphClient]:
    """Dependency — one Graph client per request, closed afterwards."""
    client = GraphClient()
    try:
        yield client
    finally:
        await client.close()


def get_backoffice_api_key() -> str:
    return settings.backoffice_api_key


def _reject(reason: str, email: Optional[str]) -> ApiError:
    logger.warning(f"Rejected backoffice session ({reason}): {email}")
    return ApiError.from_detail(NOT_AUTHENTICATED)


def require_admin(
    x_backoffice_user_id: Optional[str] = Header(None),
    x_backoffice_user_email: Optional[str] = Header(None),
    x_backoffice_api_key: Optional[str] = Header(None),
    allowlist: FrozenSet[str] = Depends(get_admin_allowlist),
    api_key: str = Depends(get_backoffice_api_key),
    session: Session = Depends(get_session),
) -> AdminIdentity:
    """The session layer in front of this service forwards the admin's
    identity in ``X-Backoffice-User-Id`` / ``X-Backoffice-User-Email``,
    plus ``X-Backoffice-Api-Key`` when a shared secret is configured.

    The id must name an existing user whose stored email matches the
    header and is on the allowlist.
    """
    if api_key and not (
        x_backoffice_api_key and secrets.compare_digest(x_backoffice_api_key, api_key)
    ):
        raise _reject("bad api key", x_backoffice_user_email)
    if not x_backoffice_user_id or not is_admin(x_backoffice_user_email, allowlist):
        raise _reject("not on allowlist", x_backoffice_user_email)

    user = session.get(User, x_backoffice_user_id)
    if user is None:
        raise _reject("unknown user id", x_backoffice_user_email)
    if user.email.strip().lower() != x_backoffice_user_email.strip().lower():
        raise _reject("email does not match user", x_backoffice_user_email)

    return AdminIdentity(user_id=user.id, email=user.email)


def endpoints_for_user(
    session: Session, client: GraphClient, user_id: Optional[str]
) -> MarketingEndpoints:
    """Bind Graph operations to the token of the user whose account is viewed."""
    if not user_id:
        raise ApiError.from_detail(MISSING_USER_ID)
    token = resolve_token(session, user_id)
    if isinstance(token, Err):
        raise ApiError.from_detail(token.error)
    return MarketingEndpoints(client, token.value)
