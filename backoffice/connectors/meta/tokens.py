"""Backoffice — Access Token Resolver.

Looks up the long-lived Graph API token a user stored when connecting
their Facebook account. Expiry is not checked here; Meta reports it.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from backoffice.core.errors import ErrorDetail
from backoffice.core.logging import get_logger
from backoffice.core.result import Err, Ok, Result
from backoffice.models.account_models import MetaBusinessAccount

logger = get_logger("meta.tokens")

NOT_CONNECTED = ErrorDetail(
    status_code=404,
    error="No connected account",
    message="User does not have a connected Meta Business Account",
    solution="User needs to connect their Facebook account first",
)

TOKEN_LOOKUP_FAILED = ErrorDetail(
    status_code=500,
    error="Internal server error",
    message="An unexpected error occurred while retrieving access token",
    solution="Please try again later",
)


def get_connected_account(
    session: Session, user_id: str
) -> Optional[MetaBusinessAccount]:
    """The user's live (not soft-deleted) Meta connection, if any."""
    return session.exec(
        select(MetaBusinessAccount)
        .where(
            MetaBusinessAccount.user_id == user_id,
            MetaBusinessAccount.deleted_at.is_(None),  # type: ignore
        )
        .limit(1)
    ).first()


def resolve_token(session: Session, user_id: str) -> Result[str, ErrorDetail]:
    """Return ``Ok(access_token)`` or ``Err`` with a 404 / 500 error detail."""
    try:
        account = get_connected_account(session, user_id)
    except SQLAlchemyError as e:
        logger.error(
            f"Token lookup failed: {e}", exc_info=True, extra={"user_id": user_id}
        )
        return Err(TOKEN_LOOKUP_FAILED)

    if account is None:
        logger.info("No connected Meta account", extra={"user_id": user_id})
        return Err(NOT_CONNECTED)

    return Ok(account.access_token)
