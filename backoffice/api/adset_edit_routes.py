"""Backoffice — Ad Set Edit & Audit History Routes."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from backoffice.api.dependencies import get_graph_client, require_admin
from backoffice.api.responses import error_response, failure_response
from backoffice.connectors.meta.client import GraphClient
from backoffice.core.auth import AdminIdentity
from backoffice.core.errors import ApiError, ErrorDetail
from backoffice.core.logging import get_logger
from backoffice.database import get_session
from backoffice.editor.adset_editor import AdSetEditor
from backoffice.editor.history import get_adset_edit_logs
from backoffice.models.edit_models import EditAdSetRequest, EditAdSetResponse

logger = get_logger("api.adset_edit")

router = APIRouter(prefix="/accounts/{account_id}/adsets/{adset_id}", tags=["Ad Set Edits"])


@router.patch("/edit")
async def edit_adset(
    account_id: str,
    adset_id: str,
    body: EditAdSetRequest,
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
    client: GraphClient = Depends(get_graph_client),
):
    """Change an ad set's daily budget and/or targeting, with a mandatory note.

    Every accepted attempt is written to the audit log. If Meta refuses
    the update the response is 500, but the attempt is still on record.
    """
    try:
        outcome = await AdSetEditor(client, session).edit(
            backoffice_user_id=admin.user_id,
            account_id=account_id,
            adset_id=adset_id,
            request=body,
        )
    except ApiError:
        raise
    except Exception as e:
        return failure_response(e, "editing adset")

    if not outcome.applied:
        return error_response(
            ErrorDetail(
                status_code=500,
                error="Failed to apply changes to Meta",
                message=outcome.log.error_message or "Unknown error occurred",
                solution="The change was logged but not applied. Please try again.",
            )
        )

    return EditAdSetResponse(log_id=outcome.log.id, changes=outcome.changes).to_api()


@router.get("/edit-history")
async def get_edit_history(
    account_id: str,
    adset_id: str,
    admin: AdminIdentity = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Audit trail of backoffice edits to this ad set, newest first."""
    try:
        logs = get_adset_edit_logs(session, adset_id)
        return {"logs": [log.to_api() for log in logs]}
    except Exception as e:
        return failure_response(e, "fetching edit history")
