"""Backoffice — Ad Set Edit History Queries."""

from typing import List

from sqlmodel import Session, select

from backoffice.models.account_models import User
from backoffice.models.audit_models import AdSetEditLog
from backoffice.models.edit_models import AdSetEditLogView


def get_adset_edit_logs(session: Session, adset_id: str) -> List[AdSetEditLogView]:
    """All edit attempts on an ad set, newest first, with the acting admin's email."""
    rows = session.exec(
        select(AdSetEditLog, User.email)
        .join(User, User.id == AdSetEditLog.backoffice_user_id, isouter=True)  # type: ignore
        .where(AdSetEditLog.adset_id == adset_id)
        .order_by(AdSetEditLog.created_at.desc())  # type: ignore
    ).all()

    return [
        AdSetEditLogView(
            **log.model_dump(),
            backoffice_user_email=email,
        )
        for log, email in rows
    ]
