"""Backoffice — Ad Set Edit Audit Log (Append-Only)."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class AdSetEditLog(SQLModel, table=True):
    """One row per ad set edit attempt made from the backoffice.

    Written whether or not Meta accepted the change; ``error_message`` is
    set exactly when ``applied_to_meta`` is false. Never updated.
    """

    __tablename__ = "adset_edit_logs"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    backoffice_user_id: str = Field(index=True, foreign_key="users.id")
    target_user_id: str = Field(foreign_key="users.id")
    adset_id: str = Field(index=True)
    account_id: str
    campaign_id: Optional[str] = None
    adset_name: Optional[str] = None
    previous_daily_budget: Optional[str] = Field(
        default=None, description="Minor units, e.g. cents"
    )
    new_daily_budget: Optional[str] = Field(default=None, description="Minor units")
    previous_targeting: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON(none_as_null=True))
    )
    new_targeting: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON(none_as_null=True))
    )
    note: str
    applied_to_meta: bool = False
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
