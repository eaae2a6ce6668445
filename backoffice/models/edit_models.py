"""Backoffice — Ad Set Edit Request / Response Schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from backoffice.models.marketing_models import AudienceRef, CamelModel


class TargetingUpdate(BaseModel):
    """Targeting fields an admin may change. Absent = keep current value.

    ``geo_locations`` is accepted for shape compatibility but never applied.
    """

    age_min: Optional[int] = None
    age_max: Optional[int] = None
    genders: Optional[List[int]] = None
    geo_locations: Optional[Dict[str, Any]] = None
    custom_audiences: Optional[List[AudienceRef]] = None
    excluded_custom_audiences: Optional[List[AudienceRef]] = None

    def has_changes(self) -> bool:
        return any(
            v is not None
            for v in (
                self.age_min,
                self.age_max,
                self.genders,
                self.custom_audiences,
                self.excluded_custom_audiences,
            )
        )


class EditAdSetRequest(CamelModel):
    """Body for PATCH /accounts/{account_id}/adsets/{adset_id}/edit."""

    user_id: Optional[str] = None
    campaign_id: Optional[str] = None
    adset_name: Optional[str] = None
    daily_budget: Optional[float] = None
    """New daily budget in currency units (e.g. 40 = 40.00)."""
    targeting: Optional[TargetingUpdate] = None
    note: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "userId": "3f1c…",
                    "dailyBudget": 40,
                    "note": "Lower spend while creative is refreshed",
                },
                {
                    "userId": "3f1c…",
                    "targeting": {"age_min": 25, "genders": [2]},
                    "note": "Narrow to core audience",
                },
            ]
        }
    )


class FieldChange(BaseModel):
    previous: Any = None
    new: Any = None


class AdSetChanges(CamelModel):
    daily_budget: Optional[FieldChange] = None
    targeting: Optional[FieldChange] = None


class EditAdSetResponse(CamelModel):
    success: bool = True
    log_id: str
    changes: AdSetChanges


class AdSetEditLogView(CamelModel):
    """An audit row as shown in the edit history, with the admin's email."""

    id: str
    backoffice_user_id: str
    backoffice_user_email: Optional[str] = None
    target_user_id: str
    adset_id: str
    account_id: str
    campaign_id: Optional[str] = None
    adset_name: Optional[str] = None
    previous_daily_budget: Optional[str] = None
    new_daily_budget: Optional[str] = None
    previous_targeting: Optional[Dict[str, Any]] = None
    new_targeting: Optional[Dict[str, Any]] = None
    note: str
    applied_to_meta: bool
    error_message: Optional[str] = None
    created_at: datetime

    def to_api(self) -> Dict[str, Any]:
        # History rows keep explicit nulls so every column is visible
        return self.model_dump(by_alias=True, mode="json")
