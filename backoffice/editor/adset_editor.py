"""Backoffice — Ad Set Edit Orchestrator.

Runs a manual budget / targeting edit end to end:

  validate → fetch current state → diff → apply on Meta → write audit log

Rejections during validate / diff happen before any side effect and leave
no log row. Once the diff is accepted, exactly one ``AdSetEditLog`` row is
written whether Meta accepts the update or not.
"""

import json
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from backoffice.connectors.meta.client import GraphClient
from backoffice.connectors.meta.endpoints import MarketingEndpoints, normalize_account_id
from backoffice.connectors.meta.errors import error_to_graph_error_return
from backoffice.connectors.meta.tokens import resolve_token
from backoffice.core.errors import ApiError, ErrorDetail, bad_request
from backoffice.core.logging import get_logger
from backoffice.core.result import Err, Ok, Result
from backoffice.models.account_models import User
from backoffice.models.audit_models import AdSetEditLog
from backoffice.models.edit_models import (
    AdSetChanges,
    EditAdSetRequest,
    FieldChange,
    TargetingUpdate,
)
from backoffice.models.marketing_models import AudienceRef

logger = get_logger("editor.adset")

MIN_AGE = 13
MAX_AGE = 65
DEFAULT_AGE_MIN = 18
DEFAULT_AGE_MAX = 65
MIN_DAILY_BUDGET = 1  # currency units
VALID_GENDERS = frozenset({1, 2})
GEO_KEYS = ("countries", "cities", "regions")
AUDIENCE_KEYS = ("custom_audiences", "excluded_custom_audiences")

CAMPAIGN_BUDGET_OPTIMIZATION = ErrorDetail(
    status_code=400,
    error="Campaign uses CBO",
    message=(
        "This ad set belongs to a campaign with Campaign Budget Optimization. "
        "Its daily budget cannot be changed at the ad set level."
    ),
    solution="Change the budget on the campaign instead.",
)

MISSING_GEO_LOCATIONS = ErrorDetail(
    status_code=400,
    error="Missing geo_locations",
    message=(
        "The ad set has no geographic targeting configured. Location cannot "
        "be changed through this interface."
    ),
    solution="Configure the location directly on Meta or contact support.",
)

INVALID_AGE_RANGE = ErrorDetail(
    status_code=400,
    error="Invalid age range",
    message=f"Ages must be between {MIN_AGE} and {MAX_AGE}, with age_min <= age_max.",
    solution="Adjust age_min / age_max and resend.",
)

UNKNOWN_BACKOFFICE_USER = ErrorDetail(
    status_code=401,
    error="Not authenticated",
    message="The acting backoffice user does not exist",
    solution="Please log in and try again",
)

AUDIT_WRITE_FAILED_APPLIED = ErrorDetail(
    status_code=500,
    error="Changes applied on Meta but audit log write failed",
    message="The ad set was updated on Meta, but the edit could not be recorded.",
    solution="Do not resend the change. Record it manually and contact support.",
)

AUDIT_WRITE_FAILED = ErrorDetail(
    status_code=500,
    error="Failed to apply changes to Meta",
    message="Meta rejected the update and the attempt could not be recorded.",
    solution="Please try again later.",
)


@dataclass
class AdSetChangeSet:
    """Everything the apply and log steps need from the diff."""

    graph_params: Dict[str, str]
    changes: AdSetChanges
    previous_daily_budget: Optional[str] = None
    new_daily_budget: Optional[str] = None
    previous_targeting: Optional[Dict[str, Any]] = None
    new_targeting: Optional[Dict[str, Any]] = None


@dataclass
class EditOutcome:
    log: AdSetEditLog
    changes: AdSetChanges = field(default_factory=AdSetChanges)

    @property
    def applied(self) -> bool:
        return self.log.applied_to_meta


# ── Validation ──


def validate_edit_request(request: EditAdSetRequest) -> None:
    """Reject malformed edits before anything touches Meta or the database."""
    if not request.user_id:
        raise bad_request(
            "Missing userId",
            "userId is required in the request body",
            "Provide userId to identify which user's token to use",
        )

    if not request.note or not request.note.strip():
        raise bad_request(
            "Missing note",
            "A note explaining the change is required",
            "Provide a note to explain why this change is being made",
        )

    has_budget = request.daily_budget is not None
    has_targeting = request.targeting is not None and request.targeting.has_changes()
    if not has_budget and not has_targeting:
        raise bad_request(
            "No changes provided",
            "At least one of dailyBudget or targeting must be provided",
            "Provide dailyBudget and/or targeting fields to update",
        )

    if has_budget and (
        not math.isfinite(request.daily_budget) or request.daily_budget < MIN_DAILY_BUDGET
    ):
        raise bad_request(
            "Invalid budget",
            f"dailyBudget must be at least {MIN_DAILY_BUDGET}",
            "Provide the daily budget in currency units, e.g. 40 for 40.00",
        )

    if has_targeting:
        _validate_targeting(request.targeting)


def _validate_targeting(targeting: TargetingUpdate) -> None:
    for age in (targeting.age_min, targeting.age_max):
        if age is not None and not MIN_AGE <= age <= MAX_AGE:
            raise ApiError.from_detail(INVALID_AGE_RANGE)
    if (
        targeting.age_min is not None
        and targeting.age_max is not None
        and targeting.age_min > targeting.age_max
    ):
        raise ApiError.from_detail(INVALID_AGE_RANGE)
    if targeting.genders is not None and not set(targeting.genders) <= VALID_GENDERS:
        raise bad_request(
            "Invalid genders",
            "genders may only contain 1 (male) and 2 (female)",
            "Send an empty list to target all genders",
        )


# ── Diff ──


def to_minor_units(amount: float) -> str:
    """40 → "4000"; rounds half up like the UI does."""
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return str(int(cents))


def _clean_geo(geo: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not geo:
        return {}
    return {key: geo[key] for key in GEO_KEYS if geo.get(key)}


def _audience_dicts(items: Optional[List[Any]]) -> List[Dict[str, Any]]:
    refs = []
    for item in items or []:
        if isinstance(item, AudienceRef):
            refs.append(item.model_dump(exclude_none=True))
        else:
            ref = {"id": str(item["id"])}
            if item.get("name"):
                ref["name"] = item["name"]
            refs.append(ref)
    return refs


def _first_set(*values: Any) -> Any:
    return next((v for v in values if v is not None), None)


def merge_targeting(
    previous: Optional[Dict[str, Any]], update: TargetingUpdate
) -> Result[Dict[str, Any], ErrorDetail]:
    """Field-level override of the previous targeting.

    Each supported field takes the requested value when given, otherwise the
    previous one. Geography always comes from the previous targeting.
    Audience entries keep their names; see ``to_graph_targeting``.
    """
    previous = previous or {}
    geo = _clean_geo(previous.get("geo_locations"))
    if not geo:
        return Err(MISSING_GEO_LOCATIONS)

    merged: Dict[str, Any] = {
        "geo_locations": geo,
        "age_min": _first_set(update.age_min, previous.get("age_min"), DEFAULT_AGE_MIN),
        "age_max": _first_set(update.age_max, previous.get("age_max"), DEFAULT_AGE_MAX),
    }
    if merged["age_min"] > merged["age_max"]:
        return Err(INVALID_AGE_RANGE)

    genders = update.genders if update.genders is not None else previous.get("genders")
    if genders:
        merged["genders"] = list(genders)

    for key in AUDIENCE_KEYS:
        requested = getattr(update, key)
        audiences = _audience_dicts(
            requested if requested is not None else previous.get(key)
        )
        if audiences:
            merged[key] = audiences

    return Ok(merged)


def to_graph_targeting(targeting: Dict[str, Any]) -> Dict[str, Any]:
    """Meta only takes audience ids; names are stripped."""
    payload = dict(targeting)
    for key in AUDIENCE_KEYS:
        if key in payload:
            payload[key] = [{"id": a["id"]} for a in payload[key]]
    return payload


def compute_adset_changes(
    current: Dict[str, Any], request: EditAdSetRequest
) -> Result[AdSetChangeSet, ErrorDetail]:
    """Diff a validated request against the ad set as Meta reports it."""
    raw_budget = current.get("daily_budget")
    previous_budget = str(raw_budget) if raw_budget not in (None, "") else None
    previous_targeting = current.get("targeting") or None

    change_set = AdSetChangeSet(
        graph_params={},
        changes=AdSetChanges(),
        previous_daily_budget=previous_budget,
        previous_targeting=previous_targeting,
    )

    if request.daily_budget is not None:
        # No ad set budget means the campaign owns it
        if previous_budget is None:
            return Err(CAMPAIGN_BUDGET_OPTIMIZATION)
        new_budget = to_minor_units(request.daily_budget)
        change_set.new_daily_budget = new_budget
        change_set.graph_params["daily_budget"] = new_budget
        change_set.changes.daily_budget = FieldChange(previous=previous_budget, new=new_budget)

    if request.targeting is not None and request.targeting.has_changes():
        merged = merge_targeting(previous_targeting, request.targeting)
        if isinstance(merged, Err):
            return merged
        change_set.new_targeting = merged.value
        change_set.graph_params["targeting"] = json.dumps(to_graph_targeting(merged.value))
        change_set.changes.targeting = FieldChange(
            previous=previous_targeting, new=merged.value
        )

    return Ok(change_set)


# ── Orchestrator ──


class AdSetEditor:
    """Applies one admin edit to one ad set and records it."""

    def __init__(self, client: GraphClient, session: Session):
        self.client = client
        self.session = session

    async def edit(
        self,
        backoffice_user_id: str,
        account_id: str,
        adset_id: str,
        request: EditAdSetRequest,
    ) -> EditOutcome:
        """Run the edit.

        Raises ``ApiError`` for rejected requests and ``GraphApiError`` when
        the current state cannot be fetched; neither writes a log row. A
        failed update on Meta does not raise: it is logged and reported
        through ``EditOutcome.applied``.
        """
        validate_edit_request(request)

        # The log row references users.id; check before anything reaches Meta
        if self.session.get(User, backoffice_user_id) is None:
            raise ApiError.from_detail(UNKNOWN_BACKOFFICE_USER)

        token = resolve_token(self.session, request.user_id)
        if isinstance(token, Err):
            raise ApiError.from_detail(token.error)

        endpoints = MarketingEndpoints(self.client, token.value)
        current = await endpoints.get_adset_state(adset_id)

        diff = compute_adset_changes(current, request)
        if isinstance(diff, Err):
            logger.info(
                f"Edit rejected: {diff.error.error}", extra={"entity_id": adset_id}
            )
            raise ApiError.from_detail(diff.error)
        change_set = diff.value

        applied = True
        error_message = None
        try:
            await endpoints.update_adset(adset_id, change_set.graph_params)
        except Exception as e:
            error_return = error_to_graph_error_return(e)
            applied = False
            error_message = f"{error_return.reason.title}: {error_return.reason.message}"
            logger.warning(
                f"Ad set update not applied on Meta: {e}",
                exc_info=error_return.data is None,
                extra={"entity_id": adset_id, "status_code": error_return.status_code},
            )

        log = AdSetEditLog(
            backoffice_user_id=backoffice_user_id,
            target_user_id=request.user_id,
            adset_id=adset_id,
            account_id=normalize_account_id(account_id),
            campaign_id=request.campaign_id or current.get("campaign_id"),
            adset_name=request.adset_name or current.get("name"),
            previous_daily_budget=change_set.previous_daily_budget,
            new_daily_budget=change_set.new_daily_budget,
            previous_targeting=change_set.previous_targeting,
            new_targeting=change_set.new_targeting,
            note=request.note.strip(),
            applied_to_meta=applied,
            error_message=error_message,
        )
        try:
            self.session.add(log)
            self.session.commit()
            self.session.refresh(log)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Audit log write failed (applied={applied}): {e}",
                exc_info=True,
                extra={
                    "entity_id": adset_id,
                    "account_id": log.account_id,
                    "user_id": backoffice_user_id,
                },
            )
            raise ApiError.from_detail(
                AUDIT_WRITE_FAILED_APPLIED if applied else AUDIT_WRITE_FAILED
            )

        logger.info(
            f"Ad set edit logged (applied={applied})",
            extra={
                "entity_id": adset_id,
                "account_id": log.account_id,
                "user_id": backoffice_user_id,
            },
        )
        return EditOutcome(log=log, changes=change_set.changes)
