"""Backoffice — Graph API Error Mapping.

Classifies Graph error payloads (code + optional subcode) into a small table
of actionable categories. Lookup is total: anything unknown resolves to the
generic entry.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from backoffice.core.errors import ErrorDetail

RETRY_SOLUTION = "Try again. If the problem persists, contact support."


@dataclass(frozen=True)
class MappedError:
    http_status_code: int
    title: str
    message: str
    solution: str
    is_transient: bool


@dataclass(frozen=True)
class GraphErrorInfo:
    """The ``error`` object of a Graph API response."""

    message: str
    type: str
    code: int
    error_subcode: Optional[int] = None
    error_user_title: Optional[str] = None
    error_user_msg: Optional[str] = None
    fbtrace_id: Optional[str] = None


@dataclass(frozen=True)
class GraphErrorReturn:
    status_code: int
    reason: MappedError
    data: Optional[GraphErrorInfo] = None

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(
            status_code=self.status_code,
            error=self.reason.title,
            message=self.reason.message,
            solution=self.reason.solution,
        )


class GraphApiError(Exception):
    """A failed Graph API call, already classified."""

    def __init__(self, error_return: GraphErrorReturn):
        self.error_return = error_return
        super().__init__(error_return.reason.message)


GENERIC_ERROR = MappedError(
    http_status_code=500,
    title="Unknown Error",
    message="An unexpected error occurred while processing your request.",
    solution=RETRY_SOLUTION,
    is_transient=True,
)

# Matches any subcode under a code
ANY_SUBCODE = None

ERROR_MAP: Dict[int, Dict[Optional[int], MappedError]] = {
    102: {
        ANY_SUBCODE: MappedError(
            http_status_code=401,
            title="API Session",
            message="The login status or access token has expired, was revoked, or is invalid.",
            solution="Obtain a new access token and try again.",
            is_transient=False,
        ),
    },
    190: {
        ANY_SUBCODE: MappedError(
            http_status_code=401,
            title="Access Token Expired",
            message="The access token has expired, was revoked, or is invalid.",
            solution="Have the user reconnect their Facebook account, then try again.",
            is_transient=False,
        ),
    },
    200: {
        ANY_SUBCODE: MappedError(
            http_status_code=403,
            title="Permission Error",
            message="The user does not have permission to perform this action.",
            solution="Check that the user has the permissions this operation requires.",
            is_transient=False,
        ),
    },
    294: {
        ANY_SUBCODE: MappedError(
            http_status_code=403,
            title="ads_management Permission Required",
            message=(
                "Managing ads requires the extended ads_management permission "
                "and an app allowed to use the Marketing API."
            ),
            solution="Request ads_management and confirm the app has Marketing API access.",
            is_transient=False,
        ),
    },
}


def find_mapped_error(code: int, subcode: Optional[int] = None) -> MappedError:
    """Exact (code, subcode) match, then code-only, then the generic entry."""
    by_subcode = ERROR_MAP.get(code)
    if not by_subcode:
        return GENERIC_ERROR
    if subcode is not None and subcode in by_subcode:
        return by_subcode[subcode]
    return by_subcode.get(ANY_SUBCODE, GENERIC_ERROR)


def _is_graph_error_payload(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    error = payload.get("error")
    if not isinstance(error, dict):
        return False
    return (
        isinstance(error.get("message"), str)
        and isinstance(error.get("type"), str)
        and isinstance(error.get("code"), int)
        and not isinstance(error.get("code"), bool)
    )


def parse_graph_error(payload: Any) -> GraphErrorReturn:
    """Turn a raw response body into a classified error return."""
    if not _is_graph_error_payload(payload):
        return GraphErrorReturn(status_code=500, reason=GENERIC_ERROR)

    error = payload["error"]
    subcode = error.get("error_subcode")
    info = GraphErrorInfo(
        message=error["message"],
        type=error["type"],
        code=error["code"],
        error_subcode=subcode if isinstance(subcode, int) else None,
        error_user_title=error.get("error_user_title"),
        error_user_msg=error.get("error_user_msg"),
        fbtrace_id=error.get("fbtrace_id"),
    )
    mapped = find_mapped_error(info.code, info.error_subcode)
    return GraphErrorReturn(
        status_code=mapped.http_status_code, reason=mapped, data=info
    )


INTERNAL_ERROR = MappedError(
    http_status_code=500,
    title="Internal server error",
    message="An unexpected error occurred while processing your request.",
    solution=RETRY_SOLUTION,
    is_transient=True,
)


def error_to_graph_error_return(error: BaseException) -> GraphErrorReturn:
    """Single conversion point from any raised error to a status + reason.

    Non-Graph errors get a fixed message; their text (SQL, ids) stays in
    the server log.
    """
    if isinstance(error, GraphApiError):
        return error.error_return
    return GraphErrorReturn(status_code=500, reason=INTERNAL_ERROR)
