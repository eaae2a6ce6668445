"""Backoffice — Local (non-Graph) request errors."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Uniform error body: ``{error, message, solution?}`` plus its HTTP status."""

    status_code: int
    error: str
    message: str
    solution: Optional[str] = None

    def body(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"status_code"}, exclude_none=True)


class ApiError(Exception):
    """Raised for request-level failures decided locally (400/401/404/500)."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        solution: Optional[str] = None,
    ):
        self.detail = ErrorDetail(
            status_code=status_code, error=error, message=message, solution=solution
        )
        super().__init__(message)

    @classmethod
    def from_detail(cls, detail: ErrorDetail) -> "ApiError":
        return cls(detail.status_code, detail.error, detail.message, detail.solution)

    @property
    def status_code(self) -> int:
        return self.detail.status_code


def bad_request(error: str, message: str, solution: Optional[str] = None) -> ApiError:
    return ApiError(400, error, message, solution)


NOT_AUTHENTICATED = ErrorDetail(
    status_code=401,
    error="Not authenticated",
    message="You must be logged in to access this resource",
    solution="Please log in and try again",
)

MISSING_USER_ID = ErrorDetail(
    status_code=400,
    error="Missing userId",
    message="userId query parameter is required",
    solution="Provide userId to identify which user's token to use",
)
