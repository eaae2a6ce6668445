"""Backoffice — JSON Error Responses."""

from fastapi.responses import JSONResponse

from backoffice.connectors.meta.errors import GraphApiError, error_to_graph_error_return
from backoffice.core.errors import ErrorDetail
from backoffice.core.logging import get_logger

logger = get_logger("api.errors")


def error_response(detail: ErrorDetail) -> JSONResponse:
    return JSONResponse(status_code=detail.status_code, content=detail.body())


def failure_response(error: Exception, action: str) -> JSONResponse:
    """Map any error raised while serving ``action`` to the uniform error body."""
    error_return = error_to_graph_error_return(error)
    unexpected = not isinstance(error, GraphApiError)
    logger.error(
        f"Error {action}: {error_return.reason.title}: "
        f"{error if unexpected else error_return.reason.message}",
        exc_info=unexpected,
        extra={"status_code": error_return.status_code},
    )
    return error_response(error_return.to_detail())
