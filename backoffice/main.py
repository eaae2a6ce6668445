"""Backoffice — FastAPI Application Entry Point.

Admin API proxying the Meta Marketing API for connected users, with an
audit trail of manual ad set edits.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from backoffice.api.adset_edit_routes import router as adset_edit_router
from backoffice.api.marketing_routes import router as marketing_router
from backoffice.api.user_routes import router as user_router
from backoffice.api.responses import error_response
from backoffice.config import settings
from backoffice.core.errors import ApiError, ErrorDetail
from backoffice.core.logging import get_logger
from backoffice.database import init_db, test_connection

logger = get_logger("main")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("Backoffice starting up...")
    if test_connection():
        try:
            init_db()
        except Exception as e:
            logger.error(f"Table creation failed: {e}")
    else:
        logger.error("Database NOT connected — endpoints will fail")
    if not settings.admin_email_set:
        logger.warning("ADMIN_EMAILS is empty — every request will be rejected")
    yield
    logger.info("Backoffice shut down")


app = FastAPI(
    title="Backoffice",
    description="Admin backoffice API — Meta Marketing proxy with ad set edit audit log.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.detail.message}")
    return error_response(exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return error_response(
        ErrorDetail(
            status_code=400,
            error="Invalid request",
            message=problems or "The request could not be parsed",
            solution="Correct the request fields and try again",
        )
    )


app.include_router(user_router)
app.include_router(marketing_router)
app.include_router(adset_edit_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "backoffice",
        "version": VERSION,
    }
