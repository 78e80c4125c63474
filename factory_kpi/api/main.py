from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from factory_kpi.core.logging import configure_logging, correlation_id_var, user_id_var
from factory_kpi.core.settings import get_app_settings
from factory_kpi.db.seed import seed_all
from factory_kpi.db.session import dispose_engine
from factory_kpi.repositories.storage import storage_manager
from factory_kpi.schemas.common import ErrorInfo, ErrorResponse, MessageResponse

# Routers
from factory_kpi.api.routes.auth import profile_router, router as auth_router
from factory_kpi.api.routes.claims import issues_router, router as claims_router
from factory_kpi.api.routes.dashboard import (
    calendars_router,
    preferences_router,
    router as layout_router,
)
from factory_kpi.api.routes.imports import router as imports_router
from factory_kpi.api.routes.kpi import actions_router, activity_router, router as kpi_router
from factory_kpi.api.routes.reports import router as reports_router
from factory_kpi.api.routes.stations import admin_router as stations_admin_router
from factory_kpi.api.routes.stations import data_router, kpi_router as station_kpi_router, summary_router
from factory_kpi.api.routes.users import admin_router as users_admin_router
from factory_kpi.api.routes.users import departments_router, router as users_router

settings = get_app_settings()

CORRELATION_HEADER = "X-Correlation-ID"

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness check."},
    {"name": "Auth", "description": "Login, logout and the current session."},
    {"name": "Profile", "description": "Self-service profile changes."},
    {"name": "Users", "description": "User list, bulk import and administration."},
    {"name": "Departments", "description": "Department administration."},
    {"name": "KPI", "description": "Department KPI values."},
    {"name": "Actions", "description": "Action items raised against departments."},
    {"name": "Activity", "description": "Audit trail."},
    {"name": "Stations", "description": "Production stations, daily entries and station KPIs."},
    {"name": "Claims", "description": "Customer claims and the non-conformity feed."},
    {"name": "Dashboard", "description": "Persisted dashboard layout and preferences."},
    {"name": "Calendars", "description": "Safety, quality, production and premium freight calendars."},
    {"name": "Imports", "description": "Spreadsheet uploads for charts."},
    {"name": "Reports", "description": "Exportable business reports (CSV/Excel/PDF)."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

def _cors_allows_credentials() -> bool:
    """Browsers reject credentialed responses for a '*' origin, so drop credentials there."""
    if settings.CORS_ORIGINS == ["*"] and settings.CORS_ALLOW_CREDENTIALS:
        logger.warning("CORS_ORIGINS is '*'; session cookies will not be sent cross-origin.")
        return False
    return settings.CORS_ALLOW_CREDENTIALS


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=_cors_allows_credentials(),
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=[CORRELATION_HEADER],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Bind a correlation id to the request (taken from X-Correlation-ID or X-Request-ID,
    generated otherwise), log the outcome and echo the id on the response.
    user_id_var is filled in later by get_current_user.
    """
    corr = request.headers.get(CORRELATION_HEADER) or request.headers.get("X-Request-ID") or str(uuid4())
    request.state.correlation_id = corr
    corr_token = correlation_id_var.set(corr)
    user_token = user_id_var.set(None)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
    finally:
        correlation_id_var.reset(corr_token)
        user_id_var.reset(user_token)

    response.headers[CORRELATION_HEADER] = corr
    return response


def _error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Every error leaves the API in the same envelope; 'message' mirrors error.message."""
    body = ErrorResponse(
        message=message,
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Registered on Starlette's class so routing 404/405 get the envelope too
    if isinstance(exc.detail, str):
        return _error_response(request, exc.status_code, "http_error", exc.detail)
    return _error_response(request, exc.status_code, "http_error", "HTTP Error", jsonable_encoder(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies, params and uploads are reported as 400 "Invalid data"."""
    return _error_response(request, 400, "validation_error", "Invalid data", jsonable_encoder(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error processing %s %s", request.method, request.url.path)
    return _error_response(request, 500, "internal_error", "An unexpected error occurred")


@app.on_event("startup")
async def on_startup() -> None:
    """
    Pick the storage backend, then seed demo users and departments when AUTO_SEED is on.

    A SQL backend that cannot be reached falls back to memory when
    STORAGE_FALLBACK_TO_MEMORY is set; otherwise startup fails.
    """
    backend = await storage_manager.initialize()
    logger.info("Storage backend: %s", backend)

    if not get_app_settings().AUTO_SEED:
        return
    try:
        async with storage_manager.open() as storage:
            await seed_all(storage)
    except Exception as exc:
        # The API still serves without demo accounts.
        logger.exception("Seeding step failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await dispose_engine()


api = APIRouter(prefix="/api")


# PUBLIC_INTERFACE
@api.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    description="Liveness check; details.storage names the active backend (sql or memory).",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    return MessageResponse(message="Healthy", details={"storage": storage_manager.backend})


# Include all routers under /api
for sub_router in (
    auth_router,
    profile_router,
    users_router,
    users_admin_router,
    departments_router,
    kpi_router,
    actions_router,
    activity_router,
    stations_admin_router,
    data_router,
    station_kpi_router,
    summary_router,
    claims_router,
    issues_router,
    layout_router,
    preferences_router,
    calendars_router,
    imports_router,
    reports_router,
):
    api.include_router(sub_router)

app.include_router(api)
