"""
FastAPI Application

Builds the HTTP surface around the orchestrator flows. Every route is
mounted twice: at the root (/income) and under /api (/api/income).

All error translation happens in the handlers registered here:
- BudgetTrackerError subclasses map to their own status and kind
- request parsing failures become 400 validation errors
- unknown routes get the same error envelope
- anything else is logged with its stack trace and returned as a 500
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from budget_tracker import __version__
from budget_tracker.api.responses import error
from budget_tracker.api.routes import ROUTERS
from budget_tracker.config import AppSettings, get_settings
from budget_tracker.errors import BudgetTrackerError
from budget_tracker.orchestrator import AppComponents, create_app_components


logger = structlog.get_logger("budget_tracker.api")

API_PREFIX = "/api"

# Request parts FastAPI prefixes onto error locations
_LOCATION_ROOTS = {"body", "query", "path", "header"}


def _request_error_fields(exc: RequestValidationError) -> dict[str, list[str]]:
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        if len(loc) > 1 and loc[0] in _LOCATION_ROOTS:
            loc = loc[1:]
        name = ".".join(str(part) for part in loc) or "body"
        fields.setdefault(name, []).append(err.get("msg", "Invalid value"))
    return fields


def register_exception_handlers(app: FastAPI, settings: AppSettings) -> None:

    @app.exception_handler(BudgetTrackerError)
    async def handle_budget_tracker_error(request: Request, exc: BudgetTrackerError):
        return error(exc.status_code, exc.message, exc.kind, getattr(exc, "fields", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return error(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            "validation_error",
            _request_error_fields(exc),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return error(exc.status_code, f"Route {request.method} {request.url.path} not found", "not_found")
        return error(exc.status_code, str(exc.detail), "http_error")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error",
            method=request.method,
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        request.app.state.components.audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"method": request.method, "path": request.url.path},
        )
        message = str(exc) if settings.debug_mode else "Internal server error"
        return error(status.HTTP_500_INTERNAL_SERVER_ERROR, message, "internal_error")


def create_app(
    components: Optional[AppComponents] = None,
    settings: Optional[AppSettings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        components: Pre-built flows (tests pass an in-memory store here)
        settings: App settings; defaults to the environment
    """
    settings = settings or get_settings().app
    app = FastAPI(title="Budget Tracker API", version=__version__)
    app.state.components = components or create_app_components(settings=settings)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    for router in ROUTERS:
        app.include_router(router)
        app.include_router(router, prefix=API_PREFIX)

    logger.info(
        "app_created",
        environment=settings.app_environment,
        routes=len(app.routes),
    )
    return app
