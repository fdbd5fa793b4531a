"""FastAPI application factory for the kcert admin API.

Usage::

    from kcert.api.app import create_app

    app = create_app(supervisor=supervisor, settings=settings)

The factory is used by both the production bootstrap (``kcert.app``) and
unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kcert.api.routes import metrics_router, router
from kcert.api.schemas import ErrorResponse
from kcert.errors import InvalidSettingsError

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def create_app(supervisor: Any, settings: Any) -> FastAPI:
    """Create and configure the kcert admin application.

    Args:
        supervisor: RenewalSupervisor instance.
        settings:   RenewalSettingsStore instance.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kcert import __version__

    app = FastAPI(
        title="kcert",
        summary="Ingress certificate renewal scheduler",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url=None,
        openapi_url="/api/v1/openapi.json",
    )

    app.state.supervisor = supervisor
    app.state.settings = settings

    app.include_router(router, prefix=_API_PREFIX)
    app.include_router(metrics_router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors to our error envelope."""
        errors = exc.errors()
        first_msg = ""
        first_field = ""
        if errors:
            locs = errors[0].get("loc", ())
            first_field = str(locs[-1]) if locs else ""
            first_msg = str(errors[0].get("msg", ""))
        detail = f"{first_field}: {first_msg}" if first_field else first_msg
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_SETTINGS", detail=detail).model_dump(),
        )

    @app.exception_handler(InvalidSettingsError)
    async def settings_exception_handler(
        _request: Request,
        exc: InvalidSettingsError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_SETTINGS", detail=str(exc)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
