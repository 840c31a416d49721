"""FastAPI application factory.

APP_ROLE picks what gets mounted: ``public`` serves the reservation API,
``worker`` serves it too and adds the task endpoints that deliver
notifications.
"""

import os
from typing import Literal

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from lodgely.api.errors import STATUS_BY_CODE
from lodgely.domain.errors import ReservationError
from lodgely.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context

from .routers import public, worker

AppRole = Literal["public", "worker"]

ROLES: tuple[str, ...] = ("public", "worker")

logger = get_logger(__name__)


def _install_correlation(app: FastAPI) -> None:
    @app.middleware("http")
    async def bind_correlation_id(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response


def _install_error_handlers(app: FastAPI) -> None:
    # Routes translate the errors they expect; this catches the rest
    @app.exception_handler(ReservationError)
    async def reservation_error(request: Request, exc: ReservationError) -> JSONResponse:
        status = STATUS_BY_CODE.get(exc.code, 500)
        logger.warning(
            "unhandled reservation error",
            extra={"extra_fields": safe_log_context(code=exc.code, path=request.url.path)},
        )
        return JSONResponse(status_code=status, content={"detail": exc.to_dict()})


def create_app(role: AppRole | None = None) -> FastAPI:
    """Build the app for ``role`` (APP_ROLE when None, default "public").

    Raises:
        ValueError: Unknown role.
    """
    role = role or os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]
    if role not in ROLES:
        raise ValueError(f"Unknown APP_ROLE: {role}")

    app = FastAPI(title="Lodgely Reservations", docs_url=None, redoc_url=None)
    _install_correlation(app)
    _install_error_handlers(app)

    app.include_router(public.router)
    if role == "worker":
        app.include_router(worker.router)
    return app
