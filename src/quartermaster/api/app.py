"""FastAPI application wiring for Quartermaster."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from quartermaster.api import routes
from quartermaster.api.runtime import ApiState, build_state
from quartermaster.config import get_settings
from quartermaster.domain.errors import ExternalUnavailable, QuartermasterError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_domain_error(request: Request, exc: QuartermasterError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


_LOCATIONS = {"body", "path", "query", "header"}


def validation_message(errors: Sequence[Mapping[str, Any]]) -> str:
    """Summarize request validation errors as one sentence.

    A body that is not JSON, or no body at all, is ``Invalid JSON``;
    otherwise the first offending field is named.
    """
    if not errors:
        return "Invalid request"
    for error in errors:
        if error.get("type") == "json_invalid":
            return "Invalid JSON"

    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in _LOCATIONS)
    if not field:
        return "Invalid JSON"
    if first.get("type") == "missing":
        return f"{field} is required"
    return f"Invalid {field}"


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, validation_message(exc.errors()))


async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("data store error on %s %s", request.method, request.url.path)
    unavailable = ExternalUnavailable("Data store request failed")
    return _error(unavailable.status_code, unavailable.message)


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Instantiate the FastAPI application with routing and lifecycle hooks."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = state_factory()
        app.state.api_state = state
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(title="Quartermaster API", version="0.1.0", lifespan=lifespan)
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(QuartermasterError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_store_error)
    app.include_router(routes.router)
    return app


app = create_app()
