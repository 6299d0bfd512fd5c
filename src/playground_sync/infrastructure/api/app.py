"""FastAPI application setup and lifecycle management."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ... import __version__
from ...constants.errors import ErrorMessages
from ...domain.rendezvous.engine import RendezvousEngine
from ...domain.rendezvous.interfaces import RendezvousEngineInterface
from ..config.models import HttpConfig
from .endpoints import router

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Collapse pydantic validation errors into one readable message."""
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        return ErrorMessages.INVALID_JSON

    parts = []
    for error in errors:
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part != "body"
        )
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or ErrorMessages.INVALID_JSON


def create_app(
    engine: Optional[RendezvousEngineInterface] = None,
    http_config: Optional[HttpConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    engine : Optional[RendezvousEngineInterface], default=None
        Engine shared with the consumer surface. A fresh engine is created
        when omitted.
    http_config : Optional[HttpConfig], default=None
        HTTP settings. Defaults apply when omitted.

    Returns
    -------
    FastAPI
        Configured FastAPI application instance. The engine is available
        as ``app.state.engine``.
    """
    engine = engine or RendezvousEngine()
    http_config = http_config or HttpConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Release suspended submitters when the server stops."""
        logger.info("Submission API started")
        yield
        engine.shutdown()

    app = FastAPI(
        title="Playground Sync",
        description="Rendezvous broker between a browser playground and an assistant",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.engine = engine
    app.state.http_config = http_config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=http_config.cors_origins or ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def malformed_submission_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_validation_error(exc)
        logger.warning(f"Rejected malformed submission: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = ErrorMessages.NOT_FOUND if exc.status_code == 404 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": detail},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(router)

    return app
