"""
api/main.py -- FastAPI application factory for punchline.

Run with:      uvicorn asgi:app --reload
               python main.py serve

create_app() takes an explicit Settings instance (or builds one from the
environment). Building Settings fails without SESSION_SECRET, so a
misconfigured process never gets as far as serving a request. The session
codec and cookie storage are constructed here from that Settings instance
and handed to routes through app.state -- nothing reads the secret globally.

Middleware stack (outermost to innermost):
  1. log_requests          -- one log line per request with latency
  2. TrustedHostMiddleware -- rejects requests with unexpected Host headers

Lifespan opens the stores on startup and closes them on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from auth.session import CookieSessionStorage
from auth.store import UserStore
from auth.tokens import SessionCodec
from core.config import Settings, get_settings
from jokes.store import JokeStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("punchline.api")


# ---------------------------------------------------------------------------
# Lifespan -- store setup and teardown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup; dispose their engines on shutdown.

    Both stores may share one database URL; each creates only its own tables.
    """
    settings: Settings = app.state.settings
    logger.info("punchline starting up (environment=%s)", settings.environment)
    app.state.user_store = UserStore(settings.database_url)
    app.state.joke_store = JokeStore(settings.database_url)
    logger.info("Stores initialized")

    yield

    app.state.joke_store.close()
    app.state.user_store.close()
    logger.info("punchline shutdown complete")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with a structured error when path, query or body parsing fails."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="bad_request",
                message="The request could not be parsed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render any HTTPException as the error envelope.

    Route handlers raise HTTPException with detail={"code": ..., "message": ...}.
    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer anything unhandled with a generic 500.

    The raw exception goes to the log only, never to the response body. The
    client receives a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the punchline application from settings.

    The web router is NOT included here; asgi.py mounts it. api/ and web/
    stay independent layers.
    """
    settings = settings or get_settings()
    logging.getLogger("punchline").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="punchline",
        description="Share short jokes. Anyone can read; registered users post and delete their own.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_storage = CookieSessionStorage(
        SessionCodec(settings.session_secret, settings.session_max_age),
        secure=settings.secure_cookies,
    )

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.middleware("http")(log_requests)

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Health is defined on the app itself so it is reachable regardless of
    # router registration state.
    @app.get("/api/v1/health", tags=["Health"])
    async def health() -> HealthResponse:
        """Return API liveness and current version."""
        return HealthResponse(version=__version__)

    return app
