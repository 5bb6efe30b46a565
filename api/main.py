"""
api/main.py -- FastAPI application entry point for DevConnect.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (stores) and shutdown (dispose engines) symmetrically.

Error bodies follow the shapes the DevConnect client already parses:
  400 {"errors": [{"msg": ..., "param": ...}]}  validation / bad credentials
  400 {"msg": ...}                              not found
  401 {"msg": ...}                              missing or invalid token
  500 {"msg": "Server Error"}                   anything else; detail is logged only
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import CUSTOM_ERROR_TYPE, FIELD_MESSAGES, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.profile import router as profile_router
from auth.store import UserStore
from core.config import get_settings
from core.errors import DevConnectError, InvalidCredentials, StoreError, ValidationError
from profiles.store import ProfileStore

VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.DEBUG if _settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("devconnect.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the stores on startup and dispose their engines on shutdown.

    Both stores point at the same database; the profiles table joins users.
    """
    logger.info("DevConnect API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.profile_store = ProfileStore(_settings.database_url)
    logger.info("Stores initialized")

    yield

    app.state.profile_store.close()
    app.state.user_store.close()
    logger.info("DevConnect API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="DevConnect API",
    description="Developer profiles: accounts, bearer-token auth, experience and education history.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "x-auth-token"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
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
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(profile_router, prefix="/api", tags=["Profile"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _server_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"msg": "Server Error"})


def _field_errors(exc: RequestValidationError) -> list[dict]:
    """Reshape pydantic errors into [{"msg", "param"}], one entry per field.

    Messages come from FIELD_MESSAGES so clients see the same wording whether
    a field is missing, empty, or malformed. Validators that raise a
    CUSTOM_ERROR_TYPE error already carry a client-facing message.
    """
    errors: list[dict] = []
    seen: set[str] = set()
    for err in exc.errors():
        loc = [part for part in err.get("loc", ()) if part != "body"]
        param = str(loc[-1]) if loc else ""
        if param in seen:
            continue
        seen.add(param)
        if err.get("type") == CUSTOM_ERROR_TYPE:
            msg = err["msg"]
        else:
            msg = FIELD_MESSAGES.get(param, err.get("msg", "Invalid value"))
        entry = {"msg": msg}
        if param:
            entry["param"] = param
        errors.append(entry)
    return errors


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(status_code=429, content={"msg": "Too many requests"})
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"errors": _field_errors(exc)})


@app.exception_handler(DevConnectError)
async def devconnect_error_handler(request: Request, exc: DevConnectError) -> JSONResponse:
    """Render the core/errors.py taxonomy.

    ValidationError and InvalidCredentials use the "errors" list shape; the
    others use a single "msg". StoreError detail stays in the log.
    """
    if isinstance(exc, StoreError):
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc.message)
        return _server_error()
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=exc.status_code, content={"errors": exc.errors})
    if isinstance(exc, InvalidCredentials):
        resp = JSONResponse(status_code=exc.status_code, content={"errors": [{"msg": exc.message}]})
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _server_error()


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _server_error()


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit -- health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
