"""
api/main.py -- FastAPI application entry point for CompanyHub.

Run with:  uvicorn asgi:app --reload
           python main.py --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. log_requests          -- method, path, status, latency
  5. attach_identity       -- runs the auth gateway, sets request.state.identity

Lifespan builds every auth service once (store, registry, hasher, minter,
orchestrator, gateway), parks them on app.state, and closes the store and
registry on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.errors import AuthError
from auth.gateway import AuthGateway
from auth.passwords import PasswordHasher
from auth.registry import TokenRegistry
from auth.service import AuthService
from auth.store import IdentityStore
from auth.tokens import TokenMinter
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("companyhub.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_services(app: FastAPI, store: IdentityStore, registry: TokenRegistry, hasher: PasswordHasher) -> None:
    """Wire the auth services onto app.state.

    Shared by the real lifespan and the test lifespan so both build the
    orchestrator and gateway the same way.
    """
    settings = app.state.settings
    minter = TokenMinter.from_settings(settings, registry)
    app.state.identity_store = store
    app.state.token_registry = registry
    app.state.auth_service = AuthService(store, hasher, minter)
    app.state.gateway = AuthGateway(minter, registry)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: load settings, connect store and registry. Shutdown: close both."""
    logger.info("CompanyHub API starting up")
    settings = get_settings()
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    limiter.enabled = settings.rate_limit_enabled

    store = IdentityStore(settings.database_url, timeout=settings.db_timeout_seconds)
    logger.info("Credential store initialized")
    registry = TokenRegistry.from_url(settings.redis_url, timeout=settings.redis_timeout_seconds)
    if registry.ping():
        logger.info("Token registry connected")
    else:
        logger.warning("Token registry unreachable -- login, refresh and revocation checks will fail")
    build_services(app, store, registry, PasswordHasher(rounds=settings.bcrypt_rounds))

    yield

    app.state.identity_store.close()
    app.state.token_registry.close()
    logger.info("CompanyHub API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="CompanyHub API",
    description="Authentication core: registration, login, token refresh and revocation.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# @app.middleware("http") functions are registered first so they sit inside
# the add_middleware() layers; each add_middleware() call wraps everything
# registered before it, so the last one added is outermost.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def attach_identity(request: Request, call_next):
    """Run the auth gateway and attach the result as request.state.identity.

    Never rejects. Routes that need an identity use require_identity().
    """
    gateway: AuthGateway = request.app.state.gateway
    request.state.identity = await run_in_threadpool(gateway.authenticate, request.headers.get("Authorization"))
    return await call_next(request)


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


app.add_middleware(SlowAPIMiddleware)

_settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])

# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate the auth core's failure kinds into the error envelope."""
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return _error(exc.status_code, exc.code, exc.message)
    logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.code, exc.message, exc.detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a Retry-After header when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing body fields are bad input (400), same kind as rule violations."""
    return _error(400, "validation_error", "Request validation failed.", jsonable_encoder(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only. The message reaches the client
    only when DEBUG is on.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    detail = str(exc) if get_settings().debug else None
    return _error(500, "internal_error", "An unexpected error occurred.", detail)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness plus the reachability of the credential store and token registry."""
    components = {
        "app": "ok",
        "database": "ok" if request.app.state.identity_store.ping() else "error",
        "registry": "ok" if request.app.state.token_registry.ping() else "error",
    }
    status = "healthy" if all(v == "ok" for v in components.values()) else "degraded"
    return HealthResponse(
        status=status,
        version=VERSION,
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
    )
