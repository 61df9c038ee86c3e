"""
api/main.py -- FastAPI application entry point for the booking portal auth API.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. log_requests          -- assigns a request id and logs every response

Lifespan creates the shared credential collaborators (identity store,
password hasher, token issuer) on startup and closes the store on shutdown.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.errors import CredentialError, InvalidInput
from auth.passwords import PasswordHasher
from auth.store import IdentityStore
from auth.tokens import TokenIssuer
from core.config import get_settings

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("bookingportal.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the credential collaborators once and share them across requests.

    None of them hold per-request state, so one instance of each is safe to
    use from every worker thread.
    """
    logger.info("Booking portal auth API starting up")
    app.state.identity_store = IdentityStore(_settings.database_url)
    app.state.password_hasher = PasswordHasher(rounds=_settings.bcrypt_rounds)
    app.state.token_issuer = TokenIssuer.from_settings(_settings)
    logger.info(
        "Auth initialized (token_expire_seconds=%d, bcrypt_rounds=%d)",
        _settings.token_expire_seconds,
        _settings.bcrypt_rounds,
    )

    yield

    app.state.identity_store.close()
    logger.info("Booking portal auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Booking Portal Auth API",
    description="Registration, login and session tokens for the hotel and business booking portal.",
    version=API_VERSION,
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
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request gets an id (the caller's X-Request-ID if it sent one). The id
# is stored on request.state so auth.dependencies can tag the credential
# service's log lines with it, and echoed back on the response.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "[%s] %s %s %d %.1fms %s",
        request_id,
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


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse body, {"error": <text>, "code":
# <reason>}, so API clients can show `error` directly and branch on `code`.
# ---------------------------------------------------------------------------


def _error_body(message: str, code: str, detail: str | None = None) -> dict:
    return ErrorResponse(error=message, code=code, detail=detail).model_dump(exclude_none=True)


@app.exception_handler(CredentialError)
async def credential_error_handler(request: Request, exc: CredentialError) -> JSONResponse:
    """Render register/login outcomes. The message is always the generic client text.

    The underlying cause was already logged by the credential service.
    """
    response = JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.code))
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=_error_body("Too many requests.", "rate_limited", detail=str(exc.detail)),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 invalid_input when a request body fails schema validation.

    Covers malformed JSON, non-string values and over-long fields. The pydantic
    error list is logged, not returned.
    """
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content=_error_body(InvalidInput.default_message, InvalidInput.code),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    A dict detail carries its own code and message.
    """
    if isinstance(exc.detail, dict):
        content = _error_body(
            exc.detail.get("message", ""),
            exc.detail.get("code", f"http_{exc.status_code}"),
        )
    else:
        content = _error_body(str(exc.detail), f"http_{exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred.", "internal_error"),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No rate limit applied -- health checks must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/health", include_in_schema=True, tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)
