"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_current_identity() is the request-authentication step: it reads an
"Authorization: Bearer <token>" header, verifies the token fail-closed, and
loads the identity it names. Anything short of a fully valid token for an
identity that still exists ends in HTTP 401 before the route handler runs.

get_credential_service() builds a CredentialService for one request, wired
to the shared store / hasher / issuer on app.state and to a logger that tags
every line with the request id.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.service import CredentialService

logger = logging.getLogger("bookingportal.auth")


class RequestLogAdapter(logging.LoggerAdapter):
    """Prefix every message with the id of the request that produced it."""

    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']}] {msg}", kwargs


def request_logger(request: Request) -> logging.LoggerAdapter:
    request_id = getattr(request.state, "request_id", "-")
    return RequestLogAdapter(logger, {"request_id": request_id})


def get_credential_service(request: Request) -> CredentialService:
    """Per-request CredentialService. Collaborators are created once in the app lifespan."""
    state = request.app.state
    return CredentialService(
        store=state.identity_store,
        hasher=state.password_hasher,
        issuer=state.token_issuer,
        logger=request_logger(request),
    )


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_current_identity(request: Request) -> Identity | None:
    """Return the authenticated Identity, or None on any failure. Never raises for bad tokens."""
    token = _bearer_token(request)
    if token is None:
        return None
    claims = request.app.state.token_issuer.decode(token)
    if claims is None:
        return None
    return request.app.state.identity_store.get_by_id(claims.identity_id)


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
