"""
auth/errors.py -- Exception taxonomy for the credential subsystem.

Two layers:

  Component failures (HashingFailure, VerificationFailure, SigningFailure,
  StoreError, DuplicateIdentityError) are raised by the hasher, the token
  issuer and the store. They carry the real cause and are never shown to
  clients.

  Request outcomes (InvalidInput, Conflict, Unauthorized, InternalFailure)
  are raised by the credential service. Each carries the HTTP status, a
  machine-readable code and a generic client message. api/main.py turns them
  into the standard error envelope.

Layer rule: no imports from api/ or core/. Status codes are plain ints so
this module stays framework-free.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Component failures
# ---------------------------------------------------------------------------


class HashingFailure(Exception):
    """bcrypt could not produce a hash (e.g. cost factor out of range)."""


class VerificationFailure(Exception):
    """The stored password hash is malformed. Never raised for a wrong password."""


class SigningFailure(Exception):
    """A session token could not be signed."""


class StoreError(Exception):
    """The identity store failed for a reason other than a duplicate email."""


class DuplicateIdentityError(StoreError):
    """insert_identity() hit the UNIQUE(email) constraint."""


# ---------------------------------------------------------------------------
# Request outcomes
# ---------------------------------------------------------------------------


class CredentialError(Exception):
    """Base class for outcomes that map directly to an HTTP error response."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(CredentialError):
    status_code = 400
    code = "invalid_input"
    default_message = "Invalid request."


class Conflict(CredentialError):
    status_code = 409
    code = "conflict"
    default_message = "Email is already registered."


class Unauthorized(CredentialError):
    status_code = 401
    code = "bad_credentials"
    default_message = "Invalid email or password."


class InternalFailure(CredentialError):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error."
