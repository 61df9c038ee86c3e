"""
auth/tokens.py -- Session token issuance and fail-closed verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the identity id (sub), email, role, issued-at and expiry. Nothing is
       stored server-side; validity is signature + expiry only.

  issue() never falls back to an unsigned or weakly signed token. A missing
       secret or any signing error raises SigningFailure and the request
       fails.

  decode() returns None on any failure -- bad signature, expired, malformed,
       missing claims. The dependency layer turns None into a 401, so a
       partially valid token can never produce a partially trusted identity.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is
the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from auth.errors import SigningFailure
from auth.models import TokenClaims
from core.config import Settings

logger = logging.getLogger("bookingportal.auth.tokens")

_ALGORITHM = "HS256"

_REQUIRED_CLAIMS = {
    "require_sub": True,
    "require_iat": True,
    "require_exp": True,
}


class TokenIssuer:
    """Mints and verifies HS256 session tokens.

    Usage:
        issuer = TokenIssuer.from_settings(get_settings())
        token = issuer.issue(identity.id, identity.email, "customer")
        claims = issuer.decode(token)   # TokenClaims or None
    """

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(secret_key=settings.secret_key, expire_seconds=settings.token_expire_seconds)

    def issue(self, identity_id: str, email: str, role: str, now: datetime | None = None) -> str:
        """Encode a signed token for the identity, valid for expire_seconds from now.

        Args:
            identity_id: Stable identity id, stored as the sub claim.
            email:       Email at issue time.
            role:        Canonical role wire string.
            now:         Issue time. Defaults to the current UTC time.
        """
        if not self._secret_key:
            raise SigningFailure("no signing secret configured")
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(identity_id),
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.expire_seconds),
        }
        try:
            return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)
        except JOSEError as exc:
            raise SigningFailure(f"token signing failed: {exc}") from exc

    def decode(self, token: str) -> TokenClaims | None:
        """Verify a token and return its claims, or None if it is not fully valid."""
        if not token or not self._secret_key:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM], options=_REQUIRED_CLAIMS)
        except JWTError as exc:
            logger.debug("Rejected session token: %s", exc)
            return None

        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(email, str) or not isinstance(role, str):
            return None
        try:
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (TypeError, ValueError):
            return None
        return TokenClaims(
            identity_id=payload["sub"],
            email=email,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
