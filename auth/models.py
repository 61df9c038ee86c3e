"""
auth/models.py -- Domain types for credential issuance.

Pattern: Data class (pure data container, zero logic). Stores and the
credential service do the work; these types only own the domain shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Permission tier of an identity.

    The enum value is the canonical wire string used in the database, in
    token claims, and in every HTTP response.
    """

    ADMIN = "admin"
    HOTEL_OWNER = "hotel_owner"
    BUSINESS_OWNER = "business_owner"
    CUSTOMER = "customer"


@dataclass
class Identity:
    """A registered principal as stored.

    role holds the stored wire string, not a Role. Rows written by older
    releases or other tools may carry values outside the enumeration; the
    credential service resolves it through auth.roles.resolve_role() before
    anything reaches a client or a token.
    """

    id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: str
    phone: str | None = None
    created_at: str | None = None


@dataclass
class NewIdentity:
    """Insert payload for IdentityStore.insert_identity(). id and created_at are assigned by the store."""

    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: str
    phone: str | None = None


@dataclass
class Registration:
    """Raw registration input as received from a client."""

    email: str
    password: str
    first_name: str
    last_name: str
    phone: str | None = None
    role: str | None = None


@dataclass(frozen=True)
class PublicIdentity:
    """The subset of an Identity that is safe to return to clients.

    There is deliberately no password_hash field.
    """

    id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None
    role: Role


@dataclass(frozen=True)
class IssuedCredential:
    """Result of a successful registration or login."""

    token: str
    user: PublicIdentity


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a session token."""

    identity_id: str
    email: str
    role: str
    issued_at: int
    expires_at: int
