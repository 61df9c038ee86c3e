"""
auth/roles.py -- Normalization between free-form role text and Role.

resolve_role() is total: anything it does not recognize becomes
Role.CUSTOMER. Registration must not fail because a client sent an unknown
role, and a stale or foreign value in the users table must not lock an
account out or escalate it.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from auth.models import Role

# Lowercased spellings accepted on input. Every canonical wire string maps to
# itself, so resolve_role(to_wire_string(r)) == r for every Role.
_ALIASES: dict[str, Role] = {
    **{role.value: role for role in Role},
    "administrator": Role.ADMIN,
    "hotelowner": Role.HOTEL_OWNER,
    "hotel-owner": Role.HOTEL_OWNER,
    "businessowner": Role.BUSINESS_OWNER,
    "business-owner": Role.BUSINESS_OWNER,
}


def resolve_role(raw: str | None) -> Role:
    """Map role text to a Role, case-insensitively. Unknown or empty -> CUSTOMER."""
    if not raw:
        return Role.CUSTOMER
    return _ALIASES.get(raw.strip().lower(), Role.CUSTOMER)


def to_wire_string(role: Role) -> str:
    """Canonical string for persistence, token claims and responses."""
    return role.value
