"""
auth/passwords.py -- bcrypt password hashing and verification.

Using bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug
detection feeds bcrypt a password longer than 72 bytes, which bcrypt 4.x+
rejects with an explicit error.

bcrypt only ever reads the first 72 bytes of a secret. Newer bcrypt releases
raise on longer input instead of truncating, so _encode() truncates
explicitly. hash() and verify() share it and therefore always agree.

The cost factor lives on the PasswordHasher instance (BCRYPT_ROUNDS), not at
call sites, so it can be tuned without touching the credential service.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

from auth.errors import HashingFailure, VerificationFailure

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted, tunable-cost one-way hashing for stored credentials.

    Construction hashes a throwaway secret once, so an out-of-range cost
    raises HashingFailure here rather than on the first request.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("correct horse")
        hasher.verify("correct horse", stored)   # True
        hasher.verify("wrong", stored)           # False
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("bookingportal_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of plain. Raises HashingFailure on any bcrypt error."""
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(_encode(plain), salt).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingFailure(f"bcrypt hashing failed (rounds={self.rounds}): {exc}") from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed, False if it does not.

        Raises VerificationFailure when hashed is not a valid bcrypt hash --
        that is a data-integrity problem, not a wrong password.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise VerificationFailure(f"stored password hash is malformed: {exc}") from exc

    def verify_dummy(self, plain: str) -> None:
        """Burn one verification's worth of time against a throwaway hash.

        Called when a login names an unknown email so the response takes as
        long as a wrong-password response and does not reveal which emails
        are registered.
        """
        bcrypt.checkpw(_encode(plain), self._dummy_hash.encode("utf-8"))
