"""
auth/service.py -- Registration, login and current-identity resolution.

CredentialService is stateless: every collaborator is injected and no call
mutates the instance, so one service (or one per request) can be used from
any number of worker threads at once.

Error policy:
  Component failures (store, hashing, signing) are logged through the
  injected logger with the operation and the cause, then re-raised as a
  generic InternalFailure. The client never sees driver or library text.

  Unknown email and wrong password both raise the same Unauthorized, after
  the same amount of bcrypt work, so a login cannot be used to discover
  which emails are registered.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from typing import Protocol

from auth.errors import (
    Conflict,
    DuplicateIdentityError,
    HashingFailure,
    InternalFailure,
    InvalidInput,
    SigningFailure,
    StoreError,
    Unauthorized,
    VerificationFailure,
)
from auth.models import Identity, IssuedCredential, NewIdentity, PublicIdentity, Registration, Role
from auth.passwords import PasswordHasher
from auth.roles import resolve_role, to_wire_string
from auth.tokens import TokenIssuer

MIN_PASSWORD_LENGTH = 8


class IdentityRepository(Protocol):
    """What the credential service needs from a data store. See auth.store.IdentityStore."""

    def find_by_email(self, email: str) -> Identity | None: ...

    def insert_identity(self, new: NewIdentity) -> Identity: ...


def validate_registration(reg: Registration) -> None:
    """Raise InvalidInput for the first rule reg breaks.

    Rules, in order: required fields present, email shape, password length.
    Password length is measured in UTF-8 bytes.
    """
    if not reg.email or not reg.password or not reg.first_name or not reg.last_name:
        raise InvalidInput("Email, password, first name and last name are required.")
    if "@" not in reg.email or "." not in reg.email:
        raise InvalidInput("Invalid email format.")
    if len(reg.password.encode("utf-8")) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def public_view(identity: Identity, role: Role) -> PublicIdentity:
    return PublicIdentity(
        id=identity.id,
        email=identity.email,
        first_name=identity.first_name,
        last_name=identity.last_name,
        phone=identity.phone,
        role=role,
    )


class CredentialService:
    """Orchestrates the hasher, role resolver, token issuer and store.

    Usage:
        service = CredentialService(store, PasswordHasher(), issuer, logger=log)
        issued = service.register(Registration(email="a@b.com", ...))
        issued = service.login("a@b.com", "longenough1")
        view = service.current_identity(identity)
    """

    def __init__(
        self,
        store: IdentityRepository,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._issuer = issuer
        self._log = logger or logging.getLogger("bookingportal.auth.service")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, reg: Registration) -> IssuedCredential:
        """Create an identity and issue its first session token.

        Raises InvalidInput, Conflict or InternalFailure.
        """
        self._log.info("Registration requested for %s", reg.email)
        validate_registration(reg)

        try:
            existing = self._store.find_by_email(reg.email)
        except StoreError as exc:
            self._log.error("register: lookup of existing identity failed: %s", exc, exc_info=exc)
            raise InternalFailure() from exc
        if existing is not None:
            raise Conflict()

        try:
            password_hash = self._hasher.hash(reg.password)
        except HashingFailure as exc:
            self._log.error("register: password hashing failed: %s", exc, exc_info=exc)
            raise InternalFailure("Could not process password.") from exc

        role = resolve_role(reg.role)
        try:
            identity = self._store.insert_identity(
                NewIdentity(
                    email=reg.email,
                    password_hash=password_hash,
                    first_name=reg.first_name,
                    last_name=reg.last_name,
                    phone=reg.phone,
                    role=to_wire_string(role),
                )
            )
        except DuplicateIdentityError as exc:
            # Lost a race with a concurrent registration for the same email.
            self._log.warning("register: concurrent registration won for %s", reg.email)
            raise Conflict() from exc
        except StoreError as exc:
            self._log.error("register: insert failed: %s", exc, exc_info=exc)
            raise InternalFailure("Could not create user.") from exc

        issued = self._issue(identity, role, operation="register")
        self._log.info("Registered identity %s (%s)", identity.id, to_wire_string(role))
        return issued

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> IssuedCredential:
        """Verify email + password and issue a session token.

        Raises Unauthorized or InternalFailure.
        """
        self._log.info("Login attempt for %s", email)
        try:
            identity = self._store.find_by_email(email)
        except StoreError as exc:
            self._log.error("login: lookup failed: %s", exc, exc_info=exc)
            raise InternalFailure() from exc

        if identity is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self._hasher.verify_dummy(password)
            raise Unauthorized()

        try:
            valid = self._hasher.verify(password, identity.password_hash)
        except VerificationFailure as exc:
            self._log.error("login: stored hash for identity %s is unusable: %s", identity.id, exc, exc_info=exc)
            raise InternalFailure("Authentication error.") from exc
        if not valid:
            raise Unauthorized()

        issued = self._issue(identity, resolve_role(identity.role), operation="login")
        self._log.info("Login succeeded for identity %s", identity.id)
        return issued

    # ------------------------------------------------------------------
    # Current identity
    # ------------------------------------------------------------------

    def current_identity(self, identity: Identity) -> PublicIdentity:
        """Public view of an identity the request middleware already authenticated."""
        self._log.info("Identity info requested for %s", identity.id)
        return public_view(identity, resolve_role(identity.role))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue(self, identity: Identity, role: Role, operation: str) -> IssuedCredential:
        try:
            token = self._issuer.issue(identity.id, identity.email, to_wire_string(role))
        except SigningFailure as exc:
            self._log.error("%s: token signing failed: %s", operation, exc, exc_info=exc)
            raise InternalFailure("Could not generate authentication token.") from exc
        return IssuedCredential(token=token, user=public_view(identity, role))
