"""
auth/store.py -- SQLAlchemy Core persistence layer for identities.

Pattern: Repository + Data Mapper. IdentityStore is the repository;
_row_to_identity is the mapper. The credential service never touches SQL.

Error contract:
  UNIQUE(email) is enforced by the database, not by a read-then-write check,
  so two concurrent registrations for one email cannot both succeed. The
  losing insert surfaces as DuplicateIdentityError. Every other database
  failure, including other constraint violations, is wrapped in StoreError.
  Callers never inspect driver messages.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateIdentityError, StoreError
from auth.models import Identity, NewIdentity

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4, assigned by the store
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("phone", String(30)),
    Column("role", String(30), nullable=False, server_default="customer"),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block on a concurrent write.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class IdentityStore:
    """Repository for Identity records.

    Usage:
        store = IdentityStore("sqlite:///portal.db")
        identity = store.insert_identity(NewIdentity(...))
        store.find_by_email("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def find_by_email(self, email: str) -> Identity | None:
        """Look up an identity by exact email (case-sensitive). Returns None if not found."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreError(f"lookup by email failed: {exc}") from exc
        return _row_to_identity(row) if row is not None else None

    def get_by_id(self, identity_id: str) -> Identity | None:
        """Look up an identity by primary key. Returns None if not found."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.id == identity_id)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreError(f"lookup by id failed: {exc}") from exc
        return _row_to_identity(row) if row is not None else None

    def insert_identity(self, new: NewIdentity) -> Identity:
        """Insert a new identity and return the stored row.

        Raises DuplicateIdentityError if the email already exists, including
        when a concurrent request inserted it after the caller's own lookup.
        Any other constraint violation (NOT NULL, primary key) is a StoreError.
        """
        identity_id = str(uuid.uuid4())
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=identity_id,
                        email=new.email,
                        password_hash=new.password_hash,
                        first_name=new.first_name,
                        last_name=new.last_name,
                        phone=new.phone,
                        role=new.role,
                        created_at=_now_iso(),
                    )
                )
                row = conn.execute(_users.select().where(_users.c.id == identity_id)).fetchone()
                conn.commit()
        except IntegrityError as exc:
            if _is_duplicate_email(exc):
                raise DuplicateIdentityError(f"email already registered: {new.email}") from exc
            raise StoreError(f"insert violated a constraint: {exc}") from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"insert failed: {exc}") from exc
        if row is None:
            raise StoreError(f"inserted identity {identity_id} could not be read back")
        return _row_to_identity(row)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        role=row.role,
        created_at=row.created_at,
    )


def _is_duplicate_email(exc: IntegrityError) -> bool:
    """True when exc is the UNIQUE(email) violation.

    SQLite reports "UNIQUE constraint failed: users.email"; PostgreSQL reports
    a unique violation on the users_email_key constraint.
    """
    message = str(exc.orig).lower()
    return "unique" in message and "email" in message
