"""
auth/store.py -- SQLAlchemy Core persistence layer for identities.

Pattern: Repository + Data Mapper. IdentityStore is the repository;
_row_to_identity is the mapper. Service and route code never touches SQL.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  email and phone carry UNIQUE constraints and create_identity() inserts
  without looking first. When two registrations race on the same email, the
  database rejects the second INSERT with IntegrityError, which becomes
  DuplicateEntryError. The follow-up lookup only decides which field to name.

Timeouts:
  Server databases get a driver connect_timeout for new connections and
  pool_timeout for the wait on a pooled one; SQLite gets the driver-level
  busy timeout instead. Any other
  SQLAlchemy failure surfaces as InternalError.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateEntryError, InternalError
from auth.models import Identity

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_identities = Table(
    "identities",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),  # lower-cased
    Column("phone", String(20), nullable=False, unique=True),  # spaces/dashes stripped
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. SQLite PRAGMAs are per-connection."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def engine_options(db_url: str, timeout: float) -> tuple[dict, dict]:
    """Return (connect_args, create_engine kwargs) bounding every wait on the database."""
    if db_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout}, {}
    # psycopg2 and PyMySQL both take an integer connect_timeout in seconds
    return {"connect_timeout": max(1, math.ceil(timeout))}, {"pool_timeout": timeout}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class IdentityStore:
    """Repository for Identity records.

    Usage:
        store = IdentityStore("sqlite:///:memory:")
        identity = store.create_identity("a@x.com", "+48123456789", hasher.hash("Aa1!aaaa"))
        store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str, *, timeout: float = 5.0) -> None:
        connect_args, engine_args = engine_options(db_url, timeout)
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    @contextmanager
    def _errors(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise InternalError("Credential store unavailable.") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_identity(self, email: str, phone: str, password_hash: str) -> Identity:
        """Insert a new identity. email and phone must already be normalized.

        Raises DuplicateEntryError if either value is taken, including when a
        concurrent insert wins the race.
        """
        identity = Identity(
            id=str(uuid.uuid4()),
            email=email,
            phone=phone,
            password_hash=password_hash,
            created_at=_now_iso(),
        )
        try:
            with self._errors(), self.engine.connect() as conn:
                conn.execute(
                    _identities.insert().values(
                        id=identity.id,
                        email=identity.email,
                        phone=identity.phone,
                        password_hash=identity.password_hash,
                        created_at=identity.created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            field = "email" if self.get_by_email(email) is not None else "phone"
            raise DuplicateEntryError(field) from exc
        return identity

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> Identity | None:
        return self._get_one(_identities.c.email == email)

    def get_by_phone(self, phone: str) -> Identity | None:
        return self._get_one(_identities.c.phone == phone)

    def get_by_id(self, identity_id: str) -> Identity | None:
        return self._get_one(_identities.c.id == identity_id)

    def _get_one(self, clause) -> Identity | None:
        with self._errors(), self.engine.connect() as conn:
            row = conn.execute(_identities.select().where(clause)).fetchone()
        return _row_to_identity(row) if row is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if a trivial query succeeds. Used by the health check."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        phone=row.phone,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
