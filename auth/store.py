"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Services never touch
SQL directly.

Contract:
  create_user(record) -> id            raises DuplicateKeyError on a taken email
  get_by_email(email) -> UserRecord    raises UserNotFoundError
  get_by_id(user_id)  -> UserRecord    raises UserNotFoundError

There is deliberately no update or delete: records are written once at
registration and only read afterwards.

Concurrency:
  UNIQUE(email) is enforced by the database, not by a read-before-write
  check. Two concurrent registrations for the same email both reach the
  INSERT; the constraint lets exactly one through and the other surfaces as
  IntegrityError -> DuplicateKeyError. No locks are held across calls.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from core/. Configuration arrives as constructor
arguments (see auth/bootstrap.py).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Date, Integer, MetaData, String, Table, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateKeyError, UserNotFoundError
from auth.models import UserRecord

logger = logging.getLogger("userauth.store")

_DEFAULT_DB_URL = "sqlite:///userauth.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(50), nullable=False),
    Column("date_of_birth", Date, nullable=False),
    Column("password_hash", String(255), nullable=False),  # bcrypt, never plaintext
    Column("city", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
    # AUTOINCREMENT keyword on SQLite: ids of removed rows are never handed out
    # again. Other dialects never reuse identity values to begin with.
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for UserRecord entities.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user_id = store.create_user(UserRecord(name="A", email="a@x.com", ...))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, create_schema: bool = True) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        if create_schema:
            _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, record: UserRecord) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateKeyError if the email already exists. The check is the
        UNIQUE constraint itself, so it holds under concurrent inserts. Any
        other constraint violation propagates as IntegrityError.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        name=record.name,
                        email=record.email,
                        phone=record.phone,
                        date_of_birth=record.date_of_birth,
                        password_hash=record.password_hash,
                        city=record.city,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if not self._email_exists(record.email):
                logger.warning("Insert into users rejected by a table constraint")
                raise
            logger.info("Insert into users rejected by UNIQUE(email)")
            raise DuplicateKeyError(context={"table": "users", "column": "email"}) from exc
        return result.inserted_primary_key[0]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> UserRecord:
        """Look up a user by exact email. Raises UserNotFoundError if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        if row is None:
            raise UserNotFoundError()
        return _row_to_user(row)

    def get_by_id(self, user_id: int) -> UserRecord:
        """Look up a user by primary key. Raises UserNotFoundError if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        if row is None:
            raise UserNotFoundError(context={"user_id": user_id})
        return _row_to_user(row)

    def _email_exists(self, email: str | None) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_users.c.id).where(_users.c.email == email)).first()
        return row is not None

    def count_users(self) -> int:
        """Return the number of stored user records."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        date_of_birth=row.date_of_birth,
        password_hash=row.password_hash,
        city=row.city,
        created_at=row.created_at,
    )
