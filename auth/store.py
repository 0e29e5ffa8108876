"""
auth/store.py -- User repository contract and its SQLAlchemy Core implementation.

Pattern: Repository + Data Mapper.
UserRepository is the contract the AuthService consumes; UserStore is the
SQL-backed repository and _row_to_user is the mapper. Service and route code
never touches SQL directly.

Error contract:
  create() and update_digest() return tagged results instead of raising. A
  UNIQUE violation on username becomes CreateStatus.ALREADY_EXISTS; any other
  SQLAlchemyError becomes CreateStatus.FAILURE (or False) and is logged here,
  at the store boundary, with its traceback. find_by_username() raises
  RepositoryError on backend faults because "absent" is a meaningful answer
  and must not be confused with "the database is down".

Security:
  All queries use bound parameters. No f-strings in SQL.

DB path: auth/pepperauth.db unless DATABASE_URL overrides it.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import CreateResult, CreateStatus, User

logger = logging.getLogger("pepperauth.auth.store")

DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'pepperauth.db'}"


class RepositoryError(Exception):
    """The user repository could not answer because its backend failed."""


class UserRepository(Protocol):
    """Persistence contract consumed by AuthService."""

    def create(self, username: str, digest: str) -> CreateResult: ...

    def find_by_username(self, username: str) -> User | None: ...

    def update_digest(self, user_id: int, digest: str) -> bool: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """SQL-backed UserRepository.

    Usage:
        store = UserStore("sqlite:///:memory:")
        result = store.create("alice", hasher.hash("s3cret1"))
        user = store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create(self, username: str, digest: str) -> CreateResult:
        """Insert a new user. Uniqueness is enforced by the UNIQUE constraint.

        Two concurrent registrations for the same username cannot both
        succeed: the database rejects the second insert atomically.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        password_hash=digest,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
        except IntegrityError:
            return CreateResult(CreateStatus.ALREADY_EXISTS)
        except SQLAlchemyError:
            logger.exception("Failed to create user record")
            return CreateResult(CreateStatus.FAILURE)
        return CreateResult(CreateStatus.OK, user_id=result.inserted_primary_key[0])

    def find_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        except SQLAlchemyError as exc:
            logger.exception("Failed to look up user record")
            raise RepositoryError("user lookup failed") from exc
        return _row_to_user(row) if row is not None else None

    def update_digest(self, user_id: int, digest: str) -> bool:
        """Replace the stored digest. Returns True if a row was updated.

        Rewriting the same user twice is idempotent in effect: both digests
        verify under the primary pepper.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(password_hash=digest))
                conn.commit()
        except SQLAlchemyError:
            logger.exception("Failed to update digest for user_id=%s", user_id)
            return False
        return result.rowcount > 0

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.password_hash,
        created_at=row.created_at,
    )
