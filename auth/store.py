"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only bcrypt hashes are stored. create_user() refuses a User that has no
  password_hash. The plaintext password never reaches this layer.

Errors:
  UNIQUE(email) violations surface as DuplicateError; lookups for an unknown
  email raise RecordNotFoundError. Anything else SQLAlchemy raises propagates
  and is rendered as a generic internal error by the app.

DB path: auth/calendarium_auth.db by default (AUTH_DB_URL overrides).

Layer rule: no imports from api/, account/, or events/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from core.db import make_engine
from core.errors import DuplicateError, RecordNotFoundError
from core.log import get_logger

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),  # bcrypt, salt + cost embedded
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        uid = store.create_user(User(email="a@b.com", password_hash=hasher.hash("secret123")))
        user = store.get_by_email("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str, timeout: float = 3.0, logger: logging.Logger | None = None) -> None:
        self.engine: Engine = make_engine(db_url, timeout)
        self._logger = logger or get_logger("users")
        _metadata.create_all(self.engine)

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises ValueError if user.password_hash is missing (caller bug) and
        DuplicateError if the email is already registered.
        """
        if user.password_hash is None:
            raise ValueError("missing password hash for user")
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        email=user.email,
                        password_hash=user.password_hash.decode("ascii"),
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            self._logger.info("signup rejected: email already registered")
            raise DuplicateError() from exc
        return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User:
        """Look up a user by exact email. Raises RecordNotFoundError if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        if row is None:
            raise RecordNotFoundError("user not found")
        return _row_to_user(row)

    def ping(self) -> bool:
        """Health probe for the status endpoint. Never raises."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            self._logger.warning("user database ping failed: %s", exc)
            return False

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash.encode("ascii"),
        created_at=row.created_at,
    )
