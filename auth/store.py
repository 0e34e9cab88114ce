"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as jokes/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and flow code never touches SQL directly.

Security:
  Every statement is built with SQLAlchemy expressions; values are always bound.

  UNIQUE(username) is enforced in SQL. accounts.register() checks for an
  existing username first, but two concurrent registrations can both pass
  that check; the constraint makes the second INSERT fail atomically with
  IntegrityError.

Layer rule: no imports from api/, web/, or jokes/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import User
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4, generated in create_user()
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///punchline.db")
        user_id = store.create_user(User(username="kody", password_hash=hash_password("twixrox")))
        user = store.get_by_username("kody")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create_user(self, user: User) -> str:
        """Insert a new user and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        An existing record is never overwritten.
        """
        user_id = str(uuid.uuid4())
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    username=user.username,
                    password_hash=user.password_hash,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return user_id

    def get_by_username(self, username: str) -> User | None:
        """Return the user with exactly this username (case-sensitive), or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Return the user with this id, or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def delete_user(self, user_id: str) -> bool:
        """Remove a user. Returns whether a row was deleted.

        Not reachable over HTTP; used by administration scripts and tests.
        Sessions that still name the user are invalidated on their next request.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
