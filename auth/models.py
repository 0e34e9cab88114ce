"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in jokes/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/, web/, core/, or jokes/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    id is a server-generated UUID string, assigned by UserStore.create_user().
    password_hash is the bcrypt digest; the raw password is never stored.
    Users are created once at registration and never mutated by the service.
    """

    username: str
    password_hash: str
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class SessionPayload:
    """The full contents of a session cookie.

    The schema is fixed: a single user_id. An empty payload (user_id=None)
    stands for an anonymous caller, so callers can read user_id without
    checking whether a session exists first.
    """

    user_id: str | None = None

    @classmethod
    def empty(cls) -> SessionPayload:
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.user_id is None
