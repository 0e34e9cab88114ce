"""
auth/accounts.py -- Credential verification and account registration.

login() never tells its caller *why* it failed: an unknown username and a
wrong password both return None, and both cost one bcrypt verification
(against _DUMMY_HASH for unknown usernames) so response time does not reveal
which usernames exist.

register() checks for a taken username before inserting. The UNIQUE
constraint in UserStore is the real guard under concurrency; its
IntegrityError is translated into the same UsernameTakenError.

validate_username() and validate_password() are the account form rules, used
by both the web login form and the create-user command.

Layer rule: no imports from api/, web/, or jokes/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import _DUMMY_HASH, DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password

logger = logging.getLogger("punchline.auth")


class UsernameTakenError(Exception):
    """Raised by register() when the username belongs to an existing account."""

    def __init__(self, username: str) -> None:
        super().__init__(f"User with username {username} already exists")
        self.username = username


# Form rules shared by the web login form and the create-user command. Each
# returns an error message, or None when the value is acceptable.

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt ignores anything past this


def validate_username(username: str) -> str | None:
    if len(username) < MIN_USERNAME_LENGTH:
        return f"Usernames must be at least {MIN_USERNAME_LENGTH} characters long"
    return None


def validate_password(password: str) -> str | None:
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters long"
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Passwords must be at most {MAX_PASSWORD_BYTES} bytes long"
    return None


def login(store: UserStore, username: str, password: str) -> User | None:
    """Return the matching user (without its hash) on success, None otherwise."""
    user = store.get_by_username(username)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    return User(id=user.id, username=user.username, password_hash="", created_at=user.created_at)


def register(
    store: UserStore,
    username: str,
    password: str,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> User:
    """Create an account and return it (without its hash).

    Raises UsernameTakenError if the username is already registered, whether
    that is detected by the pre-check or by a concurrent insert losing the
    race on the UNIQUE constraint.
    """
    if store.get_by_username(username) is not None:
        raise UsernameTakenError(username)

    password_hash = hash_password(password, rounds=rounds)
    try:
        user_id = store.create_user(User(username=username, password_hash=password_hash))
    except IntegrityError as exc:
        logger.info("Concurrent registration lost the race for username %r", username)
        raise UsernameTakenError(username) from exc

    logger.info("Registered user %s", user_id)
    return User(id=user_id, username=username, password_hash="")
