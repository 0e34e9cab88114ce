"""
auth/tokens.py -- Password hashing and the signed session token codec.

Security design decisions:
  Passwords: bcrypt, used directly. Its cost factor (rounds) makes brute-force
       expensive; every hash gets a fresh random salt embedded in the digest.
       verify_password() returns False for any mismatch or malformed digest
       and never raises. The _DUMMY_HASH constant lets accounts.login() spend
       the same bcrypt work on unknown usernames as on wrong passwords.

  Session tokens: python-jose HS256 JWTs. The only claims are user_id and
       exp, so the tag binds the whole payload and its expiry. decode()
       returns None on any failure (missing, malformed, expired, forged) --
       a bad token means "anonymous", never an error.

       Before verification, every segment must be canonical base64url. A
       base64 decoder ignores the unused low bits of the final character, so
       without this check a one-bit change there would still verify.

  Secret: SessionCodec receives the secret from the Settings instance built
       at startup. Nothing here reads configuration at import time.

Layer rule: no imports from api/, web/, or jokes/.
"""

from __future__ import annotations

import binascii
import logging
import re
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import SessionPayload

logger = logging.getLogger("punchline.auth")

_ALGORITHM = "HS256"

DEFAULT_BCRYPT_ROUNDS = 10

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are silently truncated by bcrypt (this is
    a known bcrypt limitation). The login form caps passwords well below it.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        # Malformed digest ("Invalid salt") or a non-string input.
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("punchline_timing_dummy")


# ---------------------------------------------------------------------------
# Session codec
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+$")


def _is_canonical(token: str) -> bool:
    """Return True if every segment re-encodes to exactly itself."""
    if not _TOKEN_RE.match(token):
        return False
    for segment in token.split("."):
        raw = segment.encode("ascii")
        try:
            if base64url_encode(base64url_decode(raw)) != raw:
                return False
        except (binascii.Error, ValueError):
            return False
    return True


class SessionCodec:
    """Serialize a SessionPayload into a tamper-evident, expiring token and back.

    Usage:
        codec = SessionCodec(settings.session_secret, settings.session_max_age)
        token = codec.encode(SessionPayload(user_id="..."))
        codec.decode(token)    # SessionPayload(user_id="...") or None
    """

    def __init__(self, secret_key: str, max_age: int) -> None:
        if not secret_key:
            raise ValueError("SessionCodec requires a non-empty secret key.")
        self._secret_key = secret_key
        self.max_age = max_age

    def encode(self, payload: SessionPayload, expires_in: int | None = None) -> str:
        """Sign payload with an expiry of expires_in seconds (default max_age)."""
        if payload.is_empty:
            raise ValueError("Cannot encode an empty session payload.")
        duration = self.max_age if expires_in is None else expires_in
        claims = {
            "user_id": payload.user_id,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=duration),
        }
        return jwt.encode(claims, self._secret_key, algorithm=_ALGORITHM)

    def decode(self, token: str | None) -> SessionPayload | None:
        """Verify and parse a token. Returns None on any failure.

        Returning None (rather than raising) keeps the caller simple: any
        invalid token is treated as an anonymous request.
        """
        if not token or not _is_canonical(token):
            return None
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            logger.debug("Rejected session token that failed verification")
            return None
        user_id = claims.get("user_id")
        if "exp" not in claims or not isinstance(user_id, str) or not user_id:
            return None
        return SessionPayload(user_id=user_id)
