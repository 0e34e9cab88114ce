"""
auth/dependencies.py -- Caller resolution for route handlers.

get_caller_id() is the soft variant (returns None for anonymous callers).
require_caller_id() returns either Authorized(user_id) or
RedirectRequired(response); the handler must check which one it got before
doing anything else:

    auth = require_caller_id(request)
    if isinstance(auth, RedirectRequired):
        return auth.response
    user_id = auth.user_id

get_caller_record() loads the caller's User. A session naming a user that no
longer exists is treated as corrupt: the caller gets a RedirectRequired whose
response also clears the cookie. require_caller_record() combines the two and
is what mutating routes use.

Layer rule: no imports from web/ or jokes/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from auth.models import User
from auth.session import attach_header, get_session_storage
from auth.store import UserStore

logger = logging.getLogger("punchline.auth")

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class Authorized:
    user_id: str


@dataclass(frozen=True)
class RedirectRequired:
    response: RedirectResponse


AuthResult = Union[Authorized, RedirectRequired]


def login_redirect(redirect_to: str) -> RedirectResponse:
    """Return a redirect to the login page carrying redirect_to, percent-encoded."""
    query = urlencode({"redirectTo": redirect_to})
    return RedirectResponse(f"{LOGIN_PATH}?{query}", status_code=302)


def get_caller_id(request: Request) -> Optional[str]:
    """Return the user id stored in the request's session, or None. Never raises."""
    return get_session_storage(request).read_session(request).user_id


def require_caller_id(request: Request, redirect_to: Optional[str] = None) -> AuthResult:
    """Require a session. redirect_to defaults to the requested path."""
    user_id = get_caller_id(request)
    if user_id is None:
        return RedirectRequired(login_redirect(redirect_to or request.url.path))
    return Authorized(user_id)


def _clear_stale_session(request: Request, user_id: str, response: RedirectResponse) -> RedirectRequired:
    logger.warning("Session references unknown user %s -- clearing session", user_id)
    attach_header(response, get_session_storage(request).build_clear_header())
    return RedirectRequired(response)


def get_caller_record(request: Request) -> Union[User, None, RedirectRequired]:
    """Return the caller's User, None for anonymous callers, or RedirectRequired.

    RedirectRequired here means the session referenced a user that has been
    deleted; its response clears the cookie and sends the caller to login.
    """
    user_id = get_caller_id(request)
    if user_id is None:
        return None

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id)
    if user is None:
        return _clear_stale_session(request, user_id, RedirectResponse(LOGIN_PATH, status_code=302))
    return user


def require_caller_record(request: Request, redirect_to: Optional[str] = None) -> Union[User, RedirectRequired]:
    """Like require_caller_id(), but the session's user must still exist.

    Mutating routes use this so a deleted account cannot act through a
    session that is still validly signed. Both redirects carry redirect_to
    (default: the requested path); the stale-session one also clears the cookie.
    """
    target = redirect_to or request.url.path
    auth = require_caller_id(request, target)
    if isinstance(auth, RedirectRequired):
        return auth

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(auth.user_id)
    if user is None:
        return _clear_stale_session(request, auth.user_id, login_redirect(target))
    return user
