"""
auth/session.py -- Cookie-backed session storage.

The server keeps no session table. A session is a signed token in the
RJ_session cookie; "destroying" one means telling the client to drop it.

CookieSessionStorage wraps a SessionCodec with the cookie policy:
  httponly=True: JS cannot read the cookie (XSS mitigation).
  samesite="lax": sent on same-site requests and top-level cross-site
      navigations, not on cross-site form POSTs.
  secure: only sent over HTTPS; on in production (Settings.secure_cookies).
  path="/": one session for the whole service.
  max_age: matches the token expiry so both expire together.

Header values are produced with Starlette's own cookie formatting on a
scratch Response, then appended to the real response, so a handler can
attach more than one Set-Cookie header.

Layer rule: no imports from api/, web/, or jokes/.
"""

from __future__ import annotations

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from auth.models import SessionPayload
from auth.tokens import SessionCodec

COOKIE_NAME = "RJ_session"


class CookieSessionStorage:
    """Read sessions from requests and build Set-Cookie headers for responses."""

    def __init__(self, codec: SessionCodec, secure: bool = False) -> None:
        self.codec = codec
        self.secure = secure

    def read_session(self, request: Request) -> SessionPayload:
        """Return the request's session payload, or an empty one.

        Missing, expired and tampered cookies all come back empty.
        """
        token = request.cookies.get(COOKIE_NAME)
        return self.codec.decode(token) or SessionPayload.empty()

    def build_session_header(self, payload: SessionPayload) -> str:
        """Return a Set-Cookie value that stores a freshly signed token."""
        scratch = Response()
        scratch.set_cookie(
            COOKIE_NAME,
            value=self.codec.encode(payload),
            max_age=self.codec.max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )
        return scratch.headers["set-cookie"]

    def build_clear_header(self) -> str:
        """Return a Set-Cookie value that makes the client discard the token now."""
        scratch = Response()
        scratch.delete_cookie(COOKIE_NAME, path="/", secure=self.secure, httponly=True, samesite="lax")
        return scratch.headers["set-cookie"]


def get_session_storage(request: Request) -> CookieSessionStorage:
    """Return the storage the application factory placed on app.state."""
    return request.app.state.session_storage


def attach_header(response: Response, header: str) -> Response:
    response.headers.append("set-cookie", header)
    return response


def safe_redirect(redirect_to: str | None, allowed: list[str], default: str) -> str:
    """Return redirect_to if it is on the allow-list, otherwise default.

    Exact matching only. A post-login redirect is attacker-controllable
    (it rides in the login URL), so anything unknown -- absolute URLs,
    protocol-relative //host paths, look-alike paths -- falls back.
    """
    if redirect_to and redirect_to in allowed:
        return redirect_to
    return default


def create_session(
    storage: CookieSessionStorage,
    user_id: str,
    redirect_to: str | None,
    allowed: list[str],
    default: str,
) -> RedirectResponse:
    """Start a session for user_id and redirect to a validated destination."""
    target = safe_redirect(redirect_to, allowed, default)
    resp = RedirectResponse(target, status_code=302)
    attach_header(resp, storage.build_session_header(SessionPayload(user_id=user_id)))
    resp.headers["Cache-Control"] = "no-store"
    return resp


def logout(storage: CookieSessionStorage) -> RedirectResponse:
    """Clear the session unconditionally and redirect to the service root.

    The existing cookie is not read or validated first.
    """
    resp = RedirectResponse("/", status_code=302)
    attach_header(resp, storage.build_clear_header())
    return resp
