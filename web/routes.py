"""
web/routes.py -- Form-driven routes for punchline.

These routes accept HTML-form submissions (application/x-www-form-urlencoded)
and answer with redirects or JSON page data; presentation is up to the client.
They share app.state with the API layer (same stores, same session storage).

Route registration order matters. FastAPI resolves same-level paths in order:
  - GET /jokes/random, GET /jokes/new and POST /jokes/new must be registered
    before /jokes/{joke_id} or FastAPI captures "random"/"new" as an id.

Routes:
  GET  /                    -- landing payload
  GET  /jokes               -- caller + newest jokes (stale session -> login)
  GET  /jokes/random        -- one random joke, 404 when there are none
  GET  /jokes/new           -- new-joke form descriptor (401 when anonymous)
  POST /jokes/new           -- create a joke (auth required, redirect otherwise)
  GET  /jokes/{joke_id}     -- joke detail with is_owner flag
  POST /jokes/{joke_id}     -- _method=delete: delete a joke (owner only)
  GET  /login               -- login form descriptor, echoes ?redirectTo
  POST /login               -- loginType=login|register, starts a session
  GET  /logout              -- redirect to /
  POST /logout              -- clear session, redirect to /

Auth policy:
  Reads are public. Mutations call require_caller_record() and return its
  redirect response when the caller is anonymous or the session names a
  user that no longer exists (that redirect also clears the cookie), so
  every stored owner_id belongs to a live account. Deletion additionally
  goes through jokes.ownership.authorize_delete().
"""

import logging
from typing import Optional

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from api.models import (
    FormDescriptor,
    FormErrorResponse,
    JokeDetailResponse,
    JokeListRow,
    JokeResponse,
    JokesIndexResponse,
    RandomJokeResponse,
    UserSummary,
)
from auth.accounts import UsernameTakenError, login, register, validate_password, validate_username
from auth.dependencies import RedirectRequired, get_caller_id, get_caller_record, require_caller_record
from auth.session import create_session, get_session_storage, logout
from auth.store import UserStore
from core.config import Settings
from jokes.models import Joke
from jokes.ownership import DeleteDecision, authorize_delete
from jokes.store import JokeStore

logger = logging.getLogger("punchline.web")

router = APIRouter()

_JOKE_LIST_LIMIT = 5
_FORM_NOT_SUBMITTED = "Form not submitted correctly."


# ---------------------------------------------------------------------------
# Form validation
#
# Each validator returns an error message, or None when the value is fine.
# Username and password rules live in auth.accounts.
# ---------------------------------------------------------------------------


def _validate_joke_name(name: str) -> Optional[str]:
    if len(name) < 3:
        return "That joke's name is too short"
    return None


def _validate_joke_content(content: str) -> Optional[str]:
    if len(content) < 10:
        return "That joke is too short"
    return None


def _bad_request(
    form_error: Optional[str] = None,
    field_errors: Optional[dict[str, Optional[str]]] = None,
    fields: Optional[dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=FormErrorResponse(form_error=form_error, field_errors=field_errors, fields=fields).model_dump(),
    )


def _not_found(message: str) -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": message})


# ---------------------------------------------------------------------------
# GET / -- landing
# ---------------------------------------------------------------------------


@router.get("/")
def index() -> dict:
    return {"name": "punchline", "links": {"jokes": "/jokes", "login": "/login"}}


# ---------------------------------------------------------------------------
# Jokes
# ---------------------------------------------------------------------------


@router.get("/jokes", response_model=None)
def jokes_index(request: Request) -> Response:
    """Return the caller (or null) and the newest jokes.

    A session that names a deleted user is cleared here; the caller is sent
    to /login instead of seeing an error.
    """
    caller = get_caller_record(request)
    if isinstance(caller, RedirectRequired):
        return caller.response

    joke_store: JokeStore = request.app.state.joke_store
    items = joke_store.list_recent(limit=_JOKE_LIST_LIMIT)
    return JSONResponse(
        content=JokesIndexResponse(
            user=UserSummary.from_user(caller) if caller is not None else None,
            jokes=[JokeListRow.from_item(i) for i in items],
        ).model_dump()
    )


@router.get("/jokes/random", response_model=RandomJokeResponse)
def random_joke(request: Request) -> RandomJokeResponse:
    joke_store: JokeStore = request.app.state.joke_store
    joke = joke_store.random_joke()
    if joke is None:
        raise _not_found("No random joke found")
    return RandomJokeResponse(joke=JokeResponse.from_joke(joke))


@router.get("/jokes/new", response_model=FormDescriptor)
def new_joke_form(request: Request) -> FormDescriptor:
    if get_caller_id(request) is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "You must be logged in to create a joke."},
        )
    return FormDescriptor(action="/jokes/new", fields=["name", "content"])


@router.post("/jokes/new", response_model=None)
def create_joke(
    request: Request,
    name: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
) -> Response:
    caller = require_caller_record(request)
    if isinstance(caller, RedirectRequired):
        return caller.response

    if name is None or content is None:
        return _bad_request(form_error=_FORM_NOT_SUBMITTED)

    fields = {"name": name, "content": content}
    field_errors = {
        "name": _validate_joke_name(name),
        "content": _validate_joke_content(content),
    }
    if any(field_errors.values()):
        return _bad_request(field_errors=field_errors, fields=fields)

    joke_store: JokeStore = request.app.state.joke_store
    joke_id = joke_store.create_joke(Joke(owner_id=caller.id, name=name, content=content))
    logger.info("User %s created joke %s", caller.id, joke_id)
    return RedirectResponse(f"/jokes/{joke_id}", status_code=302)


@router.get("/jokes/{joke_id}", response_model=JokeDetailResponse)
def joke_detail(request: Request, joke_id: str) -> JokeDetailResponse:
    joke_store: JokeStore = request.app.state.joke_store
    joke = joke_store.get_by_id(joke_id)
    if joke is None:
        raise _not_found("What a joke! Not found.")
    caller_id = get_caller_id(request)
    return JokeDetailResponse(
        joke=JokeResponse.from_joke(joke),
        is_owner=caller_id is not None and caller_id == joke.owner_id,
    )


@router.post("/jokes/{joke_id}", response_model=None)
def joke_action(
    request: Request,
    joke_id: str,
    method: Optional[str] = Form(None, alias="_method"),
) -> Response:
    """Handle a method-override form post against a joke.

    Only _method=delete is supported, and that is checked before the caller
    is even looked at. Then: session required (redirect otherwise), joke must
    exist (404), caller must own it (401).
    """
    if method != "delete":
        raise HTTPException(
            status_code=400,
            detail={"code": "bad_request", "message": f"The _method {method} is not supported"},
        )

    caller = require_caller_record(request)
    if isinstance(caller, RedirectRequired):
        return caller.response

    joke_store: JokeStore = request.app.state.joke_store
    joke = joke_store.get_by_id(joke_id)
    decision = authorize_delete(caller.id, joke)
    if decision is DeleteDecision.not_found:
        raise _not_found("Can't delete what does not exist")
    if decision is DeleteDecision.forbidden:
        logger.warning("User %s tried to delete joke %s owned by someone else", caller.id, joke_id)
        raise HTTPException(
            status_code=401,
            detail={"code": "not_owner", "message": "Pssh, nice try. That's not your joke"},
        )

    joke_store.delete_joke(joke_id)
    logger.info("User %s deleted joke %s", caller.id, joke_id)
    return RedirectResponse("/jokes", status_code=302)


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@router.get("/login", response_model=FormDescriptor)
def login_form(request: Request) -> FormDescriptor:
    return FormDescriptor(
        action="/login",
        fields=["loginType", "username", "password", "redirectTo"],
        redirect_to=request.query_params.get("redirectTo"),
    )


@router.post("/login", response_model=None)
def login_post(
    request: Request,
    login_type: Optional[str] = Form(None, alias="loginType"),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    redirect_to: Optional[str] = Form(None, alias="redirectTo"),
) -> Response:
    """Log in or register, then start a session and redirect.

    Login failures always produce the same message whether or not the
    username exists. redirectTo is checked against the configured allow-list.
    """
    if login_type is None or username is None or password is None:
        return _bad_request(form_error=_FORM_NOT_SUBMITTED)

    fields = {"loginType": login_type, "username": username}
    field_errors = {
        "username": validate_username(username),
        "password": validate_password(password),
    }
    if any(field_errors.values()):
        return _bad_request(field_errors=field_errors, fields=fields)

    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store

    if login_type == "login":
        user = login(user_store, username, password)
        if user is None:
            logger.info("Failed login for username %r", username)
            return _bad_request(form_error="Username/Password combination is incorrect", fields=fields)
    elif login_type == "register":
        try:
            user = register(user_store, username, password, rounds=settings.bcrypt_rounds)
        except UsernameTakenError as exc:
            logger.info("Registration refused: username %r is taken", username)
            return _bad_request(form_error=str(exc), fields=fields)
    else:
        return _bad_request(form_error="Login type invalid", fields=fields)

    return create_session(
        get_session_storage(request),
        user.id,
        redirect_to,
        settings.allowed_redirects,
        settings.default_redirect,
    )


@router.get("/logout")
def logout_get() -> RedirectResponse:
    """Nothing to do on GET; logging out is a POST."""
    return RedirectResponse("/", status_code=302)


@router.post("/logout")
def logout_post(request: Request) -> RedirectResponse:
    return logout(get_session_storage(request))
