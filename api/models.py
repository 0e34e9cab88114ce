"""
API request and response models for punchline HTTP endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
jokes/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = HTTP contract.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from jokes.models import Joke, JokeListItem

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class FormErrorResponse(BaseModel):
    """400 body for a rejected form submission.

    form_error   -- problem with the submission as a whole.
    field_errors -- per-field messages; None for fields that passed.
    fields       -- the submitted values to refill the form with. Passwords
                    are never echoed back.
    """

    model_config = ConfigDict(frozen=True)

    form_error: Optional[str] = None
    field_errors: Optional[dict[str, Optional[str]]] = None
    fields: Optional[dict[str, str]] = None


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    """Public view of a user: never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, username=user.username)


# ---------------------------------------------------------------------------
# Jokes
# ---------------------------------------------------------------------------


class JokeListRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str

    @classmethod
    def from_item(cls, item: JokeListItem) -> "JokeListRow":
        return cls(id=item.id, name=item.name)


class JokeResponse(BaseModel):
    """A full joke record."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    name: str
    content: str
    created_at: str

    @classmethod
    def from_joke(cls, joke: Joke) -> "JokeResponse":
        """Build a JokeResponse from a jokes.models.Joke (Factory Method)."""
        return cls(
            id=joke.id,
            owner_id=joke.owner_id,
            name=joke.name,
            content=joke.content,
            created_at=joke.created_at,
        )


class JokesIndexResponse(BaseModel):
    """Response for GET /jokes: the caller (if any) plus the newest jokes."""

    model_config = ConfigDict(frozen=True)

    user: Optional[UserSummary] = None
    jokes: list[JokeListRow] = Field(default_factory=list)


class JokeDetailResponse(BaseModel):
    """Response for GET /jokes/{joke_id}."""

    model_config = ConfigDict(frozen=True)

    joke: JokeResponse
    is_owner: bool


class RandomJokeResponse(BaseModel):
    """Response for GET /jokes/random."""

    model_config = ConfigDict(frozen=True)

    joke: JokeResponse


class FormDescriptor(BaseModel):
    """Describes a form the client should render: its target and field names."""

    model_config = ConfigDict(frozen=True)

    action: str
    fields: list[str]
    redirect_to: Optional[str] = None
