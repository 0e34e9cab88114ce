"""
jokes/ownership.py -- The ownership gate for mutating a joke.

Existence is checked before ownership. The web layer maps the outcomes to
404 (not_found) and 401 (forbidden), which does tell a non-owner that the
id exists; that matches the deletion protocol clients already rely on.
"""

from enum import Enum
from typing import Optional

from jokes.models import Joke


class DeleteDecision(str, Enum):
    allowed = "allowed"
    forbidden = "forbidden"
    not_found = "not_found"


def authorize_delete(caller_id: str, joke: Optional[Joke]) -> DeleteDecision:
    if joke is None:
        return DeleteDecision.not_found
    if joke.owner_id != caller_id:
        return DeleteDecision.forbidden
    return DeleteDecision.allowed
