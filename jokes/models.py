"""
jokes/models.py -- Domain dataclasses for jokes.

Pure data containers with zero logic. Persistence lives in jokes/store.py,
the ownership rule in jokes/ownership.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Joke:
    """A short text item shared by a registered user.

    owner_id is the id of the user who created the joke. It is fixed at
    creation and never changes; only that user may delete the joke.

    id is None before the record is written to the database.
    """

    owner_id: str
    name: str
    content: str
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class JokeListItem:
    """The id/name pair shown in joke listings."""

    id: str
    name: str
