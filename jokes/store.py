"""
jokes/store.py -- SQLAlchemy-backed persistence layer for jokes.

Uses SQLAlchemy Core (not ORM) so the dataclasses in jokes/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. JokeStore is the repository; the _row_to_*
functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = JokeStore("sqlite:///punchline.db")
    joke_id = store.create_joke(Joke(owner_id=user_id, name="Trees", content="..."))
    store.list_recent(limit=5)
    store.random_joke()
    store.delete_joke(joke_id)
    store.close()
"""

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from core.db import make_engine
from jokes.models import Joke, JokeListItem

logger = logging.getLogger("punchline.jokes")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_jokes = Table(
    "jokes",
    metadata,
    # seq gives a stable insertion order for jokes created within the same
    # timestamp tick; id is the public identifier.
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(36), nullable=False, unique=True),
    Column("owner_id", String(36), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class JokeStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_joke(self, joke: Joke) -> str:
        """Insert a joke and return its generated id. owner_id is stored as given."""
        joke_id = str(uuid.uuid4())
        with self.engine.connect() as conn:
            conn.execute(
                _jokes.insert().values(
                    id=joke_id,
                    owner_id=joke.owner_id,
                    name=joke.name,
                    content=joke.content,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return joke_id

    def get_by_id(self, joke_id: str) -> Optional[Joke]:
        with self.engine.connect() as conn:
            row = conn.execute(_jokes.select().where(_jokes.c.id == joke_id)).fetchone()
        return _row_to_joke(row) if row is not None else None

    def list_recent(self, limit: int = 5) -> list[JokeListItem]:
        """Return the newest jokes first, id and name only."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(_jokes.c.id, _jokes.c.name)
                .order_by(_jokes.c.created_at.desc(), _jokes.c.seq.desc())
                .limit(limit)
            ).fetchall()
        return [_row_to_list_item(r) for r in rows]

    def count_jokes(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_jokes)).scalar()
        return result or 0

    def sample(self, offset: int) -> Optional[Joke]:
        """Return the joke at position offset in insertion order, or None past the end."""
        with self.engine.connect() as conn:
            row = conn.execute(_jokes.select().order_by(_jokes.c.seq).offset(offset).limit(1)).fetchone()
        return _row_to_joke(row) if row is not None else None

    def random_joke(self) -> Optional[Joke]:
        """Pick a uniformly random joke via count + offset. None when there are no jokes.

        A deletion between the count and the sample can leave the offset past
        the end; that also yields None.
        """
        count = self.count_jokes()
        if count == 0:
            return None
        return self.sample(random.randrange(count))

    def delete_joke(self, joke_id: str) -> bool:
        """Delete a joke. Returns True if a row was removed.

        Ownership is NOT checked here; callers consult jokes.ownership first.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_jokes.delete().where(_jokes.c.id == joke_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_joke(row) -> Joke:
    return Joke(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        content=row.content,
        created_at=row.created_at,
    )


def _row_to_list_item(row) -> JokeListItem:
    return JokeListItem(id=row.id, name=row.name)
