#!/usr/bin/env python3
"""
punchline -- administration command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py create-user kody
  python main.py seed --owner kody

Environment variables:
  SESSION_SECRET  Required. Secret used to sign session cookies.
  DATABASE_URL    SQLAlchemy URL of the database (default: punchline.db).
"""

import argparse
import getpass
import sys

from pydantic import ValidationError

from auth.accounts import UsernameTakenError, register, validate_password, validate_username
from auth.store import UserStore
from core.config import Settings, get_settings
from jokes.models import Joke
from jokes.store import JokeStore

SEED_JOKES: list[dict[str, str]] = [
    {
        "name": "Trees",
        "content": "Why do trees seem suspicious on sunny days? Dunno, they're just a bit shady.",
    },
    {
        "name": "Skeletons",
        "content": "Why don't skeletons ride roller coasters? They don't have the stomach for it.",
    },
    {
        "name": "Hippos",
        "content": "Why don't you find hippopotamuses hiding in trees? They're really good at it.",
    },
    {
        "name": "Dinner",
        "content": "What did one plate say to the other plate? Dinner is on me!",
    },
    {
        "name": "Elevator",
        "content": "My first time using an elevator was an uplifting experience. The second time let me down.",
    },
]


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_create_user(args: argparse.Namespace, settings: Settings) -> int:
    username_error = validate_username(args.username)
    if username_error:
        print(f"  [!] {username_error}.")
        return 1

    pw1 = getpass.getpass("Password: ")
    pw2 = getpass.getpass("Repeat password: ")
    if pw1 != pw2:
        print("  [!] Passwords do not match.")
        return 1
    password_error = validate_password(pw1)
    if password_error:
        print(f"  [!] {password_error}.")
        return 1

    store = UserStore(settings.database_url)
    try:
        user = register(store, args.username, pw1, rounds=settings.bcrypt_rounds)
    except UsernameTakenError as exc:
        print(f"  [!] {exc}")
        return 1
    finally:
        store.close()
    print(f"Created user {user.username} ({user.id})")
    return 0


def _cmd_seed(args: argparse.Namespace, settings: Settings) -> int:
    user_store = UserStore(settings.database_url)
    try:
        owner = user_store.get_by_username(args.owner)
    finally:
        user_store.close()
    if owner is None:
        print(f"  [!] No user named '{args.owner}'. Create one first with: python main.py create-user {args.owner}")
        return 1

    joke_store = JokeStore(settings.database_url)
    try:
        for item in SEED_JOKES:
            joke_store.create_joke(Joke(owner_id=owner.id, name=item["name"], content=item["content"]))
    finally:
        joke_store.close()
    print(f"Seeded {len(SEED_JOKES)} jokes owned by {owner.username}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="punchline",
        description="Run and administer the punchline joke service.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    create_user = sub.add_parser("create-user", help="Register a user account (password is prompted)")
    create_user.add_argument("username")
    create_user.set_defaults(func=_cmd_create_user)

    seed = sub.add_parser("seed", help="Insert the sample jokes, owned by an existing user")
    seed.add_argument("--owner", required=True, metavar="USERNAME")
    seed.set_defaults(func=_cmd_seed)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"  [!] Configuration error: {exc}")
        return 2
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
