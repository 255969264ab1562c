"""Account creation and login for the element game."""

from __future__ import annotations

import bcrypt

from havenbot.elemental_db import Elemental
from havenbot.tokens import random_string_urlsafe

BCRYPT_ROUNDS = 8
_INITIAL_FOUND = '["Air", "Earth", "Fire", "Water"]'


class AuthError(Exception):
    """Raised when an account cannot be created or a login fails."""


def _count(game: Elemental, column: str, value: str) -> int:
    row = game.connection.execute(
        f"SELECT COUNT(1) FROM users WHERE {column}=?", (value,)
    ).fetchone()
    return row[0]


def create_user(game: Elemental, name: str, password: str) -> str:
    """Create an account and return its new uid."""
    try:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    except ValueError as exc:
        raise AuthError(str(exc)) from exc
    uid = random_string_urlsafe(16)
    while _count(game, "uid", uid) != 0:
        uid = random_string_urlsafe(16)
    if _count(game, "name", name) != 0:
        raise AuthError("Account already exists!")
    with game.connection:
        game.connection.execute(
            "INSERT INTO users VALUES( ?, ?, ?, ? )",
            (name, uid, hashed.decode("ascii"), _INITIAL_FOUND),
        )
    return uid


def login_user(game: Elemental, name: str, password: str) -> str:
    """Check the credentials and return the account's uid."""
    row = game.connection.execute(
        "SELECT uid, password FROM users WHERE name=? LIMIT 1", (name,)
    ).fetchone()
    if row is None:
        raise AuthError("Invalid username")
    uid, stored = row
    try:
        valid = bcrypt.checkpw(password.encode("utf-8"), stored.encode("ascii"))
    except ValueError:
        valid = False
    if not valid:
        raise AuthError("Invalid password")
    return uid


def new_anonymous_user(game: Elemental) -> str:
    """Return a random user name that no account uses yet."""
    name = random_string_urlsafe(8)
    while _count(game, "name", name) != 0:
        name = random_string_urlsafe(8)
    return name