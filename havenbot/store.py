"""Persistent storage for bot users, per-guild data and command prefixes."""

from __future__ import annotations

import json
import sqlite3
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Optional

_SCHEMA = """
CREATE TABLE IF NOT EXISTS currency (
    user TEXT PRIMARY KEY,
    guilds TEXT NOT NULL,
    wallet INTEGER NOT NULL,
    bank INTEGER NOT NULL,
    credit INTEGER NOT NULL,
    properties TEXT NOT NULL,
    lastvisited INTEGER NOT NULL,
    metadata TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS serverdata (
    id TEXT PRIMARY KEY,
    data TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS prefixes (
    guild TEXT PRIMARY KEY,
    prefix TEXT NOT NULL
);
"""


class BotError(Exception):
    """Raised when a stored record is missing or unreadable."""


def _dump(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


@dataclass
class User:
    """A player's economy record."""

    user: str
    guilds: list[str] = field(default_factory=list)
    wallet: int = 0
    bank: int = 0
    credit: int = 0
    properties: dict[str, int] = field(default_factory=dict)
    last_visited: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


class Database:
    """SQLite-backed store shared by the bot's commands."""

    def __init__(self, path: str = ":memory:") -> None:
        self.connection = sqlite3.connect(path, check_same_thread=False)
        self.connection.executescript(_SCHEMA)
        self._prefixes: dict[str, str] = {}
        self._lock = threading.RLock()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def ensure_user(self, user_id: str, guild_id: str) -> User:
        """Create the user if needed and record membership of ``guild_id``."""
        row = self.connection.execute(
            "SELECT COUNT(1) FROM currency WHERE user=?", (user_id,)
        ).fetchone()
        if row[0] == 0:
            with self.connection:
                self.connection.execute(
                    "INSERT INTO currency VALUES ( ?, ?, ?, ?, ?, ?, ?, ? )",
                    (user_id, _dump([guild_id]), 0, 0, 0, "{}", int(time.time()), "{}"),
                )
            return self.get_user(user_id)
        user = self.get_user(user_id)
        if guild_id not in user.guilds:
            user.guilds.append(guild_id)
            self.update_user(user)
        return user

    def get_user(self, user_id: str) -> User:
        """Load a user, raising BotError if absent or corrupt."""
        row = self.connection.execute(
            "SELECT user, guilds, wallet, bank, credit, properties, lastvisited, metadata "
            "FROM currency WHERE user=?",
            (user_id,),
        ).fetchone()
        if row is None:
            raise BotError(f"no such user: {user_id}")
        name, guilds, wallet, bank, credit, props, last_visited, metadata = row
        try:
            return User(
                user=name,
                guilds=json.loads(guilds) or [],
                wallet=wallet,
                bank=bank,
                credit=credit,
                properties=json.loads(props) or {},
                last_visited=last_visited,
                metadata=json.loads(metadata) or {},
            )
        except json.JSONDecodeError as exc:
            raise BotError(str(exc)) from exc

    def update_user(self, user: User) -> None:
        """Write every field of ``user`` back to storage."""
        with self.connection:
            self.connection.execute(
                "UPDATE currency SET guilds=?, wallet=?, bank=?, credit=?, properties=?, "
                "lastvisited=?, metadata=? WHERE user=?",
                (
                    _dump(user.guilds),
                    user.wallet,
                    user.bank,
                    user.credit,
                    _dump(user.properties),
                    user.last_visited,
                    _dump(user.metadata),
                    user.user,
                ),
            )

    def server_data(self, guild_id: str) -> dict[str, Any]:
        """Return the guild's data, creating an empty record if needed."""
        row = self.connection.execute(
            "SELECT data FROM serverdata WHERE id=?", (guild_id,)
        ).fetchone()
        if row is None:
            with self.connection:
                self.connection.execute(
                    "INSERT INTO serverdata VALUES ( ?, ? )", (guild_id, "{}")
                )
            return {}
        try:
            return json.loads(row[0]) or {}
        except json.JSONDecodeError as exc:
            raise BotError(str(exc)) from exc

    def set_server_data(self, guild_id: str, data: dict[str, Any]) -> None:
        """Replace the guild's stored data."""
        with self.connection:
            self.connection.execute(
                "INSERT OR REPLACE INTO serverdata VALUES ( ?, ? )", (guild_id, _dump(data))
            )

    def prefix(self, guild_id: str) -> str:
        """Return the guild's command prefix, defaulting to the empty string."""
        with self._lock:
            cached = self._prefixes.get(guild_id)
            if cached is not None:
                return cached
            row = self.connection.execute(
                "SELECT prefix FROM prefixes WHERE guild=?", (guild_id,)
            ).fetchone()
            if row is None:
                with self.connection:
                    self.connection.execute(
                        "INSERT INTO prefixes VALUES ( ?, ? )", (guild_id, "")
                    )
                prefix = ""
            else:
                prefix = row[0]
            self._prefixes[guild_id] = prefix
            return prefix

    def set_prefix(self, guild_id: str, prefix: str) -> None:
        """Store a new command prefix for the guild."""
        with self._lock:
            with self.connection:
                self.connection.execute(
                    "INSERT OR REPLACE INTO prefixes VALUES ( ?, ? )", (guild_id, prefix)
                )
            self._prefixes[guild_id] = prefix

    def strip_command(self, guild_id: str, content: str, command: str) -> Optional[str]:
        """If ``content`` starts with the prefix and ``command``, return it without the prefix."""
        prefix = self.prefix(guild_id)
        if content.startswith(prefix + command):
            return content[len(prefix):]
        return None

    def close(self) -> None:
        self.connection.close()