"""The number-guessing game: members pick numbers and a moderator draws one."""

from __future__ import annotations

import random
from typing import Optional

from havenbot.store import BotError, Database

MAX_NUMBER = 100

_SCHEMA = """
CREATE TABLE IF NOT EXISTS givenum (
    guild TEXT NOT NULL,
    member TEXT NOT NULL,
    number INTEGER NOT NULL
)
"""

ADMIN_REQUIRED = 'You need to have permission "Administrator" to use this command.'


class NumberGame:
    """Stores each member's chosen number per guild."""

    def __init__(self, db: Database, rng: Optional[random.Random] = None) -> None:
        self.db = db
        self.rng = rng if rng is not None else random.Random()
        with self.db.connection:
            self.db.connection.execute(_SCHEMA)

    def _stored(self, guild_id: str, user_id: str) -> Optional[int]:
        row = self.db.connection.execute(
            "SELECT number FROM givenum WHERE guild=? AND member=? LIMIT 1",
            (guild_id, user_id),
        ).fetchone()
        return None if row is None else row[0]

    def give(self, guild_id: str, user_id: str, number: int) -> str:
        """Record the member's number, which must lie in 0-100 after taking its absolute value."""
        number = abs(int(number))
        if number > MAX_NUMBER:
            raise BotError("You need to choose a number from 0-100.")
        with self.db.connection:
            if self._stored(guild_id, user_id) is None:
                self.db.connection.execute(
                    "INSERT INTO givenum VALUES ( ?, ?, ? )", (guild_id, user_id, number)
                )
                return "Successfully initialized value."
            self.db.connection.execute(
                "UPDATE givenum SET number=? WHERE guild=? AND member=?",
                (number, guild_id, user_id),
            )
        return "Successfully updated value."

    def get(self, guild_id: str, user_id: str) -> int:
        """Return the member's number, raising BotError if none was chosen."""
        number = self._stored(guild_id, user_id)
        if number is None:
            raise BotError(f"User <@{user_id}> has not chosen a number.")
        return number

    def random_select(self, guild_id: str, is_admin: bool) -> tuple[int, list[str]]:
        """Draw one of the guild's chosen numbers and return it with the members who chose it."""
        if not is_admin:
            raise BotError(ADMIN_REQUIRED)
        numbers = [
            row[0]
            for row in self.db.connection.execute(
                "SELECT number FROM givenum WHERE guild=?", (guild_id,)
            )
        ]
        if not numbers:
            raise BotError("Nobody in this server has chosen a number.")
        number = self.rng.choice(numbers)
        members = [
            row[0]
            for row in self.db.connection.execute(
                "SELECT member FROM givenum WHERE guild=? AND number=?", (guild_id, number)
            )
        ]
        return number, members