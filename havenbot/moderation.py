"""Moderator warnings and bot-managed roles, stored in per-guild data."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from havenbot.store import BotError, Database

_WARN = re.compile(r"warn <@!?\d+> (.+)")

ADMIN_REQUIRED = 'You need to have permission "Administrator" to use this command.'
ADMIN_REQUIRED_ROLE = "You need to have permission `Administrator` to use this command!"


@dataclass(frozen=True)
class Warning:
    """A warning given to a member by a moderator."""

    mod: str
    text: str
    date: int
    guild: str

    def to_dict(self) -> dict[str, Any]:
        return {"Mod": self.mod, "Text": self.text, "Date": self.date, "Guild": self.guild}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Warning":
        return cls(
            mod=str(data.get("Mod", "")),
            text=str(data.get("Text", "")),
            date=int(data.get("Date", 0)),
            guild=str(data.get("Guild", "")),
        )

    def describe(self, moderator: str) -> str:
        """Render the warning, naming the moderator as ``moderator``."""
        when = datetime.fromtimestamp(self.date)
        day = f"{when.strftime('%b')} {when.day} {when.year}"
        return f"Warned by **{moderator}** on **{day}**\nWarning: **{self.text}**\n\n"


def parse_warn(content: str) -> str:
    """Extract the warning text from ``warn @user <text>``."""
    match = _WARN.search(content)
    if match is None:
        raise BotError("Does not match format `warn @user <warning text>`")
    return match.group(1)


class Moderation:
    """Warnings and role bookkeeping for guild moderators."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def warn(
        self,
        guild_id: str,
        user_id: str,
        mod_id: str,
        text: str,
        is_admin: bool,
        now: Optional[int] = None,
    ) -> str:
        """Record a warning against ``user_id``; only administrators may warn."""
        if not is_admin:
            raise BotError(ADMIN_REQUIRED)
        warning = Warning(
            mod=mod_id,
            text=text,
            date=int(time.time()) if now is None else int(now),
            guild=guild_id,
        )
        data = self.db.server_data(guild_id)
        warns = data.setdefault("warns", {})
        warns.setdefault(user_id, []).append(warning.to_dict())
        self.db.set_server_data(guild_id, data)
        return "Successfully warned user."

    def warnings(
        self, guild_id: str, user_id: Optional[str], is_admin: bool
    ) -> dict[str, list[Warning]]:
        """Return warnings per user, for one user or, when ``user_id`` is None, everyone."""
        if not is_admin:
            raise BotError(ADMIN_REQUIRED)
        warns: dict[str, list[dict[str, Any]]] = self.db.server_data(guild_id).get("warns", {})
        if user_id is not None:
            if user_id not in warns:
                raise BotError("That user does not have any warnings.")
            warns = {user_id: warns[user_id]}
        return {
            member: [Warning.from_dict(entry) for entry in entries]
            for member, entries in warns.items()
        }

    def add_role(self, guild_id: str, name: str, is_admin: bool) -> str:
        """Register ``name`` as a role managed by the bot."""
        if not is_admin:
            raise BotError(ADMIN_REQUIRED_ROLE)
        data = self.db.server_data(guild_id)
        data.setdefault("roles", {})[name] = {}
        self.db.set_server_data(guild_id, data)
        return f"Successfully created role `{name}`"

    def remove_role(self, guild_id: str, name: str, is_admin: bool) -> str:
        """Forget a bot-managed role."""
        if not is_admin:
            raise BotError(ADMIN_REQUIRED_ROLE)
        data = self.db.server_data(guild_id)
        roles = data.get("roles", {})
        if name not in roles:
            raise BotError(f"Role `{name}` doesn't exist!")
        del roles[name]
        self.db.set_server_data(guild_id, data)
        return f"Successfully removed role `{name}`"

    def is_bot_role(self, guild_id: str, name: str) -> bool:
        """Whether ``name`` was created through the bot in this guild."""
        return name in self.db.server_data(guild_id).get("roles", {})