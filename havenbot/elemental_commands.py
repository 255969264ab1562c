"""Chat commands for the element-combining game."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from havenbot.auth import AuthError, create_user
from havenbot.elemental_db import Color, Elemental, Suggestion
from havenbot.store import BotError, Database, User
from havenbot.suggestions import (
    SuggestionError,
    create_element,
    downvote,
    new_suggestion,
    upvote,
)

INVENTORY_PAGE = 20
INVENTORY_SHOWN = 22

COLORS = (
    "white",
    "black",
    "grey",
    "brown",
    "red",
    "orange",
    "yellow",
    "green",
    "aqua",
    "blue",
    "dark-blue",
    "yellow-green",
    "purple",
    "magenta",
    "hot-pink",
    "pink",
)

_SUGGEST_FORMAT = (
    "Message does not fit format `suggest <element name> <color>`! Valid colors: white, "
    "black, grey, brown, red, orange, yellow, green, aqua, blue, dark-blue, yellow-green, "
    "purple, magenta, hot-pink, and pink."
)
_NOT_LOGGED_IN = (
    "You need to get an account! Use the `elogin` command to login to Nv7's Elemental!"
)
_NO_SUGGESTION = "Suggestion doesn't exist! Use the `suggest` command to suggest something!"


@dataclass(frozen=True)
class _Combination:
    elem1: str
    elem2: str
    result: Optional[str]


def _suggestion_text(elem1: str, elem2: str, names: list[str]) -> str:
    return f"Suggestions for {elem1}+{elem2}\n" + "\n".join(names)


class ElementalCommands:
    """Game commands issued by chat users, who log in with their chat id."""

    def __init__(self, db: Database, game: Elemental) -> None:
        self.db = db
        self.game = game
        self._combos: dict[str, _Combination] = {}

    def _logged_in_user(self, user_id: str, guild_id: str) -> User:
        user = self.db.ensure_user(user_id, guild_id)
        if "uid" not in user.metadata:
            raise BotError(_NOT_LOGGED_IN)
        return user

    @staticmethod
    def _uid(user: User) -> str:
        uid = user.metadata.get("uid")
        if uid is None:
            raise BotError("Not logged in!")
        if not isinstance(uid, str):
            raise BotError("Invalid UID!")
        return uid

    def _element_exists(self, name: str) -> bool:
        (count,) = self.game.connection.execute(
            "SELECT COUNT(1) FROM elements WHERE name=?", (name,)
        ).fetchone()
        return count != 0

    def _require_element(self, name: str) -> None:
        if not self._element_exists(name):
            raise BotError(f"Element **{name}** doesn't exist!")

    def login(self, user_id: str, guild_id: str, username: str) -> str:
        """Create a game account for the chat user."""
        user = self.db.ensure_user(user_id, guild_id)
        if "uid" in user.metadata:
            raise BotError("You are already logged in!")
        try:
            uid = create_user(self.game, username, user_id)
        except AuthError as exc:
            raise BotError(str(exc)) from None
        user.metadata["uid"] = uid
        user.metadata["eusername"] = username
        self.db.update_user(user)
        return "Successfully logged in!"

    def inventory(self, user_id: str, guild_id: str, page: int = 0) -> list[str]:
        """Return one page of the elements the user has found."""
        user = self._logged_in_user(user_id, guild_id)
        found = self.game.get_found(self._uid(user))
        start = page * INVENTORY_PAGE
        if page < 0 or start > len(found):
            raise BotError(f"No inventory page {page}.")
        return found[start : start + INVENTORY_SHOWN]

    def combo(self, user_id: str, guild_id: str, elem1: str, elem2: str) -> Optional[str]:
        """Combine two found elements; without a result, list its suggestions."""
        elem1, elem2 = elem1.strip(), elem2.strip()
        if not elem1 or not elem2:
            return None
        user = self._logged_in_user(user_id, guild_id)
        result = self.game.get_combo(elem1, elem2)
        self._require_element(elem1)
        self._require_element(elem2)
        uid = self._uid(user)

        found = {name.upper() for name in self.game.get_found(uid)}
        for name in (elem1, elem2):
            if name.upper() not in found:
                raise BotError(f"You haven't found element {name} yet!")

        self._combos[user_id] = _Combination(elem1, elem2, result)
        if result is None:
            return _suggestion_text(elem1, elem2, self.game.get_suggestions(elem1, elem2))
        self.game.new_found(result, uid)
        return f"You made {result}!"

    def _pending(self, user_id: str) -> _Combination:
        combination = self._combos.get(user_id)
        if combination is None:
            raise BotError("You haven't combined any elements!")
        if self.game.get_combo(combination.elem1, combination.elem2) is not None:
            raise BotError("Combo already exists!")
        return combination

    def _matching_suggestion(self, combination: _Combination, name: str) -> str:
        upper = name.upper()
        for candidate in self.game.get_suggestions(combination.elem1, combination.elem2):
            if candidate.upper() == upper:
                return candidate
        raise BotError(_NO_SUGGESTION)

    def _create(
        self, combination: _Combination, user: User, name: str, today: Optional[date]
    ) -> str:
        try:
            create_element(
                self.game,
                "None",
                user.metadata["eusername"],
                combination.elem1,
                combination.elem2,
                name,
                today,
            )
        except SuggestionError as exc:
            raise BotError(str(exc)) from None
        self.game.new_found(name, self._uid(user))
        return (
            f"Succesfully created element {name}! "
            "You can use the `mark` command to add a creator mark!"
        )

    def suggest(
        self,
        user_id: str,
        guild_id: str,
        name: str,
        color: str,
        today: Optional[date] = None,
    ) -> str:
        """Suggest a result for the user's last uncreated combination."""
        if color not in COLORS:
            raise BotError(_SUGGEST_FORMAT)
        user = self._logged_in_user(user_id, guild_id)
        name = name.strip()
        combination = self._pending(user_id)
        if name in self.game.get_suggestions(combination.elem1, combination.elem2):
            raise BotError(
                "Someone's already suggested that! "
                "Use the `upvote` command to upvote a suggestion!"
            )
        suggestion = Suggestion(
            name=name,
            color=Color(base=color),
            creator=user.metadata["eusername"],
            votes=0,
            voted=[self._uid(user)],
        )
        try:
            create = new_suggestion(
                self.game, combination.elem1, combination.elem2, suggestion, today
            )
        except SuggestionError as exc:
            raise BotError(str(exc)) from None
        if create:
            return self._create(combination, user, name, today)
        return "Succesfully created suggestion!"

    def upvote(
        self, user_id: str, guild_id: str, name: str, today: Optional[date] = None
    ) -> str:
        """Vote for a suggestion; enough votes create the element."""
        user = self._logged_in_user(user_id, guild_id)
        combination = self._pending(user_id)
        stored = self._matching_suggestion(combination, name.strip())
        try:
            create = upvote(self.game, stored, self._uid(user), today)
        except SuggestionError as exc:
            raise BotError(str(exc)) from None
        if create:
            return self._create(combination, user, stored, today)
        return "Succesfully upvoted suggestion!"

    def downvote(self, user_id: str, guild_id: str, name: str) -> str:
        """Vote against a suggestion."""
        user = self._logged_in_user(user_id, guild_id)
        combination = self._pending(user_id)
        stored = self._matching_suggestion(combination, name.strip())
        try:
            downvote(self.game, stored, self._uid(user))
        except SuggestionError as exc:
            raise BotError(str(exc)) from None
        return "Succesfully downvoted suggestion!"

    def mark(self, user_id: str, guild_id: str, element: str, mark: str) -> str:
        """Set the creator mark of an element the user pioneered."""
        user = self._logged_in_user(user_id, guild_id)
        self._require_element(element)
        current = self.game.get_element(element)
        if current.comment != "None":
            raise BotError("The element already has a creator mark!")
        if current.pioneer != user.metadata.get("eusername"):
            raise BotError("You didn't make this element!")
        with self.game.connection:
            self.game.connection.execute(
                "UPDATE elements SET comment=? WHERE name=?", (mark, element)
            )
        self.game.refresh_element(element)
        return "Succesfully added creator mark!"

    def random_suggestion(
        self, user_id: str, kind: str = "lonely", today: Optional[date] = None
    ) -> str:
        """Pick a random suggestion (``lonely`` or ``upcoming``) and list its rivals."""
        getters: dict[str, Callable[[str, Optional[date]], list[str]]] = {
            "lonely": self.game.random_lonely_suggestion,
            "upcoming": self.game.up_and_coming_suggestion,
        }
        getter = getters.get(kind)
        if getter is None:
            raise ValueError(f"unknown suggestion kind: {kind!r}")
        uid = self._uid(self.db.get_user(user_id))
        try:
            parents = getter(uid, today)
        except (LookupError, KeyError):
            parents = []
        if len(parents) != 2:
            raise BotError("No available random lonely suggestions right now! Check back later!")
        elem1, elem2 = parents
        self._combos[user_id] = _Combination(elem1, elem2, None)
        return _suggestion_text(elem1, elem2, self.game.get_suggestions(elem1, elem2))