"""Storage for the element-combining game: elements, combos, savefiles and recents."""

from __future__ import annotations

import json
import random
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

MIN_VOTES = -1
MAX_VOTES = 3
ANARCHY_WEEKDAY = 5  # Saturday, as numbered by date.weekday()
RECENTS_LENGTH = 30
STARTING_ELEMENTS = ("Air", "Earth", "Fire", "Water")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS elements (
    name TEXT PRIMARY KEY,
    color TEXT NOT NULL,
    comment TEXT NOT NULL,
    parent1 TEXT NOT NULL,
    parent2 TEXT NOT NULL,
    creator TEXT NOT NULL,
    pioneer TEXT NOT NULL,
    createdOn INTEGER NOT NULL,
    complexity INTEGER NOT NULL,
    uses INTEGER NOT NULL,
    foundby INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS elem_combos (
    elem1 TEXT NOT NULL,
    elem2 TEXT NOT NULL,
    elem3 TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS suggestions (
    name TEXT PRIMARY KEY,
    color TEXT NOT NULL,
    creator TEXT NOT NULL,
    voted TEXT NOT NULL,
    votes INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS sugg_combos (
    elem1 TEXT NOT NULL,
    elem2 TEXT NOT NULL,
    elem3 TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS users (
    name TEXT NOT NULL,
    uid TEXT PRIMARY KEY,
    password TEXT NOT NULL,
    found TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
INSERT OR IGNORE INTO kv VALUES ('recent', '[]');
"""


def is_anarchy(today: Optional[date] = None) -> bool:
    """Whether ``today`` is anarchy day, when voting rules are relaxed."""
    return (today if today is not None else date.today()).weekday() == ANARCHY_WEEKDAY


@dataclass
class Color:
    """A suggestion's colour: a base name with saturation and lightness."""

    base: str
    lightness: float = 0.0
    saturation: float = 0.0

    def encode(self) -> str:
        """Return the stored form ``base_saturation_lightness``."""
        return f"{self.base}_{self.saturation:f}_{self.lightness:f}"

    @classmethod
    def parse(cls, text: str) -> "Color":
        """Parse the stored ``base_saturation_lightness`` form."""
        parts = text.split("_")
        if len(parts) < 3:
            raise ValueError(f"invalid color: {text!r}")
        return cls(base=parts[0], saturation=float(parts[1]), lightness=float(parts[2]))


@dataclass
class Element:
    """A created element."""

    name: str
    color: str = ""
    comment: str = "None"
    created_on: int = 0
    creator: str = ""
    parents: list[str] = field(default_factory=list)
    pioneer: str = ""
    uses: int = 0
    found_by: int = 0
    complexity: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": self.color,
            "comment": self.comment,
            "createdOn": self.created_on,
            "creator": self.creator,
            "name": self.name,
            "parents": list(self.parents),
            "pioneer": self.pioneer,
            "uses": self.uses,
            "foundby": self.found_by,
            "complexity": self.complexity,
        }


@dataclass
class Suggestion:
    """A proposed result for a combination that has no element yet."""

    name: str
    color: Color
    creator: str = ""
    votes: int = 0
    voted: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecentCombination:
    """A recently created combination."""

    recipe: tuple[str, str]
    result: str

    def to_dict(self) -> dict[str, Any]:
        return {"Recipe": list(self.recipe), "Result": self.result}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecentCombination":
        recipe = data.get("Recipe") or ["", ""]
        return cls(recipe=(str(recipe[0]), str(recipe[1])), result=str(data.get("Result", "")))


class Elemental:
    """SQLite-backed game state with an in-memory element cache."""

    def __init__(self, path: str = ":memory:") -> None:
        self.connection = sqlite3.connect(path, check_same_thread=False)
        self.connection.executescript(_SCHEMA)
        self.rng = random.Random()
        self._cache: dict[str, Element] = {}
        self._lock = threading.RLock()

    def __enter__(self) -> "Elemental":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def add_element(self, element: Element) -> None:
        """Insert a new element."""
        parents = list(element.parents) + ["", ""]
        with self.connection:
            self.connection.execute(
                "INSERT INTO elements VALUES( ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ? )",
                (
                    element.name,
                    element.color,
                    element.comment,
                    parents[0],
                    parents[1],
                    element.creator,
                    element.pioneer,
                    element.created_on,
                    element.complexity,
                    element.uses,
                    element.found_by,
                ),
            )
        with self._lock:
            self._cache[element.name] = element

    def get_element(self, name: str) -> Element:
        """Return an element, from the cache when possible."""
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached
        return self.refresh_element(name)

    def refresh_element(self, name: str) -> Element:
        """Reload an element from storage into the cache."""
        row = self.connection.execute(
            "SELECT * FROM elements WHERE name=?", (name,)
        ).fetchone()
        if row is None:
            raise KeyError(f"Element {name} doesn't exist!")
        (
            elem_name, color, comment, parent1, parent2, creator,
            pioneer, created_on, complexity, uses, found_by,
        ) = row
        parents = [] if parent1 == "" and parent2 == "" else [parent1, parent2]
        element = Element(
            name=elem_name,
            color=color,
            comment=comment,
            created_on=created_on,
            creator=creator,
            parents=parents,
            pioneer=pioneer,
            uses=uses,
            found_by=found_by,
            complexity=complexity,
        )
        with self._lock:
            self._cache[name] = element
        return element

    def get_combo(self, elem1: str, elem2: str) -> Optional[str]:
        """Return the result of combining two elements in either order, or None."""
        row = self.connection.execute(
            "SELECT elem3 FROM elem_combos WHERE (elem1=? AND elem2=?) OR (elem1=? AND elem2=?) "
            "LIMIT 1",
            (elem1, elem2, elem2, elem1),
        ).fetchone()
        return None if row is None else row[0]

    def add_combo(self, elem1: str, elem2: str, result: str) -> None:
        """Record that ``elem1`` and ``elem2`` make ``result``."""
        with self.connection:
            self.connection.execute(
                "INSERT INTO elem_combos VALUES ( ?, ?, ? )", (elem1, elem2, result)
            )

    def get_suggestions(self, elem1: str, elem2: str) -> list[str]:
        """Return every suggested result for the combination, in either order."""
        rows = self.connection.execute(
            "SELECT elem3 FROM sugg_combos WHERE (elem1=? AND elem2=?) OR (elem1=? AND elem2=?)",
            (elem1, elem2, elem2, elem1),
        )
        return [row[0] for row in rows]

    def get_found(self, uid: str) -> list[str]:
        """Return the names of the elements a user has found."""
        row = self.connection.execute(
            "SELECT found FROM users WHERE uid=?", (uid,)
        ).fetchone()
        if row is None:
            raise KeyError(f"No user with uid {uid}")
        return list(json.loads(row[0]) or [])

    def new_found(self, name: str, uid: str) -> None:
        """Add an element to a user's savefile and count the new finder."""
        found = self.get_found(uid)
        if name in found:
            return
        element = self.get_element(name)
        found.append(name)
        with self.connection:
            self.connection.execute(
                "UPDATE users SET found=? WHERE uid=?",
                (json.dumps(found, separators=(",", ":")), uid),
            )
            element.found_by += 1
            self.connection.execute(
                "UPDATE elements SET foundby=? WHERE name=?", (element.found_by, element.name)
            )
        with self._lock:
            self._cache[element.name] = element

    def recents(self) -> list[RecentCombination]:
        """Return the recent combinations, newest first."""
        row = self.connection.execute("SELECT value FROM kv WHERE key='recent'").fetchone()
        data = json.loads(row[0]) if row is not None else []
        return [RecentCombination.from_dict(item) for item in data or []]

    def push_recent(self, combo: RecentCombination) -> None:
        """Put ``combo`` first in the recents, trimming the list when it overflows."""
        recents = [combo] + self.recents()
        if len(recents) > RECENTS_LENGTH:
            recents = recents[: RECENTS_LENGTH - 1]
        with self.connection:
            self.connection.execute(
                "INSERT OR REPLACE INTO kv VALUES ('recent', ?)",
                (json.dumps([item.to_dict() for item in recents]),),
            )

    def all_elements(self, uid: str) -> list[Element]:
        """Return the user's found elements plus every element in the recents."""
        wanted: dict[str, None] = dict.fromkeys(self.get_found(uid))
        for recent in self.recents():
            wanted[recent.result] = None
            wanted[recent.recipe[0]] = None
            wanted[recent.recipe[1]] = None
        return [self.get_element(name) for name in wanted]

    def _random_suggestion(
        self, uid: str, today: Optional[date], wanted_votes: Callable[[int], bool]
    ) -> list[str]:
        try:
            found = set(self.get_found(uid))
        except KeyError:
            found = set()
        anarchy = is_anarchy(today)
        marker = f'"{uid}"'
        candidates: list[tuple[str, str]] = []
        rows = self.connection.execute("SELECT name, votes, voted FROM suggestions").fetchall()
        for name, votes, voted in rows:
            if not anarchy and (not wanted_votes(votes) or marker in voted):
                continue
            combo = self.connection.execute(
                "SELECT elem1, elem2 FROM sugg_combos WHERE elem3=? LIMIT 1", (name,)
            ).fetchone()
            if combo is None or combo[0] not in found or combo[1] not in found:
                continue
            candidates.append((combo[0], combo[1]))
        if not candidates:
            raise LookupError("No available suggestion")
        elem1, elem2 = self.rng.choice(candidates)
        return [elem1, elem2]

    def random_lonely_suggestion(self, uid: str, today: Optional[date] = None) -> list[str]:
        """Pick a suggestion the user has not voted on and can make; return its parents."""
        return self._random_suggestion(uid, today, lambda votes: votes < MAX_VOTES)

    def up_and_coming_suggestion(self, uid: str, today: Optional[date] = None) -> list[str]:
        """Pick a suggestion one vote short of creation; return its parents."""
        return self._random_suggestion(uid, today, lambda votes: votes == MAX_VOTES - 1)

    def close(self) -> None:
        self.connection.close()