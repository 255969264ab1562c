"""Voting on suggested elements and turning winning suggestions into elements."""

from __future__ import annotations

import json
import sqlite3
import time
from datetime import date
from typing import Optional

from havenbot.elemental_db import (
    MAX_VOTES,
    MIN_VOTES,
    Color,
    Element,
    Elemental,
    RecentCombination,
    Suggestion,
    is_anarchy,
)


class SuggestionError(Exception):
    """Raised when a suggestion cannot be found, voted on or created."""


def _dump(value: object) -> str:
    return json.dumps(value, separators=(",", ":"))


def get_suggestion(game: Elemental, name: str) -> Suggestion:
    """Load a suggestion by name."""
    row = game.connection.execute(
        "SELECT name, color, creator, voted, votes FROM suggestions WHERE name=?", (name,)
    ).fetchone()
    if row is None:
        raise SuggestionError(f"Suggestion {name} doesn't exist!")
    sugg_name, color, creator, voted, votes = row
    try:
        parsed_color = Color.parse(color)
        voted_list = list(json.loads(voted) or [])
    except ValueError as exc:
        raise SuggestionError(str(exc)) from exc
    return Suggestion(
        name=sugg_name, color=parsed_color, creator=creator, votes=votes, voted=voted_list
    )


def _save_votes(game: Elemental, suggestion: Suggestion) -> None:
    with game.connection:
        game.connection.execute(
            "UPDATE suggestions SET votes=?, voted=? WHERE name=?",
            (suggestion.votes, _dump(suggestion.voted), suggestion.name),
        )


def new_suggestion(
    game: Elemental,
    elem1: str,
    elem2: str,
    suggestion: Suggestion,
    today: Optional[date] = None,
) -> bool:
    """Store a suggestion for ``elem1 + elem2``; return whether it should be created at once."""
    try:
        with game.connection:
            game.connection.execute(
                "INSERT INTO suggestions VALUES( ?, ?, ?, ?, ? )",
                (
                    suggestion.name,
                    suggestion.color.encode(),
                    suggestion.creator,
                    _dump(suggestion.voted),
                    suggestion.votes,
                ),
            )
            game.connection.execute(
                "INSERT INTO sugg_combos VALUES ( ?, ?, ? )", (elem1, elem2, suggestion.name)
            )
    except sqlite3.IntegrityError as exc:
        raise SuggestionError(str(exc)) from exc
    return is_anarchy(today)


def upvote(game: Elemental, name: str, uid: str, today: Optional[date] = None) -> bool:
    """Add a vote; return whether the suggestion should now become an element."""
    existing = get_suggestion(game, name)
    anarchy = is_anarchy(today)
    if not anarchy and uid in existing.voted:
        raise SuggestionError("You already voted!")
    existing.votes += 1
    existing.voted.append(uid)
    _save_votes(game, existing)
    return existing.votes >= MAX_VOTES or anarchy


def downvote(game: Elemental, name: str, uid: str) -> bool:
    """Remove a vote; return True if the suggestion fell below the minimum and was deleted."""
    existing = get_suggestion(game, name)
    if uid in existing.voted:
        raise SuggestionError("You already voted!")
    existing.votes -= 1
    if existing.votes < MIN_VOTES:
        with game.connection:
            game.connection.execute("DELETE FROM suggestions WHERE name=?", (name,))
        return True
    existing.voted.append(uid)
    _save_votes(game, existing)
    return False


def _increment_uses(game: Elemental, element: Element) -> None:
    element.uses += 1
    with game.connection:
        game.connection.execute(
            "UPDATE elements SET uses=? WHERE name=?", (element.uses, element.name)
        )


def create_element(
    game: Elemental,
    mark: str,
    pioneer: str,
    elem1: str,
    elem2: str,
    name: str,
    today: Optional[date] = None,
    now: Optional[int] = None,
) -> Element:
    """Turn the suggestion ``name`` into the element made by ``elem1 + elem2``."""
    existing = get_suggestion(game, name)
    if existing.votes < MAX_VOTES and not is_anarchy(today):
        raise SuggestionError("This element still needs more votes!")
    timestamp = int(time.time()) if now is None else int(now)

    hanging = game.get_suggestions(elem1, elem2)
    with game.connection:
        for other in hanging:
            game.connection.execute("DELETE FROM suggestions WHERE name=?", (other,))
        game.connection.execute(
            "DELETE FROM sugg_combos WHERE (elem1=? AND elem2=?) OR (elem1=? AND elem2=?)",
            (elem1, elem2, elem2, elem1),
        )

    (count,) = game.connection.execute(
        "SELECT COUNT(1) FROM elements WHERE name=?", (existing.name,)
    ).fetchone()

    try:
        parent1 = game.get_element(elem1)
        parent2 = game.get_element(elem2)
    except KeyError as exc:
        raise SuggestionError(exc.args[0]) from None
    complexity = max(parent1.complexity, parent2.complexity) + 1

    _increment_uses(game, parent1)
    if elem2 != elem1:
        _increment_uses(game, parent2)

    if count == 0:
        game.add_element(
            Element(
                name=existing.name,
                color=existing.color.encode(),
                comment=mark,
                created_on=timestamp * 1000,
                creator=existing.creator,
                parents=[elem1, elem2],
                pioneer=pioneer,
                uses=0,
                found_by=0,
                complexity=complexity,
            )
        )

    game.add_combo(elem1, elem2, existing.name)
    game.push_recent(RecentCombination(recipe=(elem1, elem2), result=name))
    return game.get_element(existing.name)