"""Repair and administration tasks for the element game's database."""

from __future__ import annotations

import argparse
import json
from typing import Mapping, Optional, Sequence

from havenbot.elemental_db import Element, Elemental


def calc_complexity(elements: Mapping[str, Element]) -> dict[str, int]:
    """Return each element's complexity: one more than its most complex parent."""
    scores: dict[str, int] = {}
    visiting: set[str] = set()
    for root in elements:
        stack = [root]
        while stack:
            name = stack[-1]
            if name in scores:
                stack.pop()
                continue
            element = elements.get(name)
            if element is None or len(element.parents) < 2:
                scores[name] = 0
                stack.pop()
                continue
            parents = element.parents[:2]
            pending = [parent for parent in parents if parent not in scores]
            if pending:
                if name in visiting:
                    raise ValueError(f"Recipe of {name} depends on itself")
                visiting.add(name)
                stack.extend(pending)
                continue
            scores[name] = max(scores[parent] for parent in parents) + 1
            visiting.discard(name)
            stack.pop()
    return {name: scores[name] for name in elements}


def fix_elements(game: Elemental) -> dict[str, Element]:
    """Recount uses and finders and recompute complexity for every element."""
    names = [row[0] for row in game.connection.execute("SELECT name FROM elements")]
    elements: dict[str, Element] = {}
    for name in names:
        element = game.refresh_element(name)
        (element.uses,) = game.connection.execute(
            "SELECT COUNT(1) FROM elem_combos WHERE elem1=? OR elem2=?", (name, name)
        ).fetchone()
        (element.found_by,) = game.connection.execute(
            "SELECT COUNT(1) FROM users WHERE found LIKE ?", (f"%{name}%",)
        ).fetchone()
        elements[name] = element
    for name, complexity in calc_complexity(elements).items():
        elements[name].complexity = complexity
    with game.connection:
        for element in elements.values():
            game.connection.execute(
                "UPDATE elements SET complexity=?, foundby=?, uses=? WHERE name=?",
                (element.complexity, element.found_by, element.uses, element.name),
            )
    return {name: game.refresh_element(name) for name in elements}


def clean_suggestions(game: Elemental) -> list[str]:
    """Delete suggestions left over for combinations that already have an element."""
    combos = game.connection.execute("SELECT elem1, elem2 FROM elem_combos").fetchall()
    removed: list[str] = []
    for elem1, elem2 in combos:
        names = game.get_suggestions(elem1, elem2)
        with game.connection:
            for name in names:
                game.connection.execute("DELETE FROM suggestions WHERE name=?", (name,))
            game.connection.execute(
                "DELETE FROM sugg_combos WHERE (elem1=? AND elem2=?) OR (elem1=? AND elem2=?)",
                (elem1, elem2, elem2, elem1),
            )
        removed.extend(names)
    return removed


def give_all(game: Elemental, username: str) -> list[str]:
    """Give the named user every element, oldest first; return the element names."""
    names = [
        row[0]
        for row in game.connection.execute("SELECT name FROM elements ORDER BY createdOn ASC")
    ]
    with game.connection:
        game.connection.execute(
            "UPDATE users SET found=? WHERE name=?",
            (json.dumps(names, separators=(",", ":")), username),
        )
    return names


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one maintenance task against the element database."""
    parser = argparse.ArgumentParser(description="Element game maintenance tasks.")
    parser.add_argument("--database", default="elemental.db", help="path of the database file")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("fix", help="recount uses, finders and complexity")
    commands.add_parser("clean", help="remove suggestions for existing combinations")
    give = commands.add_parser("giveall", help="give a user every element")
    give.add_argument("username", nargs="?")
    args = parser.parse_args(argv)

    with Elemental(args.database) as game:
        print("Connected")
        if args.command == "fix":
            for element in fix_elements(game).values():
                print(element.name, element.complexity, element.found_by, element.uses)
        elif args.command == "clean":
            for name in clean_suggestions(game):
                print(name)
        else:
            username = args.username if args.username is not None else input("Username: ")
            give_all(game, username.strip())
    return 0