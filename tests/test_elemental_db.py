import json
from datetime import date

import pytest

from havenbot.elemental_db import (
    MAX_VOTES,
    RECENTS_LENGTH,
    Color,
    Element,
    Elemental,
    RecentCombination,
    is_anarchy,
)

SATURDAY = date(2021, 7, 3)
MONDAY = date(2021, 7, 5)


def _add_user(game, name, uid, found):
    with game.connection:
        game.connection.execute(
            "INSERT INTO users VALUES (?, ?, ?, ?)", (name, uid, "hash", json.dumps(found))
        )


def _add_suggestion(game, name, elem1, elem2, votes=0, voted=()):
    with game.connection:
        game.connection.execute(
            "INSERT INTO suggestions VALUES (?, ?, ?, ?, ?)",
            (name, Color("red").encode(), "someone", json.dumps(list(voted)), votes),
        )
        game.connection.execute(
            "INSERT INTO sugg_combos VALUES (?, ?, ?)", (elem1, elem2, name)
        )


@pytest.fixture
def game():
    with Elemental() as g:
        for name in ("Air", "Earth", "Fire", "Water"):
            g.add_element(Element(name=name))
        yield g


def test_anarchy_day_is_saturday():
    assert is_anarchy(SATURDAY)
    assert not is_anarchy(MONDAY)


def test_color_encode_format_and_round_trip():
    color = Color(base="red", lightness=0.25, saturation=0.5)
    assert color.encode() == "red_0.500000_0.250000"
    assert Color.parse(color.encode()) == color


def test_color_parse_rejects_garbage():
    with pytest.raises(ValueError):
        Color.parse("red")


def test_element_round_trip_through_storage(game):
    steam = Element(name="Steam", color="white_0.000000_0.000000", parents=["Fire", "Water"],
                    creator="a", pioneer="b", created_on=1000, complexity=1)
    game.add_element(steam)
    loaded = game.refresh_element("Steam")
    assert loaded == steam
    assert game.get_element("Air").parents == []


def test_missing_element_raises(game):
    with pytest.raises(KeyError):
        game.get_element("Nothing")


def test_get_element_uses_cache_until_refresh(game):
    with game.connection:
        game.connection.execute("UPDATE elements SET comment=? WHERE name=?", ("mine", "Air"))
    assert game.get_element("Air").comment == "None"
    assert game.refresh_element("Air").comment == "mine"
    assert game.get_element("Air").comment == "mine"


def test_combos_are_symmetric(game):
    assert game.get_combo("Fire", "Water") is None
    game.add_combo("Fire", "Water", "Steam")
    assert game.get_combo("Fire", "Water") == "Steam"
    assert game.get_combo("Water", "Fire") == "Steam"


def test_suggestions_are_symmetric(game):
    _add_suggestion(game, "Mud", "Earth", "Water")
    _add_suggestion(game, "Swamp", "Water", "Earth")
    assert sorted(game.get_suggestions("Earth", "Water")) == ["Mud", "Swamp"]
    assert game.get_suggestions("Air", "Fire") == []


def test_found_and_new_found(game):
    _add_user(game, "alice", "uid1", ["Air"])
    assert game.get_found("uid1") == ["Air"]
    game.new_found("Fire", "uid1")
    game.new_found("Fire", "uid1")
    assert game.get_found("uid1") == ["Air", "Fire"]
    assert game.get_element("Fire").found_by == 1
    assert game.refresh_element("Fire").found_by == 1


def test_get_found_unknown_user(game):
    with pytest.raises(KeyError):
        game.get_found("missing")


def test_recents_newest_first_and_trimmed(game):
    assert game.recents() == []
    combos = [RecentCombination(recipe=("Air", "Fire"), result=f"E{i}") for i in range(RECENTS_LENGTH)]
    for combo in combos:
        game.push_recent(combo)
    recents = game.recents()
    assert len(recents) == RECENTS_LENGTH
    assert recents[0] == combos[-1]
    game.push_recent(RecentCombination(recipe=("Air", "Air"), result="Last"))
    recents = game.recents()
    assert len(recents) == RECENTS_LENGTH - 1
    assert recents[0].result == "Last"


def test_all_elements_includes_recents(game):
    game.add_element(Element(name="Steam", parents=["Fire", "Water"]))
    _add_user(game, "alice", "uid1", ["Air"])
    game.push_recent(RecentCombination(recipe=("Fire", "Water"), result="Steam"))
    names = {element.name for element in game.all_elements("uid1")}
    assert names == {"Air", "Fire", "Water", "Steam"}


def test_random_lonely_suggestion(game):
    _add_user(game, "alice", "uid1", ["Air", "Water"])
    _add_suggestion(game, "Cloud", "Air", "Water")
    _add_suggestion(game, "Lava", "Earth", "Fire")
    assert game.random_lonely_suggestion("uid1", MONDAY) == ["Air", "Water"]


def test_random_lonely_skips_voted_except_on_anarchy(game):
    _add_user(game, "alice", "uid1", ["Air", "Water"])
    _add_suggestion(game, "Cloud", "Air", "Water", voted=["uid1"])
    with pytest.raises(LookupError):
        game.random_lonely_suggestion("uid1", MONDAY)
    assert game.random_lonely_suggestion("uid1", SATURDAY) == ["Air", "Water"]


def test_up_and_coming_needs_one_vote(game):
    _add_user(game, "alice", "uid1", ["Air", "Water", "Fire"])
    _add_suggestion(game, "Cloud", "Air", "Water", votes=0)
    with pytest.raises(LookupError):
        game.up_and_coming_suggestion("uid1", MONDAY)
    _add_suggestion(game, "Steam", "Fire", "Water", votes=MAX_VOTES - 1)
    assert game.up_and_coming_suggestion("uid1", MONDAY) == ["Fire", "Water"]