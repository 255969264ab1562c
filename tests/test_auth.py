import pytest

from havenbot.auth import AuthError, create_user, login_user, new_anonymous_user
from havenbot.elemental_db import STARTING_ELEMENTS, Elemental


@pytest.fixture
def game():
    with Elemental() as g:
        yield g


def test_create_then_login_returns_same_uid(game):
    password = "password"
    uid = create_user(game, "alice", password)
    assert len(uid) == 24
    assert login_user(game, "alice", password) == uid


def test_new_account_starts_with_basic_elements(game):
    password = "password"
    uid = create_user(game, "alice", password)
    assert game.get_found(uid) == list(STARTING_ELEMENTS)


def test_password_is_not_stored_in_plain_text(game):
    password = "password"
    create_user(game, "alice", password)
    (stored,) = game.connection.execute(
        "SELECT password FROM users WHERE name=?", ("alice",)
    ).fetchone()
    assert stored != password
    assert stored.startswith("$2")


def test_duplicate_name_rejected(game):
    password = "password"
    create_user(game, "alice", password)
    with pytest.raises(AuthError, match="Account already exists!"):
        create_user(game, "alice", password)


def test_wrong_password(game):
    password = "password"
    create_user(game, "alice", password)
    with pytest.raises(AuthError, match="Invalid password"):
        login_user(game, "alice", "secret")


def test_unknown_user(game):
    with pytest.raises(AuthError, match="Invalid username"):
        login_user(game, "nobody", "secret")


def test_distinct_users_get_distinct_uids(game):
    password = "password"
    first = create_user(game, "alice", password)
    second = create_user(game, "bob", password)
    assert first != second


def test_anonymous_name_is_unused(game):
    name = new_anonymous_user(game)
    assert len(name) == 12
    password = "password"
    create_user(game, name, password)
    other = new_anonymous_user(game)
    assert other != name