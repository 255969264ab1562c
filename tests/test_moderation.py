import pytest

from havenbot.moderation import Moderation, Warning, parse_warn
from havenbot.store import BotError, Database


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def mod(db):
    return Moderation(db)


def test_parse_warn_plain_mention():
    assert parse_warn("warn <@123> being rude") == "being rude"


def test_parse_warn_nickname_mention():
    assert parse_warn("warn <@!456> spam") == "spam"


@pytest.mark.parametrize("content", ["warn", "warn <@123>", "warn bob text", "warn <@abc> x"])
def test_parse_warn_rejects_bad_format(content):
    with pytest.raises(BotError, match="warn @user"):
        parse_warn(content)


def test_warn_requires_admin(mod):
    with pytest.raises(BotError, match="Administrator"):
        mod.warn("g", "u", "m", "text", False)


def test_warn_then_list(mod):
    assert mod.warn("g", "u", "m", "spam", True, now=1000) == "Successfully warned user."
    assert mod.warnings("g", "u", True) == {
        "u": [Warning(mod="m", text="spam", date=1000, guild="g")]
    }


def test_warnings_accumulate_in_order(mod):
    mod.warn("g", "u", "m", "first", True, now=1)
    mod.warn("g", "u", "m", "second", True, now=2)
    texts = [w.text for w in mod.warnings("g", "u", True)["u"]]
    assert texts == ["first", "second"]


def test_warnings_for_everyone(mod):
    mod.warn("g", "a", "m", "x", True, now=1)
    mod.warn("g", "b", "m", "y", True, now=1)
    assert set(mod.warnings("g", None, True)) == {"a", "b"}


def test_warnings_filter_to_one_user(mod):
    mod.warn("g", "a", "m", "x", True, now=1)
    mod.warn("g", "b", "m", "y", True, now=1)
    assert list(mod.warnings("g", "a", True)) == ["a"]


def test_warnings_missing_user(mod):
    with pytest.raises(BotError, match="does not have any warnings"):
        mod.warnings("g", "u", True)


def test_warnings_require_admin(mod):
    with pytest.raises(BotError):
        mod.warnings("g", None, False)


def test_warnings_persist(db, mod):
    mod.warn("g", "u", "m", "kept", True, now=5)
    assert Moderation(db).warnings("g", "u", True)["u"][0].text == "kept"


def test_warning_dict_round_trip():
    warning = Warning(mod="m", text="t", date=9, guild="g")
    assert Warning.from_dict(warning.to_dict()) == warning


def test_describe_names_moderator_and_text():
    text = Warning(mod="m", text="spam", date=86400 * 400, guild="g").describe("Mod#0001")
    assert text.startswith("Warned by **Mod#0001** on **")
    assert text.endswith("Warning: **spam**\n\n")


def test_add_and_check_role(mod):
    assert mod.add_role("g", "gamer", True) == "Successfully created role `gamer`"
    assert mod.is_bot_role("g", "gamer")
    assert not mod.is_bot_role("other", "gamer")


def test_add_role_requires_admin(mod):
    with pytest.raises(BotError):
        mod.add_role("g", "gamer", False)
    assert not mod.is_bot_role("g", "gamer")


def test_remove_role(mod):
    mod.add_role("g", "gamer", True)
    assert mod.remove_role("g", "gamer", True) == "Successfully removed role `gamer`"
    assert not mod.is_bot_role("g", "gamer")


def test_remove_missing_role(mod):
    with pytest.raises(BotError, match="doesn't exist"):
        mod.remove_role("g", "ghost", True)


def test_roles_and_warnings_coexist(mod):
    mod.add_role("g", "gamer", True)
    mod.warn("g", "u", "m", "x", True, now=1)
    assert mod.is_bot_role("g", "gamer")
    assert len(mod.warnings("g", "u", True)["u"]) == 1