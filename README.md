# havenbot

The game and community logic behind a chat bot, with no ties to any chat
service. You pass in user and guild identifiers. You get back results, or an
exception when a command cannot be carried out. All state is kept in SQLite.

## What is inside

| Module | Purpose |
| --- | --- |
| `havenbot.tokens` | Secure random bytes and strings (`random_bytes`, `random_string`, `random_string_urlsafe`) |
| `havenbot.store` | User records, per-guild data and command prefixes (`Database`, `User`, `BotError`) |
| `havenbot.numbers` | The "give yourself a number" game: members pick 0-100 and an administrator draws one (`NumberGame`) |
| `havenbot.moderation` | Warnings and bot-managed role names kept in guild data (`Moderation`, `Warning`, `parse_warn`) |
| `havenbot.elemental_db` | Element-combining game storage: elements, combinations, savefiles, recents and random suggestions (`Elemental`, `Element`, `Suggestion`, `Color`, `RecentCombination`) |
| `havenbot.auth` | Game accounts with bcrypt-hashed passwords (`create_user`, `login_user`, `new_anonymous_user`, `AuthError`) |
| `havenbot.suggestions` | Suggesting and voting on results for new combinations, and creating elements (`get_suggestion`, `new_suggestion`, `upvote`, `downvote`, `create_element`, `SuggestionError`) |
| `havenbot.maintenance` | Database repair jobs (`calc_complexity`, `fix_elements`, `clean_suggestions`, `give_all`) and the `havenbot-maintenance` command |
| `havenbot.elemental_commands` | Chat-level commands for the element game (`ElementalCommands`) |

Both `Database` and `Elemental` take a SQLite path (default `":memory:"`),
create their tables on first use and can be used as context managers.

On Saturdays the element game runs in "anarchy" mode: a new suggestion or
any upvote creates the element at once, and one user may vote more than once.
Functions that depend on this take an optional `today` date.

## Installing

```
pip install .
```

To run the test suite, install the test extra and run pytest:

```
pip install ".[test]"
pytest
```

## Examples

The number game:

```python
from havenbot.store import Database
from havenbot.numbers import NumberGame

with Database() as db:
    game = NumberGame(db)
    game.give("guild", "alice", 42)
    print(game.get("guild", "alice"))                    # 42
    number, winners = game.random_select("guild", is_admin=True)
```

Warnings:

```python
from havenbot.store import Database
from havenbot.moderation import Moderation, parse_warn

with Database() as db:
    mod = Moderation(db)
    text = parse_warn("warn <@123> please stop")       # "please stop"
    mod.warn("guild", "123", "mod-id", text, is_admin=True)
    print(mod.warnings("guild", "123", is_admin=True))
```

A game account:

```python
from havenbot.elemental_db import Elemental
from havenbot.auth import create_user, login_user

game = Elemental("elemental.sqlite3")
password = "password"
uid = create_user(game, "alice", password)
assert login_user(game, "alice", password) == uid
print(game.get_found(uid))                               # ['Air', 'Earth', 'Fire', 'Water']
game.close()
```

New accounts start with Air, Earth, Fire and Water in their savefile; the
elements themselves are added with `Elemental.add_element`.

Chat commands for the element game:

```python
from havenbot.store import Database
from havenbot.elemental_db import Elemental
from havenbot.elemental_commands import ElementalCommands

db, game = Database(), Elemental()
commands = ElementalCommands(db, game)
commands.login("chat-user", "guild", "alice")
print(commands.combo("chat-user", "guild", "Air", "Fire"))
```

`combo` returns "You made X!" when the combination exists, or the list of
suggestions for it when it does not; `suggest`, `upvote`, `downvote`, `mark`,
`inventory` and `random_suggestion` (kinds `"lonely"` and `"upcoming"`) work
on that last combination or on the user's savefile.

Failed commands raise an exception instead of returning a status flag:
`BotError`, `AuthError` or `SuggestionError`. Its message is the text to show
the user.

## Maintenance

```
havenbot-maintenance --database elemental.db fix
havenbot-maintenance --database elemental.db clean
havenbot-maintenance --database elemental.db giveall alice
```

`fix` recounts each element's uses and finders and recomputes its complexity,
`clean` deletes suggestions for combinations that already have an element, and
`giveall` gives a user every element, oldest first (it asks for the user name
when none is given). `--database` defaults to `elemental.db`.

## What it does not do

The package does not connect to any chat service, parse incoming messages
into commands, or send replies; a front end must do that and call these
functions. It has no coin economy, no properties to buy, no expression
calculator and no joke commands, and it does not check guild permissions
itself: callers pass `is_admin`. Role commands only record which role names
the bot manages; creating or assigning roles on a server is up to the caller.
There is no HTTP interface for the element game.