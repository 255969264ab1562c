[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "havenbot"
version = "0.1.0"
description = "Chat bot game logic: a number game, moderation warnings and an element-combining game backed by SQLite"
requires-python = ">=3.10"
dependencies = [
    "bcrypt",
]
keywords = [
    "chat",
    "bot",
    "game",
    "elemental",
    "moderation",
    "sqlite",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
havenbot-maintenance = "havenbot.maintenance:main"

[tool.hatch.build.targets.wheel]
packages = ["havenbot"]

[tool.hatch.build.targets.sdist]
include = [
    "havenbot",
    "tests",
    "pyproject.toml",
    "README.md",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
