"""Chat bot game logic: number game, moderation warnings and an element-combining game."""

__version__ = "0.1.0"