"""Cryptographically secure random identifiers."""

from __future__ import annotations

import base64
import secrets

LETTERS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-"


def random_bytes(n: int) -> bytes:
    """Return ``n`` securely generated random bytes."""
    return secrets.token_bytes(n)


def random_string(n: int) -> str:
    """Return ``n`` random characters drawn from :data:`LETTERS`."""
    return "".join(LETTERS[b % len(LETTERS)] for b in random_bytes(n))


def random_string_urlsafe(n: int) -> str:
    """Return ``n`` random bytes encoded as padded URL-safe base64."""
    return base64.urlsafe_b64encode(random_bytes(n)).decode("ascii")