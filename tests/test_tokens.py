import base64

import pytest

from havenbot import tokens
from havenbot.tokens import LETTERS, random_bytes, random_string, random_string_urlsafe


def test_random_bytes_length():
    assert len(random_bytes(32)) == 32
    assert random_bytes(0) == b""


def test_random_bytes_vary():
    assert len({random_bytes(16) for _ in range(5)}) == 5


def test_random_string_alphabet():
    assert LETTERS == "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-"
    text = random_string(200)
    assert len(text) == 200
    assert set(text) <= set(LETTERS)


def test_random_string_maps_bytes_modulo_alphabet(monkeypatch):
    monkeypatch.setattr(tokens.secrets, "token_bytes", lambda n: bytes([0, 1, 62, 63, 64]))
    assert random_string(5) == "01-01"


@pytest.mark.parametrize("n", [8, 16, 1, 0])
def test_urlsafe_round_trip(n):
    text = random_string_urlsafe(n)
    assert len(base64.urlsafe_b64decode(text)) == n


def test_urlsafe_has_no_plus_or_slash(monkeypatch):
    monkeypatch.setattr(tokens.secrets, "token_bytes", lambda n: b"\xfb\xff\xfe" * 4)
    text = random_string_urlsafe(12)
    assert "+" not in text and "/" not in text
    assert base64.urlsafe_b64decode(text) == b"\xfb\xff\xfe" * 4