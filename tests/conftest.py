"""Shared fixtures."""

import pytest

from zodiac_cipher.core import accounts


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Keep PBKDF2 cheap in tests; hashing behavior is otherwise unchanged."""
    monkeypatch.setattr(accounts, "HASH_ITERATIONS", 1_000)
