"""
tests/test_passwords.py -- Unit tests for auth/passwords.py (bcrypt).

Uses cost factor 4 throughout; the cost does not change behaviour.
"""

from __future__ import annotations

import pytest

from auth.passwords import CredentialHasher
from core.errors import InternalError


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


class TestHashAndVerify:
    def test_correct_password_verifies(self, hasher):
        stored = hasher.hash("password1")
        assert hasher.verify(stored, "password1") is True

    def test_wrong_password_is_false_not_error(self, hasher):
        stored = hasher.hash("password1")
        assert hasher.verify(stored, "password2") is False

    def test_hash_is_salted(self, hasher):
        assert hasher.hash("password1") != hasher.hash("password1")

    def test_hash_embeds_cost_factor(self, hasher):
        assert hasher.hash("password1").startswith(b"$2b$04$")

    def test_password_longer_than_72_bytes_does_not_raise(self, hasher):
        long_password = "x" * 100
        stored = hasher.hash(long_password)
        assert hasher.verify(stored, long_password) is True


class TestFailureModes:
    def test_malformed_hash_raises_internal_error(self, hasher):
        with pytest.raises(InternalError):
            hasher.verify(b"not-a-bcrypt-hash", "password1")

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_out_of_range_rounds_rejected(self, rounds):
        with pytest.raises(ValueError):
            CredentialHasher(rounds=rounds)
