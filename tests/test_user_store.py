"""Unit tests for auth/store.py -- the user repository."""

from __future__ import annotations

import pytest

from auth.models import User
from core.errors import DuplicateError, RecordNotFoundError


class TestUserStore:
    def test_create_and_get_by_email(self, user_store):
        uid = user_store.create_user(User(email="a@b.com", password_hash=b"$2b$04$abc"))
        user = user_store.get_by_email("a@b.com")
        assert user.id == uid
        assert user.email == "a@b.com"
        assert user.password_hash == b"$2b$04$abc"
        assert user.created_at

    def test_duplicate_email_raises_duplicate_error(self, user_store):
        user_store.create_user(User(email="a@b.com", password_hash=b"h1"))
        with pytest.raises(DuplicateError):
            user_store.create_user(User(email="a@b.com", password_hash=b"h2"))

    def test_unknown_email_raises_record_not_found(self, user_store):
        with pytest.raises(RecordNotFoundError):
            user_store.get_by_email("nobody@b.com")

    def test_user_without_hash_is_refused(self, user_store):
        with pytest.raises(ValueError):
            user_store.create_user(User(email="a@b.com"))

    def test_ids_are_distinct(self, user_store):
        first = user_store.create_user(User(email="a@b.com", password_hash=b"h"))
        second = user_store.create_user(User(email="c@d.com", password_hash=b"h"))
        assert first != second

    def test_ping(self, user_store):
        assert user_store.ping() is True
