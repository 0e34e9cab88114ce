"""
tests/test_accounts.py -- Unit tests for auth.accounts login() and register().

Covers:
  - register() stores a hash, never the password, and returns id + username
  - login() succeeds with the right password; unknown user and wrong
    password both return None
  - duplicate usernames fail without creating a second record, whether the
    attempts are sequential or concurrent
  - the UNIQUE constraint backstop maps to UsernameTakenError
"""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from auth.accounts import UsernameTakenError, login, register, validate_password, validate_username
from auth.store import UserStore
from auth.tokens import verify_password

ROUNDS = 4


@pytest.fixture
def store(tmp_path: Path):
    s = UserStore(f"sqlite:///{tmp_path / 'accounts.db'}")
    yield s
    s.close()


class TestRegister:
    def test_register_returns_id_and_username(self, store: UserStore) -> None:
        user = register(store, "alice", "secret1", rounds=ROUNDS)
        assert user.id
        assert user.username == "alice"
        assert user.password_hash == ""

    def test_register_stores_a_hash_not_the_password(self, store: UserStore) -> None:
        user = register(store, "alice", "secret1", rounds=ROUNDS)
        stored = store.get_by_id(user.id)
        assert stored is not None
        assert stored.password_hash != "secret1"
        assert verify_password("secret1", stored.password_hash)

    def test_duplicate_username_fails_without_overwrite(self, store: UserStore) -> None:
        first = register(store, "alice", "secret1", rounds=ROUNDS)
        with pytest.raises(UsernameTakenError):
            register(store, "alice", "different-password", rounds=ROUNDS)
        assert store.count_users() == 1
        # The original credentials still work -- nothing was overwritten.
        assert login(store, "alice", "secret1").id == first.id
        assert login(store, "alice", "different-password") is None

    def test_unique_constraint_is_the_backstop(self, store: UserStore, monkeypatch) -> None:
        """Even if the pre-check misses, the INSERT fails and maps to UsernameTakenError."""
        register(store, "alice", "secret1", rounds=ROUNDS)
        monkeypatch.setattr(store, "get_by_username", lambda username: None)
        with pytest.raises(UsernameTakenError):
            register(store, "alice", "secret1", rounds=ROUNDS)
        assert store.count_users() == 1

    def test_concurrent_registrations_create_exactly_one_user(self, store: UserStore) -> None:
        attempts = 8
        barrier = threading.Barrier(attempts)
        outcomes: list[str] = []
        lock = threading.Lock()

        def attempt() -> None:
            barrier.wait()
            try:
                register(store, "racer", "secret1", rounds=ROUNDS)
                result = "created"
            except UsernameTakenError:
                result = "taken"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(attempts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("created") == 1
        assert outcomes.count("taken") == attempts - 1
        assert store.count_users() == 1


class TestLogin:
    def test_login_with_correct_password(self, store: UserStore) -> None:
        created = register(store, "alice", "secret1", rounds=ROUNDS)
        user = login(store, "alice", "secret1")
        assert user is not None
        assert user.id == created.id
        assert user.username == "alice"
        assert user.password_hash == ""

    def test_wrong_password_and_unknown_user_look_the_same(self, store: UserStore) -> None:
        register(store, "alice", "secret1", rounds=ROUNDS)
        assert login(store, "alice", "wrong-password") is None
        assert login(store, "nobody", "secret1") is None

    def test_username_is_case_sensitive(self, store: UserStore) -> None:
        register(store, "alice", "secret1", rounds=ROUNDS)
        assert login(store, "Alice", "secret1") is None


class TestValidation:
    def test_username_length(self) -> None:
        assert validate_username("ab") == "Usernames must be at least 3 characters long"
        assert validate_username("abc") is None

    def test_password_length(self) -> None:
        assert validate_password("12345") == "Passwords must be at least 6 characters long"
        assert validate_password("123456") is None

    def test_password_byte_limit_counts_utf8_bytes(self) -> None:
        assert validate_password("x" * 72) is None
        assert validate_password("x" * 73) == "Passwords must be at most 72 bytes long"
        # 25 three-byte characters: 25 characters, 75 bytes.
        assert validate_password("€" * 25) == "Passwords must be at most 72 bytes long"
