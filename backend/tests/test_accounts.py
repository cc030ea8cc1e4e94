from decimal import Decimal

import pytest

from wallet.core.errors import Conflict, InvalidInput, Unauthenticated
from wallet.services.store import Role


def test_register_creates_a_user_with_starting_balance(accounts, memory_store):
    user = accounts.register("alice", "Password1", "alice@example.com")

    assert user.role == Role.USER
    assert user.balance == Decimal("1000.00")
    assert user.password_hash != "Password1"
    assert memory_store.find_by_username("alice") == user


def test_register_sanitizes_username_and_email(accounts):
    user = accounts.register("  <bob>  ", "Password1", " bob@example.com<> ")
    assert user.username == "bob"
    assert user.email == "bob@example.com"


@pytest.mark.parametrize(
    "username, password, email",
    [
        ("ab", "Password1", "a@b.com"),
        ("x" * 31, "Password1", "a@b.com"),
        ("alice", "short", "a@b.com"),
        ("alice", "password1", "a@b.com"),
        ("alice", "PASSWORD1", "a@b.com"),
        ("alice", "Passwordx", "a@b.com"),
        ("alice", "Password1", "not-an-email"),
        ("alice", "Password1", ""),
        (None, "Password1", "a@b.com"),
    ],
)
def test_register_rejects_bad_input(accounts, username, password, email):
    with pytest.raises(InvalidInput):
        accounts.register(username, password, email)


def test_username_boundaries(accounts):
    accounts.register("abc", "Password1", "a@b.com")
    accounts.register("y" * 30, "Password1", "a@b.com")


def test_duplicate_username_conflicts(accounts):
    accounts.register("alice", "Password1", "alice@example.com")
    with pytest.raises(Conflict):
        accounts.register("alice", "Password2", "other@example.com")


def test_usernames_are_case_sensitive(accounts):
    accounts.register("alice", "Password1", "alice@example.com")
    accounts.register("Alice", "Password1", "alice2@example.com")


def test_authenticate(accounts):
    user = accounts.register("alice", "Password1", "alice@example.com")
    assert accounts.authenticate("alice", "Password1") == user


def test_wrong_password_and_unknown_user_look_the_same(accounts):
    accounts.register("alice", "Password1", "alice@example.com")
    with pytest.raises(Unauthenticated) as wrong:
        accounts.authenticate("alice", "Password2")
    with pytest.raises(Unauthenticated) as unknown:
        accounts.authenticate("mallory", "Password1")
    assert wrong.value.message == unknown.value.message == "Invalid credentials"


def test_authenticate_requires_both_fields(accounts):
    with pytest.raises(InvalidInput):
        accounts.authenticate("alice", "")
