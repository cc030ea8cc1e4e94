from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from wallet.services.sql_store import SqlAlchemyStore
from wallet.services.store import AuditEntry, Role, Transaction, User


def _user(uid, username, balance="100.00", role=Role.USER):
    return User(
        id=uid,
        username=username,
        email=f"{username}@example.com",
        password_hash="$pbkdf2-sha256$x",
        role=role,
        balance=Decimal(balance),
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def test_add_and_get(store):
    u = store.add_user(_user("u1", "alice", role=Role.ADMIN))
    assert store.get_user("u1") == u
    assert store.find_by_username("alice") == u
    assert store.get_user("missing") is None
    assert store.find_by_username("ALICE") is None


def test_duplicate_username_raises(store):
    store.add_user(_user("u1", "alice"))
    with pytest.raises(ValueError):
        store.add_user(_user("u2", "alice"))
    assert [u.id for u in store.list_users()] == ["u1"]


def test_set_balance(store):
    store.add_user(_user("u1", "alice"))
    assert store.set_balance("u1", Decimal("12.34")).balance == Decimal("12.34")
    assert store.get_user("u1").balance == Decimal("12.34")


def test_apply_transfer_and_history(store):
    store.add_user(_user("a", "alice"))
    store.add_user(_user("b", "bob"))
    store.add_user(_user("c", "carol"))
    now = datetime(2026, 1, 2, tzinfo=timezone.utc)

    t1 = Transaction(id="t1", sender_id="a", recipient_id="b", amount=Decimal("10.25"), timestamp=now)
    t2 = Transaction(id="t2", sender_id="c", recipient_id="a", amount=Decimal("1.00"), timestamp=now)
    t3 = Transaction(id="t3", sender_id="b", recipient_id="c", amount=Decimal("2.00"), timestamp=now)

    assert store.apply_transfer(t1).balance == Decimal("89.75")
    store.apply_transfer(t2)
    store.apply_transfer(t3)

    assert store.get_user("a").balance == Decimal("90.75")
    assert store.get_user("b").balance == Decimal("108.25")
    assert [t.id for t in store.transactions_for("a")] == ["t1", "t2"]
    assert [t.id for t in store.transactions_for("b")] == ["t1", "t3"]
    assert store.transactions_for("a")[0] == t1


def test_audit_entries_keep_insertion_order(store):
    e1 = AuditEntry("balance_override", "adm", "admin", "u1", Decimal("1.00"), Decimal("2.00"),
                    datetime(2026, 1, 1, tzinfo=timezone.utc))
    e2 = replace(e1, target_id="u2")
    store.add_audit(e1)
    store.add_audit(e2)
    assert store.audit_entries() == [e1, e2]


def _override_entry(target_id, old, new, actor_username="admin"):
    return AuditEntry("balance_override", "adm", actor_username, target_id, Decimal(old), Decimal(new),
                      datetime(2026, 1, 3, tzinfo=timezone.utc))


def test_balance_override_writes_balance_and_audit_together(store):
    store.add_user(_user("u1", "alice"))
    entry = _override_entry("u1", "100.00", "7.50")

    assert store.apply_balance_override("u1", Decimal("7.50"), entry).balance == Decimal("7.50")
    assert store.get_user("u1").balance == Decimal("7.50")
    assert store.audit_entries() == [entry]


def test_failed_audit_insert_rolls_back_the_balance():
    store = SqlAlchemyStore("sqlite:///:memory:")
    store.add_user(_user("u1", "alice"))
    # actor_username is NOT NULL
    broken = _override_entry("u1", "100.00", "7.50", actor_username=None)

    with pytest.raises(IntegrityError):
        store.apply_balance_override("u1", Decimal("7.50"), broken)

    assert store.get_user("u1").balance == Decimal("100.00")
    assert store.audit_entries() == []
