"""
Storage seam for users, transfers and admin audit entries.

Policy components (token service, ledger, accounts) only talk to the
`WalletStore` interface, so the in-memory store used by default can be
replaced by `SqlAlchemyStore` without touching authorization logic.
Stores are dumb: they never check balances or permissions. Serialising
balance mutations is the ledger's job.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class User:
    id: str
    username: str
    email: str
    password_hash: str
    role: Role = Role.USER
    balance: Decimal = Decimal("0.00")
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Transaction:
    id: str
    sender_id: str
    recipient_id: str
    amount: Decimal
    timestamp: datetime
    type: str = "transfer"


@dataclass(frozen=True)
class AuditEntry:
    action: str
    actor_id: str
    actor_username: str
    target_id: str
    old_value: Decimal
    new_value: Decimal
    timestamp: datetime = field(default_factory=utcnow)


class WalletStore(ABC):
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def list_users(self) -> List[User]:
        ...

    @abstractmethod
    def add_user(self, user: User) -> User:
        """Insert a new user; raises ValueError if the username is taken."""

    @abstractmethod
    def set_balance(self, user_id: str, balance: Decimal) -> User:
        ...

    @abstractmethod
    def apply_transfer(self, tx: Transaction) -> User:
        """Debit sender, credit recipient and append `tx` as one unit.

        Returns the updated sender.
        """

    @abstractmethod
    def apply_balance_override(self, user_id: str, balance: Decimal, entry: AuditEntry) -> User:
        """Overwrite a balance and record `entry` as one unit.

        Returns the updated user.
        """

    @abstractmethod
    def transactions_for(self, user_id: str) -> List[Transaction]:
        ...

    @abstractmethod
    def add_audit(self, entry: AuditEntry) -> None:
        ...

    @abstractmethod
    def audit_entries(self) -> List[AuditEntry]:
        ...


class InMemoryStore(WalletStore):
    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._by_username: Dict[str, str] = {}
        self._transactions: List[Transaction] = []
        self._audit: List[AuditEntry] = []

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            user_id = self._by_username.get(username)
            return self._users.get(user_id) if user_id else None

    def list_users(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def add_user(self, user: User) -> User:
        with self._lock:
            if user.username in self._by_username:
                raise ValueError(f"username {user.username!r} already exists")
            self._users[user.id] = user
            self._by_username[user.username] = user.id
            return user

    def set_balance(self, user_id: str, balance: Decimal) -> User:
        with self._lock:
            user = replace(self._users[user_id], balance=balance)
            self._users[user_id] = user
            return user

    def apply_transfer(self, tx: Transaction) -> User:
        with self._lock:
            sender = self._users[tx.sender_id]
            recipient = self._users[tx.recipient_id]
            sender = replace(sender, balance=sender.balance - tx.amount)
            recipient = replace(recipient, balance=recipient.balance + tx.amount)
            self._users[sender.id] = sender
            self._users[recipient.id] = recipient
            self._transactions.append(tx)
            return sender

    def apply_balance_override(self, user_id: str, balance: Decimal, entry: AuditEntry) -> User:
        with self._lock:
            user = self.set_balance(user_id, balance)
            self._audit.append(entry)
            return user

    def transactions_for(self, user_id: str) -> List[Transaction]:
        with self._lock:
            return [
                t for t in self._transactions
                if t.sender_id == user_id or t.recipient_id == user_id
            ]

    def add_audit(self, entry: AuditEntry) -> None:
        with self._lock:
            self._audit.append(entry)

    def audit_entries(self) -> List[AuditEntry]:
        with self._lock:
            return list(self._audit)
