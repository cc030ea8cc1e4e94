"""
Balance transfers and the admin balance override.

Every read-check-write of a balance happens under `Ledger._lock`, so two
concurrent transfers from the same sender can never both pass the funds
check against the same stale balance.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional

from wallet.core.errors import InsufficientFunds, InvalidAmount, SelfTransfer, UserNotFound
from wallet.core.security import Claims
from wallet.services.money import Number, parse_money
from wallet.services.policy import authorize
from wallet.services.store import AuditEntry, Role, Transaction, User, WalletStore, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    transaction: Transaction
    sender: User
    recipient: User

    @property
    def new_balance(self) -> Decimal:
        return self.sender.balance


class Ledger:
    def __init__(
        self,
        store: WalletStore,
        max_transfer_amount: Number = 1_000_000,
        max_balance: Number = 10_000_000,
        clock: Callable = utcnow,
    ):
        self._store = store
        self.max_transfer_amount = parse_money(max_transfer_amount)
        self.max_balance = parse_money(max_balance)
        self._clock = clock
        self._lock = threading.Lock()

    def transfer(self, sender_id: str, recipient_id: str, amount: Number) -> TransferResult:
        value = parse_money(amount)
        if value <= 0 or value > self.max_transfer_amount:
            raise InvalidAmount()

        with self._lock:
            sender = self._store.get_user(sender_id)
            recipient = self._store.get_user(recipient_id)
            if not sender or not recipient:
                raise UserNotFound()

            if sender.id == recipient.id:
                raise SelfTransfer()

            if sender.balance < value:
                raise InsufficientFunds()

            tx = Transaction(
                id=str(uuid.uuid4()),
                sender_id=sender.id,
                recipient_id=recipient.id,
                amount=value,
                timestamp=self._clock(),
                type="transfer",
            )
            sender = self._store.apply_transfer(tx)
            recipient = self._store.get_user(recipient.id)

        logger.info(
            "transfer %s: %s -> %s amount=%s",
            tx.id, sender.username, recipient.username, value,
        )
        return TransferResult(transaction=tx, sender=sender, recipient=recipient)

    def set_balance(self, actor: Claims, target_user_id: str, new_balance: Number) -> User:
        """Admin override: overwrite a balance and keep an audit entry for it."""
        authorize(actor, required_role=Role.ADMIN)

        try:
            value = parse_money(new_balance)
        except InvalidAmount:
            raise InvalidAmount("Invalid balance amount")
        if value < 0 or value > self.max_balance:
            raise InvalidAmount("Invalid balance amount")

        with self._lock:
            target = self._store.get_user(target_user_id)
            if not target:
                raise UserNotFound()

            old = target.balance
            entry = AuditEntry(
                action="balance_override",
                actor_id=actor.subject_id,
                actor_username=actor.username,
                target_id=target.id,
                old_value=old,
                new_value=value,
                timestamp=self._clock(),
            )
            updated = self._store.apply_balance_override(target.id, value, entry)

        logger.warning(
            "admin %s modified balance for user %s from %s to %s",
            actor.username, target.username, old, value,
        )
        return updated

    def history(self, user_id: str) -> List[Transaction]:
        return self._store.transactions_for(user_id)

    def audit_log(self, limit: Optional[int] = None) -> List[AuditEntry]:
        entries = list(reversed(self._store.audit_entries()))
        return entries[:limit] if limit is not None else entries
