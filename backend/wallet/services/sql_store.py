import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wallet.core.database import Base, make_engine, make_session_factory
from wallet.models.audit_log import AuditLog as AuditLogModel
from wallet.models.transaction import Transaction as TransactionModel
from wallet.models.user import User as UserModel
from wallet.services.store import AuditEntry, Role, Transaction, User, WalletStore

CENTS = Decimal(100)


def to_cents(value: Decimal) -> int:
    return int(value * CENTS)


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents or 0)) / CENTS).quantize(Decimal("0.01"))


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _user(row: UserModel) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        role=Role(row.role),
        balance=from_cents(row.balance_cents),
        created_at=_aware(row.created_at),
    )


def _transaction(row: TransactionModel) -> Transaction:
    return Transaction(
        id=row.id,
        sender_id=row.sender_id,
        recipient_id=row.recipient_id,
        amount=from_cents(row.amount_cents),
        timestamp=_aware(row.timestamp),
        type=row.type,
    )


def _audit(row: AuditLogModel) -> AuditEntry:
    return AuditEntry(
        action=row.action,
        actor_id=row.actor_id,
        actor_username=row.actor_username,
        target_id=row.target_id,
        old_value=from_cents(row.old_cents),
        new_value=from_cents(row.new_cents),
        timestamp=_aware(row.created_at),
    )


def _audit_row(entry: AuditEntry) -> AuditLogModel:
    return AuditLogModel(
        action=entry.action,
        actor_id=entry.actor_id,
        actor_username=entry.actor_username,
        target_id=entry.target_id,
        old_cents=to_cents(entry.old_value),
        new_cents=to_cents(entry.new_value),
        created_at=entry.timestamp,
    )


class SqlAlchemyStore(WalletStore):
    """`WalletStore` backed by SQLAlchemy ORM tables.

    Each call runs in its own session, and sessions are opened one at a time
    under `_lock`: an in-memory SQLite database is a single connection shared
    by every thread. `apply_transfer` and `apply_balance_override` each run
    inside one database transaction.
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", auto_create_schema: bool = True):
        self.engine = make_engine(database_url)
        self.SessionLocal = make_session_factory(self.engine)
        if auto_create_schema:
            Base.metadata.create_all(bind=self.engine)
        self._lock = threading.RLock()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._lock:
            with self.SessionLocal() as db:
                yield db

    def get_user(self, user_id: str) -> Optional[User]:
        with self._session() as db:
            row = db.get(UserModel, user_id)
            return _user(row) if row else None

    def find_by_username(self, username: str) -> Optional[User]:
        with self._session() as db:
            row = db.query(UserModel).filter(UserModel.username == username).first()
            return _user(row) if row else None

    def list_users(self) -> List[User]:
        with self._session() as db:
            return [_user(r) for r in db.query(UserModel).order_by(UserModel.created_at).all()]

    def add_user(self, user: User) -> User:
        with self._session() as db:
            db.add(
                UserModel(
                    id=user.id,
                    username=user.username,
                    email=user.email,
                    role=Role(user.role).value,
                    password_hash=user.password_hash,
                    balance_cents=to_cents(user.balance),
                    created_at=user.created_at,
                )
            )
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ValueError(f"username {user.username!r} already exists") from e
        return user

    def set_balance(self, user_id: str, balance: Decimal) -> User:
        with self._session() as db:
            row = db.get(UserModel, user_id)
            if row is None:
                raise KeyError(user_id)
            row.balance_cents = to_cents(balance)
            db.commit()
            db.refresh(row)
            return _user(row)

    def apply_transfer(self, tx: Transaction) -> User:
        cents = to_cents(tx.amount)
        with self._session() as db:
            with db.begin():
                sender = db.get(UserModel, tx.sender_id)
                recipient = db.get(UserModel, tx.recipient_id)
                if sender is None or recipient is None:
                    raise KeyError(tx.sender_id if sender is None else tx.recipient_id)

                sender.balance_cents = sender.balance_cents - cents
                recipient.balance_cents = recipient.balance_cents + cents
                db.add(
                    TransactionModel(
                        id=tx.id,
                        sender_id=tx.sender_id,
                        recipient_id=tx.recipient_id,
                        amount_cents=cents,
                        type=tx.type,
                        timestamp=tx.timestamp,
                    )
                )
            db.refresh(sender)
            return _user(sender)

    def apply_balance_override(self, user_id: str, balance: Decimal, entry: AuditEntry) -> User:
        with self._session() as db:
            with db.begin():
                row = db.get(UserModel, user_id)
                if row is None:
                    raise KeyError(user_id)
                row.balance_cents = to_cents(balance)
                db.add(_audit_row(entry))
            db.refresh(row)
            return _user(row)

    def transactions_for(self, user_id: str) -> List[Transaction]:
        with self._session() as db:
            rows = (
                db.query(TransactionModel)
                .filter(
                    or_(
                        TransactionModel.sender_id == user_id,
                        TransactionModel.recipient_id == user_id,
                    )
                )
                .order_by(TransactionModel.seq)
                .all()
            )
            return [_transaction(r) for r in rows]

    def add_audit(self, entry: AuditEntry) -> None:
        with self._session() as db:
            db.add(_audit_row(entry))
            db.commit()

    def audit_entries(self) -> List[AuditEntry]:
        with self._session() as db:
            return [_audit(r) for r in db.query(AuditLogModel).order_by(AuditLogModel.id).all()]
