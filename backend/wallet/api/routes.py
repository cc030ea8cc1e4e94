# backend/wallet/api/routes.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from wallet.api.deps_auth import WalletServices, get_current_user, get_services, require_admin
from wallet.core.errors import InvalidInput, UserNotFound
from wallet.core.security import Claims
from wallet.services.policy import authorize
from wallet.services.store import AuditEntry, Role, Transaction, User

router = APIRouter()

# ---------- SCHEMAS ----------


class UserDetail(BaseModel):
    id: str
    username: str
    email: str
    balance: float
    role: Role
    created_at: datetime


class UserSummary(BaseModel):
    id: str
    username: str


class UserList(BaseModel):
    users: List[UserSummary]


class AdminUserList(BaseModel):
    users: List[UserDetail]


class BalanceOut(BaseModel):
    balance: float


class TransactionOut(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    amount: float
    timestamp: datetime
    type: str


class TransactionList(BaseModel):
    transactions: List[TransactionOut]


class SendIn(BaseModel):
    recipient_id: Optional[str] = None
    amount: Optional[float] = None


class TransferReceipt(BaseModel):
    id: str
    amount: float
    timestamp: datetime
    recipient_username: str


class SendOut(BaseModel):
    message: str = "Transfer successful"
    transaction: TransferReceipt
    new_balance: float


class ModifyBalanceIn(BaseModel):
    user_id: Optional[str] = None
    new_balance: Optional[float] = None


class BalanceUser(BaseModel):
    id: str
    username: str
    balance: float


class ModifyBalanceOut(BaseModel):
    message: str = "Balance updated successfully"
    user: BalanceUser


class AuditEntryOut(BaseModel):
    action: str
    actor_id: str
    actor_username: str
    target_id: str
    old_value: float
    new_value: float
    timestamp: datetime


class AuditLogList(BaseModel):
    entries: List[AuditEntryOut]


def user_detail(u: User) -> UserDetail:
    return UserDetail(
        id=u.id,
        username=u.username,
        email=u.email,
        balance=float(u.balance),
        role=u.role,
        created_at=u.created_at,
    )


def transaction_out(t: Transaction) -> TransactionOut:
    return TransactionOut(
        id=t.id,
        sender_id=t.sender_id,
        recipient_id=t.recipient_id,
        amount=float(t.amount),
        timestamp=t.timestamp,
        type=t.type,
    )


def audit_out(e: AuditEntry) -> AuditEntryOut:
    return AuditEntryOut(
        action=e.action,
        actor_id=e.actor_id,
        actor_username=e.actor_username,
        target_id=e.target_id,
        old_value=float(e.old_value),
        new_value=float(e.new_value),
        timestamp=e.timestamp,
    )


def _owned_user(services: WalletServices, claims: Claims, user_id: str) -> User:
    # authorize before the lookup so a denial says nothing about existence
    authorize(claims, resource_owner_id=user_id)
    user = services.store.get_user(user_id)
    if not user:
        raise UserNotFound()
    return user

# ---------- USER-SCOPED (owner or admin) ----------


@router.get("/user/{user_id}", response_model=UserDetail)
def get_user(
    user_id: str,
    services: WalletServices = Depends(get_services),
    claims: Claims = Depends(get_current_user),
):
    return user_detail(_owned_user(services, claims, user_id))


@router.get("/balance/{user_id}", response_model=BalanceOut)
def get_balance(
    user_id: str,
    services: WalletServices = Depends(get_services),
    claims: Claims = Depends(get_current_user),
):
    return BalanceOut(balance=float(_owned_user(services, claims, user_id).balance))


@router.get("/transactions/{user_id}", response_model=TransactionList)
def get_transactions(
    user_id: str,
    services: WalletServices = Depends(get_services),
    claims: Claims = Depends(get_current_user),
):
    user = _owned_user(services, claims, user_id)
    return TransactionList(
        transactions=[transaction_out(t) for t in services.ledger.history(user.id)]
    )


@router.post("/send", response_model=SendOut)
def send_money(
    payload: SendIn,
    services: WalletServices = Depends(get_services),
    claims: Claims = Depends(get_current_user),
):
    if not payload.recipient_id or payload.amount is None:
        raise InvalidInput("Recipient and amount are required")

    # the sender is always the caller
    authorize(claims, resource_owner_id=claims.subject_id)
    result = services.ledger.transfer(claims.subject_id, payload.recipient_id, payload.amount)

    return SendOut(
        transaction=TransferReceipt(
            id=result.transaction.id,
            amount=float(result.transaction.amount),
            timestamp=result.transaction.timestamp,
            recipient_username=result.recipient.username,
        ),
        new_balance=float(result.new_balance),
    )

# ---------- ANY AUTHENTICATED USER ----------


@router.get("/users", response_model=UserList)
def list_recipients(
    services: WalletServices = Depends(get_services),
    claims: Claims = Depends(get_current_user),
):
    return UserList(
        users=[
            UserSummary(id=u.id, username=u.username)
            for u in services.store.list_users()
            if u.id != claims.subject_id
        ]
    )

# ---------- ADMIN ONLY ----------


@router.get("/admin/users", response_model=AdminUserList)
def admin_list_users(
    services: WalletServices = Depends(get_services),
    _admin: Claims = Depends(require_admin),
):
    return AdminUserList(users=[user_detail(u) for u in services.store.list_users()])


@router.post("/admin/modify-balance", response_model=ModifyBalanceOut)
def admin_modify_balance(
    payload: ModifyBalanceIn,
    services: WalletServices = Depends(get_services),
    admin: Claims = Depends(require_admin),
):
    if not payload.user_id or payload.new_balance is None:
        raise InvalidInput("User ID and new balance are required")

    user = services.ledger.set_balance(admin, payload.user_id, payload.new_balance)
    return ModifyBalanceOut(
        user=BalanceUser(id=user.id, username=user.username, balance=float(user.balance))
    )


@router.get("/admin/audit-logs", response_model=AuditLogList)
def admin_audit_logs(
    limit: int = 50,
    services: WalletServices = Depends(get_services),
    _admin: Claims = Depends(require_admin),
):
    limit = max(1, min(limit, 200))
    return AuditLogList(entries=[audit_out(e) for e in services.ledger.audit_log(limit)])
