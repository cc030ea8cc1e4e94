import logging
import re
import uuid
from typing import Optional

from wallet.core.errors import Conflict, InvalidInput, Unauthenticated
from wallet.core.security import hash_password, verify_password
from wallet.services.money import Number, parse_money
from wallet.services.store import Role, User, WalletStore, utcnow

logger = logging.getLogger(__name__)

USERNAME_MIN = 3
USERNAME_MAX = 30
PASSWORD_MIN = 8

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize(value: Optional[str]) -> str:
    # strip whitespace and angle brackets
    return (value or "").strip().replace("<", "").replace(">", "")


def password_problem(password: Optional[str]) -> Optional[str]:
    if not password or len(password) < PASSWORD_MIN:
        return "Password must be at least 8 characters long"
    if not (
        re.search(r"[a-z]", password)
        and re.search(r"[A-Z]", password)
        and re.search(r"\d", password)
    ):
        return "Password must contain at least one uppercase letter, one lowercase letter, and one number"
    return None


class AccountService:
    """Registration and password login against a `WalletStore`."""

    def __init__(self, store: WalletStore, starting_balance: Number = 1000):
        self._store = store
        self.starting_balance = parse_money(starting_balance)

    def register(
        self,
        username: Optional[str],
        password: Optional[str],
        email: Optional[str],
        role: Role = Role.USER,
        balance: Optional[Number] = None,
    ) -> User:
        if not username or not password or not email:
            raise InvalidInput("Username, password, and email are required")

        clean_username = sanitize(username)
        clean_email = sanitize(email)

        if not USERNAME_MIN <= len(clean_username) <= USERNAME_MAX:
            raise InvalidInput("Username must be between 3 and 30 characters")

        if not EMAIL_RE.match(clean_email):
            raise InvalidInput("Invalid email format")

        problem = password_problem(password)
        if problem:
            raise InvalidInput(problem)

        user = User(
            id=str(uuid.uuid4()),
            username=clean_username,
            email=clean_email,
            password_hash=hash_password(password),
            role=role,
            balance=self.starting_balance if balance is None else parse_money(balance),
            created_at=utcnow(),
        )
        try:
            self._store.add_user(user)
        except ValueError:
            raise Conflict()

        logger.info("registered user %s (%s)", user.username, user.role.value)
        return user

    def authenticate(self, username: Optional[str], password: Optional[str]) -> User:
        if not username or not password:
            raise InvalidInput("Username and password are required")

        user = self._store.find_by_username(sanitize(username))
        # same error for unknown user and wrong password
        if not user or not verify_password(password, user.password_hash):
            logger.info("failed login for username=%s", sanitize(username))
            raise Unauthenticated("Invalid credentials")

        logger.info("login ok for %s", user.username)
        return user
