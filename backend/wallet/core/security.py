# backend/wallet/core/security.py

import logging
import secrets
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Set

from jose import jwt, JWTError
from passlib.context import CryptContext

from wallet.core.errors import Unauthenticated
from wallet.services.store import Role, User, WalletStore, utcnow

logger = logging.getLogger(__name__)

# ONLY pbkdf2_sha256 (no bcrypt anywhere)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password or "")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password or "", hashed_password)
    except (ValueError, TypeError):
        # unrecognised hash format: treat as a failed match, never a 500
        return False


@dataclass(frozen=True)
class Claims:
    """What a validated bearer token proves about its caller.

    `role` is re-read from the store on every validation, so a token issued
    before a role change never carries stale privileges.
    """

    subject_id: str
    username: str
    role: Role
    token_id: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issues, validates and revokes signed bearer tokens (JWT, HS256).

    The signing secret is drawn from `secrets` once per instance and never
    leaves it, so restarting the process invalidates every outstanding
    token. Revoked token ids are kept for the lifetime of the instance.
    """

    def __init__(
        self,
        store: WalletStore,
        ttl_minutes: int = 60,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._ttl = timedelta(minutes=ttl_minutes)
        self._algorithm = algorithm
        self._clock = clock
        self._secret = secrets.token_hex(64)  # 512 bits
        self._revoked: Set[str] = set()
        self._lock = threading.Lock()

    def issue(self, user: User) -> str:
        now = self._clock()
        payload = {
            "sub": user.id,
            "username": user.username,
            "role": Role(user.role).value,
            "jti": uuid.uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def _decode(self, token: str) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            raise Unauthenticated()
        try:
            # expiry is checked against our own clock below
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            raise Unauthenticated()

    def validate(self, token: str) -> Claims:
        payload = self._decode(token)

        sub = payload.get("sub")
        jti = payload.get("jti")
        exp = payload.get("exp")
        iat = payload.get("iat")
        if not sub or not jti or not isinstance(exp, int) or not isinstance(iat, int):
            raise Unauthenticated()

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if self._clock() >= expires_at:
            raise Unauthenticated()

        with self._lock:
            if jti in self._revoked:
                raise Unauthenticated()

        user = self._store.get_user(str(sub))
        if not user:
            raise Unauthenticated()

        return Claims(
            subject_id=user.id,
            username=user.username,
            role=Role(user.role),
            token_id=jti,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=expires_at,
        )

    def revoke(self, token: str) -> None:
        payload = self._decode(token)
        jti = payload.get("jti")
        if not jti:
            raise Unauthenticated()
        with self._lock:
            self._revoked.add(jti)
        logger.info("token revoked for user_id=%s", payload.get("sub"))
