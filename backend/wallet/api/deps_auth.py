# backend/wallet/api/deps_auth.py

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from wallet.core.config import Settings
from wallet.core.errors import Unauthenticated
from wallet.core.security import Claims, TokenService
from wallet.services.accounts import AccountService
from wallet.services.ledger import Ledger
from wallet.services.policy import authorize
from wallet.services.rate_limit import RateLimiter
from wallet.services.store import Role, WalletStore

# auto_error=False: a missing header must produce our own 401 body,
# not FastAPI's default one. tokenUrl is what Swagger's "Authorize" posts to.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/token", auto_error=False)


@dataclass
class WalletServices:
    settings: Settings
    store: WalletStore
    tokens: TokenService
    accounts: AccountService
    ledger: Ledger
    login_limiter: RateLimiter
    register_limiter: RateLimiter


def get_services(request: Request) -> WalletServices:
    return request.app.state.services


def get_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_token(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    # OAuth2PasswordBearer strips "Bearer "
    if not token:
        raise Unauthenticated("Access token required")
    return token


def get_current_user(
    token: str = Depends(get_token),
    services: WalletServices = Depends(get_services),
) -> Claims:
    return services.tokens.validate(token)


def require_admin(user: Claims = Depends(get_current_user)) -> Claims:
    authorize(user, required_role=Role.ADMIN)
    return user
