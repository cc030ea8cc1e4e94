# backend/wallet/api/auth_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from wallet.api.deps_auth import (
    WalletServices,
    get_current_user,
    get_ip,
    get_services,
    get_token,
)
from wallet.core.security import Claims
from wallet.services.store import Role, User

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class LoginIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RegisteredUser(BaseModel):
    id: str
    username: str
    email: str

    class Config:
        from_attributes = True


class RegisterOut(BaseModel):
    message: str = "User created successfully"
    user: RegisteredUser


class UserOut(BaseModel):
    id: str
    username: str
    role: Role

    class Config:
        from_attributes = True


class LoginOut(BaseModel):
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class MessageOut(BaseModel):
    message: str


def _login(services: WalletServices, request: Request, username, password) -> LoginOut:
    services.login_limiter.hit(get_ip(request))
    user: User = services.accounts.authenticate(username, password)
    return LoginOut(
        access_token=services.tokens.issue(user),
        user=UserOut.model_validate(user),
    )


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn,
    request: Request,
    services: WalletServices = Depends(get_services),
):
    services.register_limiter.hit(get_ip(request))
    user = services.accounts.register(payload.username, payload.password, payload.email)
    return RegisterOut(user=RegisteredUser.model_validate(user))


# JSON login (what the frontend uses)
@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    request: Request,
    services: WalletServices = Depends(get_services),
):
    return _login(services, request, payload.username, payload.password)


# OAuth2 form endpoint (Swagger Authorize uses this)
@router.post("/token", response_model=LoginOut)
def token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    services: WalletServices = Depends(get_services),
):
    return _login(services, request, form_data.username, form_data.password)


@router.post("/logout", response_model=MessageOut)
def logout(
    raw_token: str = Depends(get_token),
    current_user: Claims = Depends(get_current_user),
    services: WalletServices = Depends(get_services),
):
    services.tokens.revoke(raw_token)
    logger.info("logout for %s", current_user.username)
    return MessageOut(message="Logged out successfully")


@router.get("/me", response_model=UserOut)
def me(
    current_user: Claims = Depends(get_current_user),
):
    return UserOut(id=current_user.subject_id, username=current_user.username, role=current_user.role)
