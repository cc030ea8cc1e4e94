# backend/wallet/main.py

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wallet.api.auth_routes import router as auth_router
from wallet.api.deps_auth import WalletServices
from wallet.api.routes import router as api_router
from wallet.core.config import Settings, settings as default_settings
from wallet.core.errors import Internal, InvalidInput, WalletError
from wallet.core.logging_config import configure_logging
from wallet.core.security import TokenService
from wallet.core.seed import seed_admin_if_missing
from wallet.services.accounts import AccountService
from wallet.services.ledger import Ledger
from wallet.services.rate_limit import RateLimiter
from wallet.services.sql_store import SqlAlchemyStore
from wallet.services.store import InMemoryStore, WalletStore

logger = logging.getLogger(__name__)

VERSION = "2.0.0"

HTTP_MESSAGES = {
    404: "Endpoint not found",
    405: "Method not allowed",
}


def build_store(settings: Settings) -> WalletStore:
    if settings.store_backend == "sqlalchemy":
        return SqlAlchemyStore(settings.database_url)
    return InMemoryStore()


def build_services(settings: Settings, store: Optional[WalletStore] = None) -> WalletServices:
    store = store or build_store(settings)
    return WalletServices(
        settings=settings,
        store=store,
        tokens=TokenService(
            store,
            ttl_minutes=settings.token_ttl_minutes,
            algorithm=settings.jwt_algorithm,
        ),
        accounts=AccountService(store, starting_balance=settings.starting_balance),
        ledger=Ledger(
            store,
            max_transfer_amount=settings.max_transfer_amount,
            max_balance=settings.max_balance,
        ),
        login_limiter=RateLimiter(
            settings.login_rate_limit_attempts,
            settings.login_rate_limit_window_seconds,
            name="login",
        ),
        register_limiter=RateLimiter(
            settings.login_rate_limit_attempts,
            settings.login_rate_limit_window_seconds,
            name="register",
        ),
    )


def _error(status_code: int, message: str) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(WalletError)
    async def wallet_error_handler(request: Request, exc: WalletError):
        if isinstance(exc, Internal):
            logger.error("internal error on %s %s", request.method, request.url.path)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(InvalidInput.status_code, InvalidInput.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, HTTP_MESSAGES.get(exc.status_code, "Request failed"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return _error(Internal.status_code, Internal.message)


def create_app(settings: Optional[Settings] = None, store: Optional[WalletStore] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(title="Wallet API", version=VERSION)

    # Prefer a comma-separated allowlist in prod, fallback to frontend_url/local
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type"],
    )

    install_error_handlers(app)

    services = build_services(settings, store)
    app.state.services = services

    if settings.seed_admin:
        seed_admin_if_missing(services.store, services.accounts, settings)

    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(api_router, prefix="/api")

    @app.get("/api/health")
    def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
        }

    logger.info("wallet api ready (env=%s, store=%s)", settings.app_env, settings.store_backend)
    return app


app = create_app()
