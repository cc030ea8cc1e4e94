# backend/wallet/core/config.py

from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"

    # comma-separated allowlist, e.g. "https://wallet.example.com,http://localhost:3000"
    cors_origins: str = ""
    frontend_url: str = "http://localhost:3000"

    # credentials
    token_ttl_minutes: int = 60
    jwt_algorithm: str = "HS256"

    # login / register throttling, per caller address
    login_rate_limit_attempts: int = 5
    login_rate_limit_window_seconds: int = 15 * 60

    # money
    max_transfer_amount: int = 1_000_000
    max_balance: int = 10_000_000
    starting_balance: int = 1000

    # default admin (demo credentials)
    seed_admin: bool = True
    admin_username: str = "admin"
    admin_password: str = "SecureAdmin123!"
    admin_email: str = "admin@wallet.com"

    store_backend: Literal["memory", "sqlalchemy"] = "memory"
    database_url: str = "sqlite:///:memory:"

    class Config:
        env_file = ".env"
        env_prefix = "WALLET_"

    def allow_origins(self) -> List[str]:
        cors_env = self.cors_origins.strip()
        if cors_env:
            return [o.strip() for o in cors_env.split(",") if o.strip()]
        return list({self.frontend_url.strip(), "http://localhost:3000"})


settings = Settings()
