import logging

from wallet.core.config import Settings
from wallet.services.accounts import AccountService
from wallet.services.store import Role, User, WalletStore

logger = logging.getLogger(__name__)

ADMIN_STARTING_BALANCE = 10000


def seed_admin_if_missing(store: WalletStore, accounts: AccountService, settings: Settings) -> User:
    existing = store.find_by_username(settings.admin_username)
    if existing:
        return existing

    # Change these creds via WALLET_ADMIN_* (demo defaults)
    admin = accounts.register(
        settings.admin_username,
        settings.admin_password,
        settings.admin_email,
        role=Role.ADMIN,
        balance=ADMIN_STARTING_BALANCE,
    )
    logger.info("default admin user created: %s", admin.username)
    return admin
