# backend/wallet/core/errors.py

from fastapi import status


class WalletError(Exception):
    """Base for every failure the API boundary knows how to render.

    `message` is the only text a caller ever sees, so it stays generic.
    """

    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(WalletError):
    kind = "InvalidInput"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input data"


class Unauthenticated(WalletError):
    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication required"


class Forbidden(WalletError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFound(WalletError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UserNotFound(NotFound):
    message = "User not found"


class Conflict(WalletError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Username already exists"


class InvalidAmount(WalletError):
    kind = "InvalidAmount"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid amount"


class InsufficientFunds(WalletError):
    kind = "InsufficientFunds"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Insufficient funds"


class SelfTransfer(WalletError):
    kind = "SelfTransfer"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Cannot send money to yourself"


class RateLimited(WalletError):
    kind = "RateLimited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."


class Internal(WalletError):
    pass
