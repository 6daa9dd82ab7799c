"""Domain error taxonomy mapped onto HTTP status codes by the API layer."""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for failures the API translates into a ``success: false`` body."""

    status_code: int = 500
    public_message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(InventoryError):
    status_code = 400
    public_message = "invalid request"


class AuthError(InventoryError):
    """Raised by ``login`` when the credential does not match."""

    status_code = 401
    public_message = "invalid credentials"


class UnauthorizedError(InventoryError):
    status_code = 401
    public_message = "unauthorized"


class NotFoundError(InventoryError):
    status_code = 404
    public_message = "not found"


class ConflictError(InventoryError):
    """The store changed underneath a load-mutate-save cycle."""

    status_code = 409
    public_message = "inventory changed concurrently, retry the request"


class AccountFullError(ConflictError):
    public_message = "account has no free slots"


class LoginThrottledError(InventoryError):
    status_code = 429
    public_message = "too many failed login attempts"


class StorageWriteError(InventoryError):
    public_message = "failed to persist inventory"


class StorageCorruptionError(InventoryError):
    public_message = "inventory store is unreadable"


class UpstreamUnavailable(InventoryError):
    status_code = 503
    public_message = "upstream service unavailable"
