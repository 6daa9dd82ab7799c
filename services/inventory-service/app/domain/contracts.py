"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .account import DEFAULT_MAX_USERS


@dataclass(slots=True)
class CreateAccountInput:
    """Inputs required to add an account to a service's pool."""

    service: str | None
    email: str | None
    password: str | None
    username: str | None = None
    notes: str | None = None
    max_users: int = DEFAULT_MAX_USERS


class AccountStatus(str, Enum):
    available = "available"
    full = "full"


@dataclass(slots=True)
class AccountFilter:
    """Optional narrowing applied when listing the inventory."""

    service: str | None = None
    status: AccountStatus | None = None
    search: str | None = None
