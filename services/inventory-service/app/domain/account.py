from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_MAX_USERS = 5


@dataclass(slots=True)
class Account:
    """A shared subscription login whose capacity is split into slots."""

    account_id: str
    service: str
    service_name: str
    email: str
    password: str
    username: str
    added_at: datetime
    notes: str = ""
    current_users: int = 0
    max_users: int = DEFAULT_MAX_USERS
    used_by: list[str] = field(default_factory=list)

    @property
    def occupied_slots(self) -> int:
        """Occupant count clamped into ``[0, max_users]`` to tolerate drifted records."""
        return max(0, min(self.current_users, self.max_users))

    @property
    def is_full(self) -> bool:
        return self.current_users >= self.max_users

    @property
    def free_slots(self) -> int:
        return self.max_users - self.occupied_slots


Inventory = dict[str, list[Account]]
