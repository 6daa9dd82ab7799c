"""Capacity metrics derived from an inventory snapshot.

Everything here is a pure function of its arguments. Fullness is always
recomputed from ``current_users``/``max_users``; any ``fullyUsed`` flag found in
the store is ignored.

The catalog decides which services appear in availability listings, while the
raw inventory decides totals, so accounts filed under an unlisted service still
count towards :func:`compute_stats`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .account import Account
from .catalog import Service


@dataclass(frozen=True, slots=True)
class ServiceAvailability:
    service_id: str
    name: str
    price: int
    available_accounts: int
    total_accounts: int
    used_slots: int
    total_slots: int

    @property
    def available_slots(self) -> int:
        return self.total_slots - self.used_slots

    @property
    def available(self) -> bool:
        return self.available_accounts > 0


@dataclass(frozen=True, slots=True)
class ServiceStats:
    count: int
    available: int


@dataclass(frozen=True, slots=True)
class InventoryStats:
    total_accounts: int
    services: int
    per_service: dict[str, ServiceStats]


def summarize_service(service: Service, accounts: Sequence[Account]) -> ServiceAvailability:
    """Aggregate slot usage for one catalog service."""
    return ServiceAvailability(
        service_id=service.service_id,
        name=service.name,
        price=service.price,
        available_accounts=sum(1 for account in accounts if not account.is_full),
        total_accounts=len(accounts),
        used_slots=sum(account.occupied_slots for account in accounts),
        total_slots=sum(account.max_users for account in accounts),
    )


def compute_availability(
    inventory: Mapping[str, Sequence[Account]],
    catalog: Iterable[Service],
) -> list[ServiceAvailability]:
    """Return one summary per catalog service, in catalog order."""
    return [summarize_service(service, inventory.get(service.service_id, ())) for service in catalog]


def compute_stats(inventory: Mapping[str, Sequence[Account]]) -> InventoryStats:
    """Return account totals across every service key present in the inventory."""
    per_service = {
        service_id: ServiceStats(
            count=len(accounts),
            available=sum(1 for account in accounts if not account.is_full),
        )
        for service_id, accounts in inventory.items()
    }
    return InventoryStats(
        total_accounts=sum(stats.count for stats in per_service.values()),
        services=len(per_service),
        per_service=per_service,
    )
