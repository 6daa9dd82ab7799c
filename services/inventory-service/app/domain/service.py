"""Inventory workflows orchestrating the account store and capacity metrics."""

from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Callable

from .account import Account, Inventory
from .availability import InventoryStats, ServiceAvailability, compute_availability, compute_stats
from .catalog import Service, display_name, get_catalog
from .contracts import AccountFilter, AccountStatus, CreateAccountInput
from .errors import AccountFullError, NotFoundError, ValidationError
from ..logging_config import get_audit_logger
from ..repository import AccountStore

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_account_id(service: str, now: Callable[[], float] = time.time) -> str:
    """Build ``<service>_<epoch millis>_<random base36 suffix>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{service}_{int(now() * 1000)}_{suffix}"


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class InventoryService:
    """Account inventory operations backed by the JSON account store."""

    def __init__(self, store: AccountStore, catalog: tuple[Service, ...] | None = None) -> None:
        """Keep the store used for every read and the catalog used for availability."""
        self._store = store
        self._catalog = catalog if catalog is not None else get_catalog()

    @property
    def catalog(self) -> tuple[Service, ...]:
        return self._catalog

    def list_services(self) -> tuple[Service, ...]:
        return self._catalog

    def list_accounts(self, filters: AccountFilter | None = None) -> Inventory:
        """Return the inventory grouped by service, optionally narrowed by ``filters``."""
        inventory = self._store.load()
        if filters is None:
            return inventory

        needle = filters.search.strip().lower() if filters.search else ""
        result: Inventory = {}
        for service, accounts in inventory.items():
            if filters.service and service != filters.service:
                continue
            matches = []
            for account in accounts:
                if filters.status is AccountStatus.available and account.is_full:
                    continue
                if filters.status is AccountStatus.full and not account.is_full:
                    continue
                if needle and not any(
                    needle in field.lower() for field in (account.email, account.username, account.notes)
                ):
                    continue
                matches.append(account)
            result[service] = matches
        return result

    def add_account(self, payload: CreateAccountInput) -> Account:
        """Validate, create and persist a new account at the end of its service list."""
        if _blank(payload.service) or _blank(payload.email) or _blank(payload.password):
            raise ValidationError("Service, email and password are required")
        service = str(payload.service).strip()
        if "/" in service:
            raise ValidationError("service id must not contain '/'")
        if payload.max_users < 1:
            raise ValidationError("maxUsers must be at least 1")

        email = str(payload.email).strip()
        with self._store.transaction() as inventory:
            accounts = inventory.setdefault(service, [])
            existing = {account.account_id for pool in inventory.values() for account in pool}
            account_id = generate_account_id(service)
            while account_id in existing:
                account_id = generate_account_id(service)

            account = Account(
                account_id=account_id,
                service=service,
                service_name=display_name(service),
                email=email,
                password=str(payload.password),
                username=payload.username.strip() if not _blank(payload.username) else email.split("@")[0],
                added_at=datetime.now(timezone.utc),
                notes=payload.notes or "",
                max_users=payload.max_users,
            )
            accounts.append(account)

        audit_logger.info("account.created service=%s id=%s", service, account.account_id)
        return account

    def delete_account(self, service: str, account_id: str) -> Account:
        """Remove one account permanently and return the removed record."""
        with self._store.transaction() as inventory:
            accounts = inventory.get(service)
            if accounts is None:
                raise NotFoundError("Service not found")
            index = self._index_of(accounts, account_id)
            removed = accounts.pop(index)

        audit_logger.info("account.deleted service=%s id=%s", service, account_id)
        return removed

    def assign_slot(self, service: str, account_id: str, consumer: str) -> Account:
        """Give ``consumer`` one slot on the account."""
        if _blank(consumer):
            raise ValidationError("consumer is required")
        consumer = consumer.strip()
        with self._store.transaction() as inventory:
            account = self._get(inventory, service, account_id)
            if consumer in account.used_by:
                raise ValidationError(f"{consumer} already holds a slot on this account")
            if account.is_full:
                raise AccountFullError()
            account.used_by.append(consumer)
            account.current_users = account.occupied_slots + 1

        audit_logger.info(
            "slot.assigned service=%s id=%s consumer=%s usage=%d/%d",
            service,
            account_id,
            consumer,
            account.current_users,
            account.max_users,
        )
        return account

    def release_slot(self, service: str, account_id: str, consumer: str) -> Account:
        """Free the slot held by ``consumer``."""
        if _blank(consumer):
            raise ValidationError("consumer is required")
        consumer = consumer.strip()
        with self._store.transaction() as inventory:
            account = self._get(inventory, service, account_id)
            if consumer not in account.used_by:
                raise NotFoundError("consumer does not hold a slot on this account")
            account.used_by.remove(consumer)
            account.current_users = max(0, account.occupied_slots - 1)

        audit_logger.info("slot.released service=%s id=%s consumer=%s", service, account_id, consumer)
        return account

    def availability(self) -> list[ServiceAvailability]:
        return compute_availability(self._store.load(), self._catalog)

    def stats(self) -> InventoryStats:
        return compute_stats(self._store.load())

    def summarize(self, inventory: Inventory) -> InventoryStats:
        """Stats for an already loaded (possibly filtered) inventory."""
        return compute_stats(inventory)

    def _get(self, inventory: Inventory, service: str, account_id: str) -> Account:
        accounts = inventory.get(service)
        if accounts is None:
            raise NotFoundError("Service not found")
        return accounts[self._index_of(accounts, account_id)]

    @staticmethod
    def _index_of(accounts: list[Account], account_id: str) -> int:
        for index, account in enumerate(accounts):
            if account.account_id == account_id:
                return index
        raise NotFoundError("Account not found")
