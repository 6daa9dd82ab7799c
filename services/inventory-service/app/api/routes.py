"""HTTP route definitions for the account inventory."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..domain.account import DEFAULT_MAX_USERS, Account, Inventory
from ..domain.availability import InventoryStats, ServiceAvailability
from ..domain.catalog import Service
from ..domain.contracts import AccountFilter, AccountStatus, CreateAccountInput
from ..domain.service import InventoryService
from ..metrics import ACCOUNT_MUTATIONS
from ..repository import format_timestamp
from ..security.gateway import Principal
from .dependencies import get_service, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class AccountResponse(BaseModel):
    """Serialised representation of an `Account`, in the stored record's field names."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    service: str
    service_name: str = Field(..., alias="serviceName")
    email: str
    password: str
    username: str
    notes: str
    current_users: int = Field(..., alias="currentUsers")
    max_users: int = Field(..., alias="maxUsers")
    fully_used: bool = Field(..., alias="fullyUsed")
    added_at: str = Field(..., alias="addedAt")
    used_by: list[str] = Field(..., alias="usedBy")

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain record, deriving ``fullyUsed``."""
        return cls(
            id=account.account_id,
            service=account.service,
            service_name=account.service_name,
            email=account.email,
            password=account.password,
            username=account.username,
            notes=account.notes,
            current_users=account.current_users,
            max_users=account.max_users,
            fully_used=account.is_full,
            added_at=format_timestamp(account.added_at),
            used_by=list(account.used_by),
        )


class CreateAccountRequest(BaseModel):
    """Payload accepted when adding an account to a service pool."""

    model_config = ConfigDict(populate_by_name=True)

    service: str
    email: EmailStr
    password: str
    username: str | None = None
    notes: str | None = None
    max_users: int = Field(default=DEFAULT_MAX_USERS, alias="maxUsers", ge=1)


class AccountMutationResponse(BaseModel):
    success: bool = True
    message: str
    account: AccountResponse


class DeleteAccountResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    removed_account: AccountResponse = Field(..., alias="removedAccount")


class SlotRequest(BaseModel):
    consumer: str


class ServiceStatsEntry(BaseModel):
    count: int
    available: int


class AccountListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    total_accounts: int = Field(..., alias="totalAccounts")
    services: int
    service_stats: dict[str, ServiceStatsEntry] = Field(..., alias="serviceStats")
    accounts: dict[str, list[AccountResponse]]

    @classmethod
    def from_domain(cls, inventory: Inventory, stats: InventoryStats) -> "AccountListResponse":
        return cls(
            total_accounts=stats.total_accounts,
            services=stats.services,
            service_stats={
                service: ServiceStatsEntry(count=entry.count, available=entry.available)
                for service, entry in stats.per_service.items()
            },
            accounts={
                service: [AccountResponse.from_domain(account) for account in accounts]
                for service, accounts in inventory.items()
            },
        )


class ServiceResponse(BaseModel):
    id: str
    name: str
    price: int

    @classmethod
    def from_domain(cls, service: Service) -> "ServiceResponse":
        return cls(id=service.service_id, name=service.name, price=service.price)


class ServiceListResponse(BaseModel):
    success: bool = True
    count: int
    services: list[ServiceResponse]


class AvailabilityEntry(BaseModel):
    """Capacity summary for a single catalog service."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    price: int
    available: bool
    available_accounts: int = Field(..., alias="availableAccounts")
    total_accounts: int = Field(..., alias="totalAccounts")
    used_slots: int = Field(..., alias="usedSlots")
    total_slots: int = Field(..., alias="totalSlots")
    available_slots: int = Field(..., alias="availableSlots")

    @classmethod
    def from_domain(cls, summary: ServiceAvailability) -> "AvailabilityEntry":
        return cls(
            name=summary.name,
            price=summary.price,
            available=summary.available,
            available_accounts=summary.available_accounts,
            total_accounts=summary.total_accounts,
            used_slots=summary.used_slots,
            total_slots=summary.total_slots,
            available_slots=summary.available_slots,
        )


class AvailabilityResponse(BaseModel):
    success: bool = True
    availability: dict[str, AvailabilityEntry]


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    services: int
    total_accounts: int = Field(..., alias="totalAccounts")
    timestamp: str


@router.get("/health", response_model=HealthResponse, tags=["health"])
def health(service: InventoryService = Depends(get_service)) -> HealthResponse:
    """Liveness probe that also reports inventory totals."""
    stats = service.stats()
    return HealthResponse(
        message="Admin API is running",
        services=stats.services,
        total_accounts=stats.total_accounts,
        timestamp=format_timestamp(datetime.now(timezone.utc)),
    )


@router.get("/services", response_model=ServiceListResponse)
def list_services(service: InventoryService = Depends(get_service)) -> ServiceListResponse:
    catalog = service.list_services()
    return ServiceListResponse(
        count=len(catalog),
        services=[ServiceResponse.from_domain(entry) for entry in catalog],
    )


@router.get("/availability", response_model=AvailabilityResponse)
def availability(service: InventoryService = Depends(get_service)) -> AvailabilityResponse:
    """Per-service slot capacity for every catalog entry."""
    return AvailabilityResponse(
        availability={summary.service_id: AvailabilityEntry.from_domain(summary) for summary in service.availability()}
    )


@router.get("/accounts", response_model=AccountListResponse)
def list_accounts(
    service_id: str | None = Query(default=None, alias="service"),
    status: AccountStatus | None = Query(default=None),
    search: str | None = Query(default=None),
    service: InventoryService = Depends(get_service),
    _: Principal = Depends(require_admin),
) -> AccountListResponse:
    """Return the inventory grouped by service, with per-service counts."""
    filters = None
    if service_id or status or search:
        filters = AccountFilter(service=service_id, status=status, search=search)
    inventory = service.list_accounts(filters)
    return AccountListResponse.from_domain(inventory, service.summarize(inventory))


@router.post("/accounts", response_model=AccountMutationResponse)
def add_account(
    payload: CreateAccountRequest,
    service: InventoryService = Depends(get_service),
    _: Principal = Depends(require_admin),
) -> AccountMutationResponse:
    account = service.add_account(
        CreateAccountInput(
            service=payload.service,
            email=str(payload.email),
            password=payload.password,
            username=payload.username,
            notes=payload.notes,
            max_users=payload.max_users,
        )
    )
    ACCOUNT_MUTATIONS.labels(operation="add").inc()
    return AccountMutationResponse(
        message=f"Account added to {account.service}",
        account=AccountResponse.from_domain(account),
    )


@router.delete("/accounts/{service_id}/{account_id}", response_model=DeleteAccountResponse)
def delete_account(
    service_id: str,
    account_id: str,
    service: InventoryService = Depends(get_service),
    _: Principal = Depends(require_admin),
) -> DeleteAccountResponse:
    removed = service.delete_account(service_id, account_id)
    ACCOUNT_MUTATIONS.labels(operation="delete").inc()
    return DeleteAccountResponse(
        message="Account removed successfully",
        removed_account=AccountResponse.from_domain(removed),
    )


@router.post("/accounts/{service_id}/{account_id}/slots", response_model=AccountMutationResponse)
def assign_slot(
    service_id: str,
    account_id: str,
    payload: SlotRequest,
    service: InventoryService = Depends(get_service),
    _: Principal = Depends(require_admin),
) -> AccountMutationResponse:
    """Hand one slot of the account to ``consumer``."""
    account = service.assign_slot(service_id, account_id, payload.consumer)
    ACCOUNT_MUTATIONS.labels(operation="assign_slot").inc()
    return AccountMutationResponse(
        message=f"Slot assigned to {payload.consumer.strip()}",
        account=AccountResponse.from_domain(account),
    )


@router.delete("/accounts/{service_id}/{account_id}/slots/{consumer}", response_model=AccountMutationResponse)
def release_slot(
    service_id: str,
    account_id: str,
    consumer: str,
    service: InventoryService = Depends(get_service),
    _: Principal = Depends(require_admin),
) -> AccountMutationResponse:
    account = service.release_slot(service_id, account_id, consumer)
    ACCOUNT_MUTATIONS.labels(operation="release_slot").inc()
    return AccountMutationResponse(
        message=f"Slot released by {consumer}",
        account=AccountResponse.from_domain(account),
    )
