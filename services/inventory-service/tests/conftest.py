from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.errors import register_exception_handlers
from app.api.proxy import router as proxy_router
from app.api.routes import router as inventory_router
from app.api.session import router as session_router
from app.config import Settings
from app.domain.account import Account
from app.domain.service import InventoryService
from app.repository import AccountStore
from app.security.gateway import AdminGateway
from app.security.login_throttle import SlidingWindowLoginThrottle
from app.upstream import UpstreamProxy

ADMIN_PASSWORD = "correct-horse"
ADMIN_API_KEY = "service-key"


def make_account(
    service: str = "netflix",
    account_id: str | None = None,
    *,
    current_users: int = 0,
    max_users: int = 5,
    email: str = "owner@example.com",
) -> Account:
    return Account(
        account_id=account_id or f"{service}_1700000000000_abc123xyz",
        service=service,
        service_name=service,
        email=email,
        password="pw",
        username=email.split("@")[0],
        added_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        current_users=current_users,
        max_users=max_users,
    )


def upstream_echo(request: httpx.Request) -> httpx.Response:
    """Default upstream: echo what arrived so tests can inspect the forwarded request."""
    return httpx.Response(
        200,
        json={
            "success": True,
            "method": request.method,
            "url": str(request.url),
            "apiKey": request.headers.get("x-admin-api-key"),
            "body": request.content.decode("utf-8"),
        },
    )


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        accounts_file=str(tmp_path / "accounts.json"),
        admin_password=ADMIN_PASSWORD,
        admin_api_key=ADMIN_API_KEY,
        session_secret="test-session-secret",
        upstream_base_url="http://upstream.test",
        upstream_api_key="upstream-key",
        login_max_failures=3,
        login_window_seconds=60,
    )


@pytest.fixture()
def store(settings: Settings) -> AccountStore:
    return AccountStore(settings.accounts_file)


@pytest.fixture()
def inventory_service(store: AccountStore) -> InventoryService:
    return InventoryService(store)


@pytest.fixture()
def upstream_handler():
    """Mutable holder so individual tests can swap the upstream behaviour."""
    return {"handler": upstream_echo}


@pytest.fixture()
def app(settings: Settings, inventory_service: InventoryService, upstream_handler) -> FastAPI:
    """Provide an application wired to an isolated store and a mocked upstream."""
    application = FastAPI()
    register_exception_handlers(application)
    application.include_router(inventory_router)
    application.include_router(session_router)
    application.include_router(proxy_router)

    transport = httpx.MockTransport(lambda request: upstream_handler["handler"](request))
    application.state.settings = settings
    application.state.inventory_service = inventory_service
    application.state.gateway = AdminGateway(
        settings,
        throttle=SlidingWindowLoginThrottle(
            max_failures=settings.login_max_failures,
            window_seconds=settings.login_window_seconds,
        ),
    )
    application.state.upstream_proxy = UpstreamProxy(settings, client=httpx.AsyncClient(transport=transport))
    return application


@pytest.fixture()
def client(app: FastAPI):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_client(client: TestClient) -> TestClient:
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
