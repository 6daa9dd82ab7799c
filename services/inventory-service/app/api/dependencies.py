"""Request-scoped accessors for services held on the application state."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from ..config import Settings
from ..domain.service import InventoryService
from ..security.gateway import AdminGateway, Principal
from ..upstream import UpstreamProxy


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    settings: Settings = request.app.state.settings
    return settings


def get_service(request: Request) -> InventoryService:
    """Resolve the `InventoryService` stored on the FastAPI application state."""
    service: InventoryService = request.app.state.inventory_service
    return service


def get_gateway(request: Request) -> AdminGateway:
    gateway: AdminGateway = request.app.state.gateway
    return gateway


def get_proxy(request: Request) -> UpstreamProxy:
    proxy: UpstreamProxy = request.app.state.upstream_proxy
    return proxy


def session_token(request: Request) -> str | None:
    return request.cookies.get(get_app_settings(request).session_cookie_name)


def require_admin(
    request: Request,
    gateway: AdminGateway = Depends(get_gateway),
    api_key: str | None = Header(default=None, alias="x-admin-api-key"),
) -> Principal:
    """Gate a route behind an admin session cookie or the service API key."""
    return gateway.require_authenticated(session_token(request), api_key=api_key)
