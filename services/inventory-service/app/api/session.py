"""Admin login, logout and session introspection routes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from ..repository import format_timestamp
from ..security.gateway import AdminGateway
from .dependencies import get_app_settings, get_gateway, session_token

router = APIRouter(prefix="/api/admin")


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    expires_at: str = Field(..., alias="expiresAt")


class LogoutResponse(BaseModel):
    success: bool = True
    message: str


class SessionStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    authenticated: bool
    expires_at: str | None = Field(default=None, alias="expiresAt")


def _iso(timestamp: int) -> str:
    return format_timestamp(datetime.fromtimestamp(timestamp, timezone.utc))


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    gateway: AdminGateway = Depends(get_gateway),
) -> LoginResponse:
    """Exchange the admin password for a session cookie."""
    client = request.client.host if request.client else "unknown"
    session = gateway.login(payload.password, client=client)
    settings = get_app_settings(request)
    response.set_cookie(
        settings.session_cookie_name,
        session.token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return LoginResponse(message="Login successful", expires_at=_iso(session.expires_at))


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    response: Response,
    gateway: AdminGateway = Depends(get_gateway),
) -> LogoutResponse:
    """End the caller's session; repeating the call is harmless."""
    gateway.logout(session_token(request))
    response.delete_cookie(get_app_settings(request).session_cookie_name)
    return LogoutResponse(message="Logged out")


@router.get("/status", response_model=SessionStatusResponse)
def session_status(request: Request, gateway: AdminGateway = Depends(get_gateway)) -> SessionStatusResponse:
    status = gateway.status(session_token(request))
    return SessionStatusResponse(
        authenticated=status.authenticated,
        expires_at=_iso(status.expires_at) if status.expires_at else None,
    )
