"""Single-admin authentication and request gating."""

from __future__ import annotations

import hmac
import logging
import time
from dataclasses import dataclass
from typing import Protocol

import jwt

from ..config import Settings
from ..domain.errors import AuthError, LoginThrottledError, UnauthorizedError
from ..logging_config import get_audit_logger
from .sessions import SessionRegistry, decode_session_token, issue_session_token, new_session_id

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


class LoginThrottle(Protocol):
    def is_blocked(self, key: str) -> bool: ...

    def record_failure(self, key: str) -> None: ...

    def reset(self, key: str) -> None: ...


@dataclass(slots=True)
class AdminSession:
    """A freshly established session handed back to the login caller."""

    token: str
    session_id: str
    expires_at: int


@dataclass(slots=True)
class Principal:
    """Identity attached to an authenticated request."""

    method: str
    session_id: str | None = None
    expires_at: int | None = None


@dataclass(slots=True)
class SessionStatus:
    authenticated: bool
    expires_at: int | None = None


def _secrets_match(candidate: str | None, expected: str) -> bool:
    if not candidate or not expected:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


class AdminGateway:
    """Validates the shared admin credential and tracks the resulting sessions."""

    def __init__(
        self,
        settings: Settings,
        throttle: LoginThrottle | None = None,
        registry: SessionRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._throttle = throttle
        self._registry = registry if registry is not None else SessionRegistry()

    def login(self, password: str | None, client: str = "unknown") -> AdminSession:
        """Open an admin session when ``password`` matches the configured secret."""
        throttle_key = f"login:{client}"
        if self._throttle is not None and self._throttle.is_blocked(throttle_key):
            audit_logger.warning("admin.login.throttled client=%s", client)
            raise LoginThrottledError()

        if not _secrets_match(password, self._settings.admin_password):
            if self._throttle is not None:
                self._throttle.record_failure(throttle_key)
            audit_logger.warning("admin.login.failed client=%s", client)
            raise AuthError()

        if self._throttle is not None:
            self._throttle.reset(throttle_key)
        session_id = new_session_id()
        token, expires_at = issue_session_token(session_id, self._settings)
        self._registry.add(session_id, expires_at)
        audit_logger.info("admin.login client=%s session=%s", client, session_id[:8])
        return AdminSession(token=token, session_id=session_id, expires_at=expires_at)

    def logout(self, token: str | None) -> None:
        """End the session behind ``token``; unknown or invalid tokens are ignored."""
        if not token:
            return
        try:
            claims = jwt.decode(
                token,
                self._settings.session_secret,
                algorithms=["HS256"],
                issuer=self._settings.session_issuer,
                options={"verify_exp": False},
            )
        except jwt.PyJWTError:
            return
        session_id = claims.get("sid")
        if session_id:
            self._registry.discard(session_id)
            audit_logger.info("admin.logout session=%s", str(session_id)[:8])

    def require_authenticated(self, token: str | None, api_key: str | None = None) -> Principal:
        """Return the caller's principal or raise ``UnauthorizedError``."""
        if self._settings.admin_api_key and _secrets_match(api_key, self._settings.admin_api_key):
            return Principal(method="api-key")

        principal = self._session_principal(token)
        if principal is not None:
            return principal
        if api_key:
            logger.info("rejected request with invalid admin api key")
            raise UnauthorizedError("Unauthorized. Invalid admin credentials.")
        raise UnauthorizedError("Unauthorized. Please log in.")

    def status(self, token: str | None) -> SessionStatus:
        principal = self._session_principal(token)
        if principal is None:
            return SessionStatus(authenticated=False)
        return SessionStatus(authenticated=True, expires_at=principal.expires_at)

    def _session_principal(self, token: str | None) -> Principal | None:
        if not token:
            return None
        try:
            claims = decode_session_token(token, self._settings)
        except jwt.PyJWTError as exc:
            logger.debug("session token rejected: %s", exc)
            return None
        session_id = str(claims["sid"])
        if not self._registry.is_active(session_id, now=time.time()):
            return None
        return Principal(method="session", session_id=session_id, expires_at=int(claims["exp"]))
