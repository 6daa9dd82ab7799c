"""Signed admin session tokens and the process-local registry of live sessions."""

from __future__ import annotations

import secrets
import time
from threading import Lock
from typing import Any

import jwt

from ..config import Settings


def issue_session_token(session_id: str, settings: Settings, now: float | None = None) -> tuple[str, int]:
    """Create a signed JWT naming an admin session.

    Parameters
    ----------
    session_id:
        Registry key embedded in the ``sid`` claim.
    settings:
        Supplies the signing secret, issuer and session lifetime.
    now:
        Issue time as a UNIX timestamp; defaults to the current time.

    Returns
    -------
    tuple[str, int]
        The encoded token and its absolute expiry as a UNIX timestamp.
    """

    issued_at = int(now if now is not None else time.time())
    expires_at = issued_at + settings.session_ttl_seconds
    payload: dict[str, Any] = {
        "iss": settings.session_issuer,
        "sub": "admin",
        "sid": session_id,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.session_secret, algorithm="HS256"), expires_at


def decode_session_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify signature, issuer and expiry of a session token.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is malformed, expired, or signed by another issuer.
    """

    return jwt.decode(
        token,
        settings.session_secret,
        algorithms=["HS256"],
        issuer=settings.session_issuer,
        options={"require": ["exp", "sid"]},
    )


def new_session_id() -> str:
    return secrets.token_urlsafe(24)


class SessionRegistry:
    """Thread-safe map of live session ids to their expiry timestamps."""

    def __init__(self) -> None:
        self._sessions: dict[str, float] = {}
        self._lock = Lock()

    def add(self, session_id: str, expires_at: float) -> None:
        with self._lock:
            self._purge(time.time())
            self._sessions[session_id] = expires_at

    def is_active(self, session_id: str, now: float | None = None) -> bool:
        """Return ``True`` while the session exists and has not expired."""
        now = now if now is not None else time.time()
        with self._lock:
            expires_at = self._sessions.get(session_id)
            if expires_at is None:
                return False
            if expires_at <= now:
                del self._sessions[session_id]
                return False
            return True

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _purge(self, now: float) -> None:
        expired = [sid for sid, expires_at in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]
