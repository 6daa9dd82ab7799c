from __future__ import annotations

import time
from dataclasses import replace

import jwt
import pytest

from app.domain.errors import AuthError, LoginThrottledError, UnauthorizedError
from app.security.gateway import AdminGateway
from app.security.login_throttle import SlidingWindowLoginThrottle
from app.security.sessions import SessionRegistry, decode_session_token, issue_session_token

from conftest import ADMIN_API_KEY, ADMIN_PASSWORD


@pytest.fixture()
def gateway(settings):
    return AdminGateway(settings, throttle=SlidingWindowLoginThrottle(max_failures=3, window_seconds=60))


def test_wrong_password_leaves_caller_anonymous(gateway):
    with pytest.raises(AuthError):
        gateway.login("wrong")
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(None)


def test_correct_password_authenticates(gateway, settings):
    session = gateway.login(ADMIN_PASSWORD)
    principal = gateway.require_authenticated(session.token)
    assert principal.method == "session"
    assert principal.session_id == session.session_id
    assert session.expires_at - time.time() == pytest.approx(settings.session_ttl_seconds, abs=5)


def test_logout_invalidates_session_and_is_idempotent(gateway):
    session = gateway.login(ADMIN_PASSWORD)
    gateway.logout(session.token)
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(session.token)
    gateway.logout(session.token)
    gateway.logout(None)
    gateway.logout("garbage")


def test_expired_session_is_rejected(settings):
    gateway = AdminGateway(replace(settings, session_ttl_seconds=1))
    session = gateway.login(ADMIN_PASSWORD)
    time.sleep(2.1)
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(session.token)
    assert gateway.status(session.token).authenticated is False


def test_token_signed_with_other_secret_is_rejected(gateway, settings):
    foreign = replace(settings, session_secret="another-secret")
    token, _ = issue_session_token("forged", foreign)
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(token)


def test_valid_token_for_unknown_session_is_rejected(gateway, settings):
    token, _ = issue_session_token("never-registered", settings)
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(token)


def test_api_key_bypass(gateway):
    assert gateway.require_authenticated(None, api_key=ADMIN_API_KEY).method == "api-key"
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(None, api_key="nope")


def test_api_key_bypass_disabled_without_configured_key(settings):
    gateway = AdminGateway(replace(settings, admin_api_key=""))
    with pytest.raises(UnauthorizedError):
        gateway.require_authenticated(None, api_key="")
    session = gateway.login(ADMIN_PASSWORD)
    assert gateway.require_authenticated(session.token, api_key="anything").method == "session"


@pytest.mark.parametrize("api_key", ["", "nope"])
def test_mismatched_api_key_falls_back_to_session(gateway, api_key):
    session = gateway.login(ADMIN_PASSWORD)
    principal = gateway.require_authenticated(session.token, api_key=api_key)
    assert principal.method == "session"
    assert principal.session_id == session.session_id


def test_repeated_failures_are_throttled(gateway):
    for _ in range(3):
        with pytest.raises(AuthError):
            gateway.login("wrong", client="10.0.0.1")
    with pytest.raises(LoginThrottledError):
        gateway.login(ADMIN_PASSWORD, client="10.0.0.1")
    assert gateway.login(ADMIN_PASSWORD, client="10.0.0.2").token


def test_successful_login_resets_failures(gateway):
    for _ in range(2):
        with pytest.raises(AuthError):
            gateway.login("wrong", client="10.0.0.3")
    gateway.login(ADMIN_PASSWORD, client="10.0.0.3")
    for _ in range(2):
        with pytest.raises(AuthError):
            gateway.login("wrong", client="10.0.0.3")
    assert gateway.login(ADMIN_PASSWORD, client="10.0.0.3").token


def test_session_token_claims(settings):
    token, expires_at = issue_session_token("sid-1", settings, now=1_700_000_000)
    claims = jwt.decode(
        token,
        settings.session_secret,
        algorithms=["HS256"],
        issuer=settings.session_issuer,
        options={"verify_exp": False},
    )
    assert claims["sid"] == "sid-1"
    assert expires_at == 1_700_000_000 + settings.session_ttl_seconds
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_session_token(token, settings)


def test_registry_expires_passively():
    registry = SessionRegistry()
    registry.add("sid", expires_at=100.0)
    assert registry.is_active("sid", now=99.0)
    assert not registry.is_active("sid", now=100.0)
    assert len(registry) == 0
