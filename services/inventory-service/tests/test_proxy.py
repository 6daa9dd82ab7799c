from __future__ import annotations

import logging
from dataclasses import replace

import httpx
import pytest

from app.upstream import UpstreamProxy


def test_build_url_joins_remainder_onto_upstream(settings):
    proxy = UpstreamProxy(settings, client=httpx.AsyncClient())
    assert proxy.build_url("/accounts") == "http://upstream.test/api/accounts"
    assert proxy.build_url("accounts/netflix/1") == "http://upstream.test/api/accounts/netflix/1"
    assert proxy.build_url("/api/proxyfoo") == "http://upstream.test/api/api/proxyfoo"

    bare = UpstreamProxy(
        replace(settings, upstream_base_url="http://upstream.test/", upstream_path_prefix=""),
        client=httpx.AsyncClient(),
    )
    assert bare.build_url("/health") == "http://upstream.test/health"


def test_proxy_strips_local_prefix_once(admin_client):
    response = admin_client.get("/api/proxy/api/proxy/x")
    assert response.json()["url"] == "http://upstream.test/api/api/proxy/x"


def test_proxy_requires_admin(client):
    response = client.get("/api/proxy/accounts")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_proxy_forwards_with_upstream_key(admin_client):
    response = admin_client.post(
        "/api/proxy/accounts?dryRun=1",
        json={"service": "netflix"},
    )
    assert response.status_code == 200
    echoed = response.json()
    assert echoed["method"] == "POST"
    assert echoed["url"] == "http://upstream.test/api/accounts?dryRun=1"
    assert echoed["apiKey"] == "upstream-key"
    assert '"service"' in echoed["body"]


def test_proxy_passes_upstream_errors_through(admin_client, upstream_handler):
    upstream_handler["handler"] = lambda request: httpx.Response(
        404, json={"success": False, "error": "Account not found"}
    )
    response = admin_client.delete("/api/proxy/accounts/netflix/missing")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Account not found"}


def test_unreachable_upstream_maps_to_503(admin_client, upstream_handler, caplog):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream_handler["handler"] = refuse
    with caplog.at_level(logging.WARNING, logger="inventory.audit"):
        response = admin_client.get("/api/proxy/accounts")
    assert response.status_code == 503
    assert response.json()["success"] is False
    assert any("status=unavailable" in record.getMessage() for record in caplog.records)


def test_upstream_timeout_maps_to_503(admin_client, upstream_handler):
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    upstream_handler["handler"] = slow
    assert admin_client.get("/api/proxy/accounts").status_code == 503


def test_local_fault_maps_to_500(admin_client, upstream_handler):
    def broken(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("bug")

    upstream_handler["handler"] = broken
    response = admin_client.get("/api/proxy/accounts")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "InternalError"}


def test_forwarded_calls_are_audited(admin_client, caplog):
    with caplog.at_level(logging.INFO, logger="inventory.audit"):
        admin_client.get("/api/proxy/health")
    messages = [record.getMessage() for record in caplog.records if record.name == "inventory.audit"]
    assert any("method=GET url=http://upstream.test/api/health status=200" in message for message in messages)


def test_proxy_accepts_service_api_key(client):
    response = client.get("/api/proxy/health", headers={"x-admin-api-key": "service-key"})
    assert response.status_code == 200


@pytest.mark.parametrize("method", ["put", "patch"])
def test_proxy_supports_update_methods(admin_client, method):
    response = getattr(admin_client, method)("/api/proxy/accounts/netflix/1", json={"notes": "x"})
    assert response.json()["method"] == method.upper()
