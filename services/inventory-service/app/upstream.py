"""Forwarding of admin requests to the upstream account-management API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from .config import Settings
from .domain.errors import UpstreamUnavailable
from .logging_config import get_audit_logger

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

PROXY_PREFIX = "/api/proxy"

# Hop-by-hop and transport headers that must not be copied from the upstream response.
_DROPPED_RESPONSE_HEADERS = frozenset(
    {"connection", "keep-alive", "transfer-encoding", "content-length", "content-encoding", "set-cookie"}
)


@dataclass(slots=True)
class UpstreamResponse:
    status_code: int
    content: bytes
    media_type: str | None
    headers: dict[str, str] = field(default_factory=dict)


class UpstreamProxy:
    """Relays requests to ``UPSTREAM_BASE_URL`` with the service API key attached."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        """Use ``client`` when given, otherwise open a pooled client with the configured timeout."""
        self._settings = settings
        self._client = client or httpx.AsyncClient(
            timeout=settings.upstream_timeout_seconds,
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=50),
        )

    def build_url(self, path: str) -> str:
        """Join the path remaining after the local ``/api/proxy`` prefix onto the upstream base."""
        if path and not path.startswith("/"):
            path = "/" + path
        base = self._settings.upstream_base_url.rstrip("/")
        prefix = self._settings.upstream_path_prefix.strip("/")
        prefix = f"/{prefix}" if prefix else ""
        return f"{base}{prefix}{path}"

    async def forward(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        *,
        query: str = "",
        content_type: str | None = None,
    ) -> UpstreamResponse:
        """Send the request upstream and return its response unchanged.

        Transport failures (refused connections, DNS errors, timeouts) raise
        ``UpstreamUnavailable``; upstream error statuses are passed through.
        """
        url = self.build_url(path)
        if query:
            url = f"{url}?{query}"
        headers = {"x-admin-api-key": self._settings.upstream_api_key, "accept": "application/json"}
        if content_type:
            headers["content-type"] = content_type

        started = datetime.now(timezone.utc)
        try:
            response = await self._client.request(
                method.upper(),
                url,
                content=body or None,
                headers=headers,
                timeout=self._settings.upstream_timeout_seconds,
            )
        except httpx.TransportError as exc:
            audit_logger.warning(
                "proxy.forward at=%s method=%s url=%s status=unavailable error=%s",
                started.isoformat(),
                method.upper(),
                url,
                exc.__class__.__name__,
            )
            raise UpstreamUnavailable(f"upstream unreachable: {exc}") from exc

        audit_logger.info(
            "proxy.forward at=%s method=%s url=%s status=%d",
            started.isoformat(),
            method.upper(),
            url,
            response.status_code,
        )
        passthrough = {
            name: value
            for name, value in response.headers.items()
            if name.lower() not in _DROPPED_RESPONSE_HEADERS and name.lower() != "content-type"
        }
        return UpstreamResponse(
            status_code=response.status_code,
            content=response.content,
            media_type=response.headers.get("content-type"),
            headers=passthrough,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
