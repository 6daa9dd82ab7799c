"""Catch-all route relaying admin calls to the upstream API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ..domain.errors import UpstreamUnavailable
from ..metrics import PROXY_REQUESTS
from ..security.gateway import Principal
from ..upstream import PROXY_PREFIX, UpstreamProxy
from .dependencies import get_proxy, require_admin
from .errors import error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix=PROXY_PREFIX)


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def forward(
    path: str,
    request: Request,
    proxy: UpstreamProxy = Depends(get_proxy),
    _: Principal = Depends(require_admin),
) -> Response:
    """Forward the request body and query string, returning the upstream response as-is."""
    body = await request.body()
    try:
        upstream = await proxy.forward(
            request.method,
            f"/{path}",
            body,
            query=request.url.query,
            content_type=request.headers.get("content-type"),
        )
    except UpstreamUnavailable:
        PROXY_REQUESTS.labels(method=request.method, outcome="unavailable").inc()
        raise
    except Exception:
        PROXY_REQUESTS.labels(method=request.method, outcome="error").inc()
        logger.exception("proxying %s /%s failed", request.method, path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalError")

    PROXY_REQUESTS.labels(method=request.method, outcome=str(upstream.status_code)).inc()
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.media_type,
        headers=upstream.headers,
    )
