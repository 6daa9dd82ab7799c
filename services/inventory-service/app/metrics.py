"""Prometheus counters for inventory mutations and proxied calls."""

from __future__ import annotations

from prometheus_client import Counter

ACCOUNT_MUTATIONS = Counter(
    "inventory_account_mutations_total",
    "Successful account inventory mutations",
    ["operation"],
)

PROXY_REQUESTS = Counter(
    "inventory_proxy_requests_total",
    "Requests forwarded to the upstream API",
    ["method", "outcome"],
)
