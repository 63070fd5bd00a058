"""
api/metrics.py -- Prometheus metrics for the gateway.

Each app gets its own CollectorRegistry, so building several apps in one
process (tests, reloads) never trips duplicate-collector errors.

Series:
  calendarium_http_requests_total{method, path, status}
  calendarium_http_request_duration_seconds{method, path}

`path` is the route template (/v1/calendar/{event_id}), never the raw URL,
so ids and junk paths cannot blow up label cardinality.
"""

from __future__ import annotations

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

UNMATCHED = "unmatched"


def route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED


class GatewayMetrics:
    content_type = CONTENT_TYPE_LATEST

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        self.requests = Counter(
            "calendarium_http_requests_total",
            "HTTP requests handled by the gateway.",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.latency = Histogram(
            "calendarium_http_request_duration_seconds",
            "Gateway request latency in seconds.",
            ["method", "path"],
            registry=self.registry,
        )

    def observe(self, method: str, path: str, status: int, seconds: float) -> None:
        self.requests.labels(method=method, path=path, status=str(status)).inc()
        self.latency.labels(method=method, path=path).observe(seconds)

    def render(self) -> bytes:
        return generate_latest(self.registry)
