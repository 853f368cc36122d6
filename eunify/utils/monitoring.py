"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests_total = Counter(
    "eunify_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "eunify_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

graph_fetch_total = Counter(
    "eunify_graph_fetch_total",
    "Graph service calls by operation and outcome",
    ["operation", "outcome"],
)

graph_fetch_latency_seconds = Histogram(
    "eunify_graph_fetch_latency_seconds",
    "Graph service call latency",
    ["operation"],
)

dropped_edges_total = Counter(
    "eunify_dropped_edges_total",
    "Edges removed because an endpoint vertex was missing",
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)


def observe_fetch(operation: str, succeeded: bool, duration_seconds: float) -> None:
    outcome = "success" if succeeded else "failure"
    graph_fetch_total.labels(operation=operation, outcome=outcome).inc()
    graph_fetch_latency_seconds.labels(operation=operation).observe(duration_seconds)
