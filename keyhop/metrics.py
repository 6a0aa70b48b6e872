from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

METRICS_REGISTRY = CollectorRegistry(auto_describe=True)

REQUEST_COUNT = Counter(
    "hop_requests_total",
    "Total requests",
    ["route", "method", "status"],
    registry=METRICS_REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "hop_request_latency_seconds",
    "Request latency",
    ["route", "method"],
    registry=METRICS_REGISTRY,
)
ERROR_COUNT = Counter(
    "hop_errors_total",
    "Total errors",
    ["route", "method", "status"],
    registry=METRICS_REGISTRY,
)
RESOLUTION_COUNT = Counter(
    "hop_resolutions_total",
    "Query resolutions by outcome",
    ["outcome"],
    registry=METRICS_REGISTRY,
)
RELOAD_COUNT = Counter(
    "hop_config_reloads_total",
    "Config reload attempts",
    ["status"],
    registry=METRICS_REGISTRY,
)
