"""Application metrics using the Prometheus client library.

Every metric the service exposes is defined here, in one inventory.
Other modules import a metric and increment/observe it at the point of
action.  Prometheus scrapes the values from GET /metrics.

Registry counters only count committed operations: they are incremented
after the store transaction exits cleanly, so a counter never runs ahead
of what is actually persisted.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Registry metrics
# ---------------------------------------------------------------------------

CERTIFICATES_ISSUED = Counter(
    "certificates_issued_total",
    "Certificates successfully issued",
)

CERTIFICATES_REVOKED = Counter(
    "certificates_revoked_total",
    "Certificates successfully revoked",
)

REGISTRY_REJECTIONS = Counter(
    "registry_rejections_total",
    "Registry operations rejected by a business rule",
    ["operation", "code"],  # code is RegistryError.code, e.g. CERTIFICATE_NOT_FOUND
)

CERTIFICATE_VERIFICATIONS = Counter(
    "certificate_verifications_total",
    "Public verification lookups by result",
    ["result"],  # "valid" or "invalid"
)

ISSUER_CHANGES = Counter(
    "issuer_changes_total",
    "Issuer set mutations by the administrator",
    ["action"],  # "add" or "remove"
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],  # "certificate_events"
)

EVENT_TASK_FAILURES = Counter(
    "event_task_failures_total",
    "Failed certificate event deliveries by outcome",
    ["outcome"],  # "retried" or "exhausted"
)
