"""Prometheus metrics for Garrison.

Tracks audit chain writes and verification, notification delivery,
and the state of the resilience primitives guarding outbound channels.
"""

from prometheus_client import Counter, Gauge, Histogram

# Audit metrics
AUDIT_APPENDS = Counter(
    "garrison_audit_appends_total",
    "Total number of audit entries appended to the chain",
    labelnames=["action"],
)

AUDIT_APPEND_FAILURES = Counter(
    "garrison_audit_append_failures_total",
    "Audit appends that failed and were dropped",
    labelnames=["action", "error_type"],
)

AUDIT_APPEND_LATENCY = Histogram(
    "garrison_audit_append_latency_seconds",
    "Latency of a chained audit append",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

AUDIT_VERIFICATIONS = Counter(
    "garrison_audit_verifications_total",
    "Audit chain verification runs",
    labelnames=["outcome"],
)

AUDIT_CHAIN_LENGTH = Gauge(
    "garrison_audit_chain_length",
    "Number of entries checked by the last verification run",
)

# Notification metrics
NOTIFICATIONS_CREATED = Counter(
    "garrison_notifications_created_total",
    "Notifications persisted",
    labelnames=["type", "priority"],
)

NOTIFICATION_DELIVERIES = Counter(
    "garrison_notification_deliveries_total",
    "Per-channel notification delivery attempts",
    labelnames=["channel", "outcome"],
)

# Resilience metrics
RETRY_ATTEMPTS = Counter(
    "garrison_retry_attempts_total",
    "Failed attempts observed by with_retry",
    labelnames=["operation"],
)

CIRCUIT_BREAKER_TRANSITIONS = Counter(
    "garrison_circuit_breaker_transitions_total",
    "Circuit breaker state transitions",
    labelnames=["breaker", "to_state"],
)

CIRCUIT_BREAKER_STATE = Gauge(
    "garrison_circuit_breaker_state",
    "Current breaker state (0=closed, 1=half_open, 2=open)",
    labelnames=["breaker"],
)

# API metrics
REQUEST_COUNT = Counter(
    "garrison_request_count_total",
    "Total number of requests processed",
    labelnames=["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "garrison_request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

ERRORS = Counter(
    "garrison_errors_total",
    "Errors rendered by the API error handlers",
    labelnames=["error_code"],
)
