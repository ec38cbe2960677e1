"""Prometheus metrics for the Takaro Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "takaro_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "takaro_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "takaro_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "takaro_operator_drift_detected_total",
    "Total number of spec generations that differed from the observed generation",
    ["kind"],
)

# API call metrics
api_call_total = Counter(
    "takaro_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "takaro_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "takaro_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

# Queue and watch metrics
queue_depth = Gauge(
    "takaro_operator_queue_depth",
    "Number of keys waiting in the reconcile queue",
    ["controller"],
)

requeue_total = Counter(
    "takaro_operator_requeue_total",
    "Total number of delayed requeues",
    ["controller", "reason"],
)

watch_restarts_total = Counter(
    "takaro_operator_watch_restarts_total",
    "Total number of watch stream restarts",
    ["controller", "reason"],
)
