"""
Prometheus metrics for the license transfer service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# Transfer metrics
transfers_initiated_total = Counter(
    "license_transfers_initiated_total",
    "Total license transfers initiated",
    ["transfer_type"],
)

transfers_rejected_at_validation_total = Counter(
    "license_transfers_rejected_at_validation_total",
    "Total transfer requests refused by eligibility rules",
    ["error"],
)

transfer_decisions_total = Counter(
    "license_transfer_decisions_total",
    "Total approval decisions recorded",
    ["approval_type", "outcome"],
)

transfer_decisions_refused_total = Counter(
    "license_transfer_decisions_refused_total",
    "Total approval decisions refused",
    ["approval_type", "reason"],
)

transfers_completed_total = Counter(
    "license_transfers_completed_total",
    "Total license transfers executed",
    ["transfer_type"],
)

transfers_cancelled_total = Counter(
    "license_transfers_cancelled_total",
    "Total license transfers cancelled",
    ["transfer_type"],
)

usages_revoked_total = Counter(
    "license_usages_revoked_total",
    "Total license usages revoked by transfers",
)

# Latency
transfer_execution_duration_seconds = Histogram(
    "license_transfer_execution_duration_seconds",
    "Time spent executing an approved transfer",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
)
