"""Prometheus metrics for feed health, retention cycles and notifications"""

from prometheus_client import Counter, Histogram

# Change feed metrics
snapshot_counter = Counter(
    "subsgrow_snapshots_total",
    "Sales snapshots delivered by live queries",
)

feed_error_counter = Counter(
    "subsgrow_feed_errors_total",
    "Live query transport failures",
)

# Retention cycle metrics
cycle_counter = Counter(
    "subsgrow_retention_cycles_total",
    "Retention evaluation cycles that passed the cooldown gate",
    ["outcome"],  # issued | suppressed | snoozed | query_failed | write_failed
)

cycle_latency_histogram = Histogram(
    "subsgrow_retention_cycle_seconds",
    "Duration of retention evaluation cycles",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

notifications_issued_counter = Counter(
    "subsgrow_retention_warnings_issued_total",
    "Retention warnings written to the notifications collection",
)

# Operator alerts
alert_failure_counter = Counter(
    "subsgrow_alert_failures_total",
    "Failed operator alert deliveries",
)


def record_cycle(outcome: str, duration_seconds: float) -> None:
    """Record outcome and latency of one evaluation cycle"""
    cycle_counter.labels(outcome=outcome).inc()
    cycle_latency_histogram.observe(duration_seconds)

    if outcome == "issued":
        notifications_issued_counter.inc()
