"""Monitoring: Prometheus metrics for upstream calls and snapshots."""

from sirscore.monitoring.metrics import (
    PrometheusUpstreamCallback,
    SnapshotOutcome,
    UpstreamMetricsCallback,
)

__all__ = ["PrometheusUpstreamCallback", "SnapshotOutcome", "UpstreamMetricsCallback"]
