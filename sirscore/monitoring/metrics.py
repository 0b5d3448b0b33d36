"""Prometheus 메트릭: 업스트림 호출 및 스냅샷 품질 계측.

Layers:
    1. Upstream calls: 소스별 호출 결과/지연시간
    2. Snapshots: 네트워크별 스냅샷 결과 (complete/partial/fallback), live 필드 수

Rules Applied:
    - Prometheus naming: sirscore_ prefix
    - UpstreamMetricsCallback: Protocol (관심사 분리, fetcher에 주입)
"""

from __future__ import annotations

import time
from typing import Literal, Protocol, runtime_checkable

from prometheus_client import Counter, Gauge, Histogram, Info

from sirscore import __version__

SnapshotOutcome = Literal["complete", "partial", "fallback"]

# ==========================================================================
# Layer 1: Upstream Calls
# ==========================================================================
upstream_call_total = Counter(
    "sirscore_upstream_call_total",
    "Upstream call attempts",
    ["network", "source", "status"],  # status: success | failure | timeout | empty
)
upstream_latency_histogram = Histogram(
    "sirscore_upstream_latency_seconds",
    "Upstream call latency per source",
    ["network", "source"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
upstream_last_success_gauge = Gauge(
    "sirscore_upstream_last_success_timestamp",
    "Last successful upstream call Unix timestamp",
    ["network", "source"],
)

# ==========================================================================
# Layer 2: Snapshots
# ==========================================================================
snapshot_total = Counter(
    "sirscore_snapshot_total",
    "Assembled network snapshots",
    ["network", "outcome"],  # outcome: complete | partial | fallback
)
snapshot_live_fields_gauge = Gauge(
    "sirscore_snapshot_live_fields",
    "Number of live fields in the latest snapshot",
    ["network"],
)

# ==========================================================================
# Meta
# ==========================================================================
build_info = Info("sirscore", "Live network data metadata")
build_info.info({"version": __version__})


# ==========================================================================
# UpstreamMetricsCallback: 업스트림 호출 계측 Protocol
# ==========================================================================
@runtime_checkable
class UpstreamMetricsCallback(Protocol):
    """업스트림 호출/스냅샷 메트릭 콜백 Protocol.

    NetworkFetcher에 주입하여 관심사 분리.
    """

    def on_call(self, network: str, source: str, duration: float, status: str) -> None:
        """업스트림 호출 결과 기록.

        Args:
            network: 네트워크 ID (예: "ethereum")
            source: 쿼리 라벨 (예: "tps", "market")
            duration: 소요 시간 (초)
            status: "success" | "failure" | "timeout" | "empty"
        """
        ...

    def on_snapshot(self, network: str, outcome: SnapshotOutcome, live_fields: int) -> None:
        """스냅샷 조립 결과 기록.

        Args:
            network: 네트워크 ID
            outcome: "complete" | "partial" | "fallback"
            live_fields: live 필드 수
        """
        ...


class PrometheusUpstreamCallback:
    """Prometheus 기반 업스트림 메트릭 콜백 구현."""

    def on_call(self, network: str, source: str, duration: float, status: str) -> None:
        """호출 결과를 Prometheus 메트릭으로 기록."""
        upstream_call_total.labels(network=network, source=source, status=status).inc()
        upstream_latency_histogram.labels(network=network, source=source).observe(duration)
        if status == "success":
            upstream_last_success_gauge.labels(network=network, source=source).set(time.time())

    def on_snapshot(self, network: str, outcome: SnapshotOutcome, live_fields: int) -> None:
        """스냅샷 결과를 Prometheus 메트릭으로 기록."""
        snapshot_total.labels(network=network, outcome=outcome).inc()
        snapshot_live_fields_gauge.labels(network=network).set(live_fields)
