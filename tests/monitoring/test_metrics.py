"""Tests for sirscore/monitoring/metrics.py: Prometheus callback."""

from __future__ import annotations

from prometheus_client import REGISTRY

from sirscore.monitoring.metrics import PrometheusUpstreamCallback, UpstreamMetricsCallback


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestPrometheusUpstreamCallback:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(PrometheusUpstreamCallback(), UpstreamMetricsCallback)

    def test_on_call_success(self) -> None:
        labels = {"network": "metrics-test", "source": "tps", "status": "success"}
        before = _sample("sirscore_upstream_call_total", labels)

        PrometheusUpstreamCallback().on_call("metrics-test", "tps", 0.2, "success")

        assert _sample("sirscore_upstream_call_total", labels) == before + 1
        last_success = _sample(
            "sirscore_upstream_last_success_timestamp",
            {"network": "metrics-test", "source": "tps"},
        )
        assert last_success > 0

    def test_on_call_failure_does_not_touch_last_success(self) -> None:
        callback = PrometheusUpstreamCallback()
        callback.on_call("metrics-fail", "gas", 1.5, "timeout")

        assert (
            _sample(
                "sirscore_upstream_call_total",
                {"network": "metrics-fail", "source": "gas", "status": "timeout"},
            )
            >= 1
        )
        assert (
            REGISTRY.get_sample_value(
                "sirscore_upstream_last_success_timestamp",
                {"network": "metrics-fail", "source": "gas"},
            )
            is None
        )

    def test_latency_histogram(self) -> None:
        labels = {"network": "metrics-latency", "source": "market"}
        before = _sample("sirscore_upstream_latency_seconds_count", labels)

        PrometheusUpstreamCallback().on_call("metrics-latency", "market", 0.3, "success")

        assert _sample("sirscore_upstream_latency_seconds_count", labels) == before + 1

    def test_on_snapshot(self) -> None:
        labels = {"network": "metrics-snap", "outcome": "partial"}
        before = _sample("sirscore_snapshot_total", labels)

        PrometheusUpstreamCallback().on_snapshot("metrics-snap", "partial", 5)

        assert _sample("sirscore_snapshot_total", labels) == before + 1
        assert _sample("sirscore_snapshot_live_fields", {"network": "metrics-snap"}) == 5.0

    def test_build_info(self) -> None:
        info = REGISTRY.get_sample_value("sirscore_info", {"version": "0.1.0"})
        assert info == 1.0
