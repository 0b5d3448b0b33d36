"""Tests for Etherscan-family fetchers (Ethereum, Polygon, BSC) and the shared base."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from conftest import FIXED_NOW, FakeUpstream, hang
from sirscore.config.settings import SirScoreSettings
from sirscore.core.exceptions import NetworkError
from sirscore.data.formatting import format_usd
from sirscore.data.models import NETWORK_METRIC_FIELDS, DataQuality
from sirscore.monitoring.metrics import UpstreamMetricsCallback
from sirscore.networks.base import QUERY_GAS, QUERY_MARKET, QUERY_TPS, QUERY_TVL
from sirscore.networks.bsc import BscFetcher
from sirscore.networks.ethereum import ETHEREUM_PROFILE, EthereumFetcher
from sirscore.networks.polygon import PolygonFetcher

GENESIS_TS = 1_700_000_000


def _evm_block(url: str, params: dict[str, str]) -> dict[str, object]:
    height = int(params["tag"], 16)
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "number": hex(height),
            "timestamp": hex(GENESIS_TS + 12 * height),
            "transactions": ["0x0"] * 150,
        },
    }


def _ethereum_upstream() -> FakeUpstream:
    """Etherscan + CoinGecko + DeFiLlama 모두 정상 응답."""
    upstream = FakeUpstream()
    upstream.on_get("action=eth_blockNumber", {"jsonrpc": "2.0", "id": 1, "result": "0x64"})
    upstream.on_get("action=eth_getBlockByNumber", _evm_block)
    upstream.on_get(
        "action=gasoracle",
        {
            "status": "1",
            "message": "OK",
            "result": {"SafeGasPrice": "18", "ProposeGasPrice": "20", "FastGasPrice": "25"},
        },
    )
    upstream.on_get(
        "simple/price",
        {
            "ethereum": {
                "usd": 3000.0,
                "usd_market_cap": 360_500_000_000,
                "usd_24h_vol": 15_300_000_000,
                "usd_24h_change": 1.234,
            }
        },
    )
    upstream.on_get("/v2/chains", [{"name": "Ethereum", "tvl": 52_340_000_000}])
    return upstream


class _RecordingMetrics:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.snapshots: list[tuple[str, str, int]] = []

    def on_call(self, network: str, source: str, duration: float, status: str) -> None:
        self.calls.append((network, source, status))

    def on_snapshot(self, network: str, outcome: str, live_fields: int) -> None:
        self.snapshots.append((network, outcome, live_fields))


class TestEthereumLive:
    @pytest.mark.asyncio()
    async def test_all_queries_succeed(self, settings, fixed_now) -> None:
        fetcher = EthereumFetcher(_ethereum_upstream(), settings, now=fixed_now)
        snap = await fetcher.fetch_snapshot()

        assert snap.network == "ethereum"
        # 1500 tx over 108 s
        assert snap.tps == pytest.approx(13.9)
        # 20 gwei x 21000 x $3000
        assert snap.gas_price == "$1.26"
        assert snap.market_cap == "$360.5B"
        assert snap.volume_24h == "$15.3B"
        assert snap.price_change_24h == pytest.approx(1.23)
        assert snap.tvl == "$52.3B"
        assert snap.last_updated == FIXED_NOW
        assert snap.error is None

    @pytest.mark.asyncio()
    async def test_quality_labels(self, settings) -> None:
        snap = await EthereumFetcher(_ethereum_upstream(), settings).fetch_snapshot()
        assert snap.live_fields == [
            "tps",
            "gas_price",
            "market_cap",
            "volume_24h",
            "tvl",
            "price_change_24h",
        ]
        # No live source for these two
        assert snap.data_quality["finality"] is DataQuality.ESTIMATED
        assert snap.data_quality["uptime"] is DataQuality.ESTIMATED
        assert snap.finality == ETHEREUM_PROFILE.finality
        assert snap.uptime == ETHEREUM_PROFILE.uptime

    @pytest.mark.asyncio()
    async def test_gas_is_cost_of_a_simple_transfer(self, settings) -> None:
        snap = await EthereumFetcher(_ethereum_upstream(), settings).fetch_snapshot()
        # Per-unit price x 21000 gas units x token price, not the bare per-unit price
        transfer_cost = 20 * 21_000 / 1e9 * 3000.0
        assert transfer_cost == pytest.approx(1.26)
        assert snap.gas_price == format_usd(transfer_cost, ETHEREUM_PROFILE.gas_precision)
        assert snap.gas_price != format_usd(20 / 1e9 * 3000.0, 4)

    @pytest.mark.asyncio()
    async def test_samples_configured_block_count(self, settings) -> None:
        upstream = _ethereum_upstream()
        await EthereumFetcher(upstream, settings).fetch_snapshot()
        assert upstream.called("action=eth_getBlockByNumber") == settings.blocks_to_sample

    @pytest.mark.asyncio()
    async def test_metrics_reported(self, settings) -> None:
        metrics = _RecordingMetrics()
        await EthereumFetcher(_ethereum_upstream(), settings, metrics=metrics).fetch_snapshot()

        assert isinstance(metrics, UpstreamMetricsCallback)
        assert {source for _, source, _ in metrics.calls} == {
            QUERY_TPS,
            QUERY_GAS,
            QUERY_MARKET,
            QUERY_TVL,
        }
        assert all(status == "success" for _, _, status in metrics.calls)
        assert metrics.snapshots == [("ethereum", "complete", 6)]


class TestEthereumFallback:
    @pytest.mark.asyncio()
    async def test_inverted_block_timestamps_fall_back(self, settings) -> None:
        def inverted_block(url: str, params: dict[str, str]) -> dict[str, object]:
            height = int(params["tag"], 16)
            # Higher blocks carry earlier timestamps
            return {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {
                    "number": hex(height),
                    "timestamp": hex(GENESIS_TS - 12 * height),
                    "transactions": ["0x0"] * 150,
                },
            }

        upstream = _ethereum_upstream()
        upstream.get_routes.insert(0, ("action=eth_getBlockByNumber", inverted_block))
        snap = await EthereumFetcher(upstream, settings).fetch_snapshot()

        assert snap.tps == ETHEREUM_PROFILE.tps
        assert snap.data_quality["tps"] is DataQuality.ESTIMATED
        assert snap.data_quality["market_cap"] is DataQuality.LIVE

    @pytest.mark.asyncio()
    async def test_gas_oracle_failure_only_affects_gas(self, settings) -> None:
        upstream = _ethereum_upstream()
        upstream.get_routes.insert(0, ("action=gasoracle", NetworkError("HTTP 502")))
        snap = await EthereumFetcher(upstream, settings).fetch_snapshot()

        assert snap.gas_price == ETHEREUM_PROFILE.gas_price
        assert snap.data_quality["gas_price"] is DataQuality.ESTIMATED
        assert snap.data_quality["tps"] is DataQuality.LIVE
        assert snap.data_quality["market_cap"] is DataQuality.LIVE
        assert snap.error is None

    @pytest.mark.asyncio()
    async def test_market_failure_also_drops_gas(self, settings) -> None:
        upstream = _ethereum_upstream()
        upstream.get_routes.insert(0, ("simple/price", NetworkError("HTTP 429")))
        snap = await EthereumFetcher(upstream, settings).fetch_snapshot()

        for field in ("gas_price", "market_cap", "volume_24h", "price_change_24h"):
            assert snap.data_quality[field] is DataQuality.ESTIMATED
        assert snap.market_cap == ETHEREUM_PROFILE.market_cap
        assert snap.data_quality["tps"] is DataQuality.LIVE
        assert snap.data_quality["tvl"] is DataQuality.LIVE

    @pytest.mark.asyncio()
    async def test_partial_market_fields(self, settings) -> None:
        upstream = _ethereum_upstream()
        upstream.get_routes.insert(0, ("simple/price", {"ethereum": {"usd": 3000.0}}))
        snap = await EthereumFetcher(upstream, settings).fetch_snapshot()

        assert snap.data_quality["gas_price"] is DataQuality.LIVE
        assert snap.data_quality["market_cap"] is DataQuality.ESTIMATED
        assert snap.data_quality["volume_24h"] is DataQuality.ESTIMATED

    @pytest.mark.asyncio()
    async def test_timeout_marks_field_estimated(self, fixed_now) -> None:
        settings = SirScoreSettings(
            _env_file=None,  # type: ignore[call-arg]
            etherscan_api_key="test-etherscan-key",
            request_timeout=0.05,
        )
        upstream = _ethereum_upstream()
        upstream.get_routes.insert(0, ("/v2/chains", hang()))
        metrics = _RecordingMetrics()
        snap = await EthereumFetcher(
            upstream, settings, metrics=metrics, now=fixed_now
        ).fetch_snapshot()

        assert snap.tvl == ETHEREUM_PROFILE.tvl
        assert snap.data_quality["tvl"] is DataQuality.ESTIMATED
        assert snap.data_quality["tps"] is DataQuality.LIVE
        assert ("ethereum", QUERY_TVL, "timeout") in metrics.calls
        assert metrics.snapshots == [("ethereum", "partial", 5)]

    @pytest.mark.asyncio()
    async def test_every_upstream_down(self, settings) -> None:
        snap = await EthereumFetcher(FakeUpstream(), settings).fetch_snapshot()

        assert snap.live_fields == []
        assert snap.error is None
        assert snap.model_dump(include=set(NETWORK_METRIC_FIELDS)) == (
            ETHEREUM_PROFILE.fallback_values()
        )

    @pytest.mark.asyncio()
    async def test_unexpected_failure_returns_fallback_snapshot(self, settings) -> None:
        metrics = _RecordingMetrics()
        fetcher = EthereumFetcher(_ethereum_upstream(), settings, metrics=metrics)
        with patch.object(EthereumFetcher, "assemble", side_effect=RuntimeError("boom")):
            snap = await fetcher.fetch_snapshot()

        assert snap.error == "boom"
        assert snap.is_fallback
        assert snap.live_fields == []
        assert snap.tps == ETHEREUM_PROFILE.tps
        assert metrics.snapshots == [("ethereum", "fallback", 0)]

    @pytest.mark.asyncio()
    async def test_exception_without_message_uses_type_name(self, settings) -> None:
        fetcher = EthereumFetcher(_ethereum_upstream(), settings)
        with patch.object(EthereumFetcher, "build_queries", side_effect=KeyError()):
            snap = await fetcher.fetch_snapshot()
        assert snap.error == "KeyError"

    @pytest.mark.asyncio()
    async def test_unparseable_gas_price(self, settings) -> None:
        upstream = _ethereum_upstream()
        upstream.get_routes.insert(
            0,
            ("action=gasoracle", {"status": "1", "result": {"ProposeGasPrice": "N/A"}}),
        )
        snap = await EthereumFetcher(upstream, settings).fetch_snapshot()
        assert snap.data_quality["gas_price"] is DataQuality.ESTIMATED


class TestScannerKeys:
    @pytest.mark.asyncio()
    async def test_no_key_skips_scanner_calls(self, keyless_settings) -> None:
        upstream = _ethereum_upstream()
        queries = EthereumFetcher(upstream, keyless_settings).build_queries()
        try:
            assert list(queries) == [QUERY_MARKET, QUERY_TVL]
        finally:
            for query in queries.values():
                query.close()

        snap = await EthereumFetcher(upstream, keyless_settings).fetch_snapshot()
        assert upstream.called("api.etherscan.io") == 0
        assert snap.data_quality["tps"] is DataQuality.ESTIMATED
        assert snap.data_quality["gas_price"] is DataQuality.ESTIMATED
        assert snap.data_quality["market_cap"] is DataQuality.LIVE

    @pytest.mark.asyncio()
    async def test_polygon_falls_back_to_etherscan_key(self, settings) -> None:
        upstream = FakeUpstream()
        upstream.on_get(
            "action=gasoracle",
            {"status": "1", "result": {"ProposeGasPrice": "30"}},
        )
        upstream.on_get(
            "simple/price",
            {"polygon-ecosystem-token": {"usd": 0.5, "usd_market_cap": 5.0e9}},
        )
        snap = await PolygonFetcher(upstream, settings).fetch_snapshot()

        assert upstream.called("chainid=137") >= 1
        assert upstream.called("apikey=test-etherscan-key") >= 1
        # 30 gwei x 21000 x $0.5
        assert snap.gas_price == "$0.000315"
        assert snap.data_quality["gas_price"] is DataQuality.LIVE

    @pytest.mark.asyncio()
    async def test_dedicated_key_preferred(self) -> None:
        settings = SirScoreSettings(
            _env_file=None,  # type: ignore[call-arg]
            etherscan_api_key="eth-key",
            bscscan_api_key="bsc-key",
        )
        upstream = FakeUpstream()
        await BscFetcher(upstream, settings).fetch_snapshot()
        assert upstream.called("apikey=bsc-key") >= 1
        assert upstream.called("apikey=eth-key") == 0
        assert upstream.called("chainid=56") >= 1


class TestBuildQueries:
    def test_labels(self, settings) -> None:
        fetcher = EthereumFetcher(MagicMock(), settings)
        queries = fetcher.build_queries()
        try:
            assert list(queries) == [QUERY_TPS, QUERY_GAS, QUERY_MARKET, QUERY_TVL]
        finally:
            for query in queries.values():
                query.close()

    def test_fallback_snapshot(self, settings, fixed_now) -> None:
        snap = EthereumFetcher(MagicMock(), settings, now=fixed_now).fallback_snapshot("down")
        assert snap.error == "down"
        assert snap.last_updated == FIXED_NOW
        assert all(q is DataQuality.ESTIMATED for q in snap.data_quality.values())
