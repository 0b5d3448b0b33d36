"""Solana mainnet fetcher.

TPS is read from the node's recent performance samples. The signature fee
is fixed at 5000 lamports, so the gas field only depends on the live SOL
price.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.data.sources.solana import (
    SOLANA_RPC_URL,
    SOLANA_SOURCE,
    fetch_performance_samples,
    samples_tps,
)
from sirscore.networks.base import NetworkFetcher, NetworkProfile

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback

LAMPORTS_PER_SIGNATURE = 5_000
PERFORMANCE_SAMPLE_LIMIT = 10

SOLANA_PROFILE = NetworkProfile(
    network_id="solana",
    display_name="Solana",
    coingecko_id="solana",
    llama_name="Solana",
    finality="0.8s",
    uptime=98.1,
    tps=3000.0,
    gas_price="$0.002",
    market_cap="$89.2B",
    volume_24h="$2.1B",
    tvl="$8.5B",
    price_change_24h=-0.8,
    gas_precision=6,
    gas_units_per_tx=1,
    native_decimals=9,
    sources=(SOLANA_SOURCE, "coingecko", "defillama"),
)


class SolanaFetcher(NetworkFetcher):
    """Solana: Σ numTransactions / Σ samplePeriodSecs, 5000 lamports × SOL."""

    profile = SOLANA_PROFILE

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
        rpc_url: str = SOLANA_RPC_URL,
    ) -> None:
        super().__init__(client, settings, metrics=metrics, now=now)
        self._rpc_url = rpc_url

    async def _recent_tps(self) -> float | None:
        samples = await fetch_performance_samples(
            self._client, PERFORMANCE_SAMPLE_LIMIT, url=self._rpc_url
        )
        return samples_tps(samples)

    def tps_query(self) -> Awaitable[float | None]:
        return self._recent_tps()

    async def _signature_fee(self) -> int:
        return LAMPORTS_PER_SIGNATURE

    def gas_query(self) -> Awaitable[int]:
        return self._signature_fee()
