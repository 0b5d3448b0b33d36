"""Base (OP Stack L2) fetcher over the public JSON-RPC endpoint.

Gas is paid in ETH, so the per-transaction cost uses the live ETH price
while market cap and volume come from the ``base`` CoinGecko entry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.data.sources.evm import EvmRpc
from sirscore.data.tps import recent_blocks_tps
from sirscore.networks.base import NetworkFetcher, NetworkProfile

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback

BASE_RPC_URL = "https://mainnet.base.org"
BASE_RPC_SOURCE = "base-rpc"

BASE_PROFILE = NetworkProfile(
    network_id="base",
    display_name="Base",
    coingecko_id="base",
    llama_name="Base",
    finality="7 days",
    uptime=99.5,
    tps=100.0,
    gas_price="$0.05",
    market_cap="$8.1B",
    volume_24h="$456M",
    tvl="$2.1B",
    price_change_24h=1.5,
    gas_precision=4,
    gas_token_id="ethereum",
    sources=(BASE_RPC_SOURCE, "coingecko", "defillama"),
)


class BaseChainFetcher(NetworkFetcher):
    """Base: RPC blocks for TPS, ``eth_gasPrice`` wei × 21000 × ETH for gas."""

    profile = BASE_PROFILE

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
        rpc_url: str = BASE_RPC_URL,
    ) -> None:
        super().__init__(client, settings, metrics=metrics, now=now)
        self._rpc = EvmRpc(client, url=rpc_url, source=BASE_RPC_SOURCE)

    def tps_query(self) -> Awaitable[float | None]:
        return recent_blocks_tps(
            self._rpc.block_number,
            self._rpc.block,
            self._settings.blocks_to_sample,
        )

    def gas_query(self) -> Awaitable[int]:
        return self._rpc.gas_price()
