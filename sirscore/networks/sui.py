"""Sui fetcher (JSON-RPC with endpoint failover).

TPS is the growth of ``networkTotalTransactions`` between the latest
checkpoint and the one ``blocks_to_sample`` checkpoints earlier, divided by
the checkpoint timestamp difference. A simple transfer is priced at 1000
computation units of the reference gas price.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from sirscore.data.sources.sui import (
    SUI_RPC_ENDPOINTS,
    SUI_SOURCE,
    SuiRpc,
    checkpoint_tps,
    staked_validator_uptime,
)
from sirscore.networks.base import NetworkFetcher, NetworkProfile

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from datetime import datetime

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback

SUI_TRANSFER_COMPUTATION_UNITS = 1_000

SUI_PROFILE = NetworkProfile(
    network_id="sui",
    display_name="Sui",
    coingecko_id="sui",
    llama_name="Sui",
    finality="0.5s",
    uptime=99.5,
    tps=8000.0,
    gas_price="$0.001",
    market_cap="$3.2B",
    volume_24h="$89M",
    tvl="N/A",
    price_change_24h=1.8,
    gas_precision=4,
    gas_units_per_tx=SUI_TRANSFER_COMPUTATION_UNITS,
    native_decimals=9,
    sources=(SUI_SOURCE, "coingecko", "defillama"),
)


class SuiFetcher(NetworkFetcher):
    """Sui: checkpoint delta TPS, reference gas price, staked validator share."""

    profile = SUI_PROFILE

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
        endpoints: Sequence[str] = SUI_RPC_ENDPOINTS,
    ) -> None:
        super().__init__(client, settings, metrics=metrics, now=now)
        self._rpc = SuiRpc(client, endpoints=endpoints)

    async def _checkpoint_tps(self) -> float | None:
        latest = await self._rpc.latest_checkpoint_number()
        earlier = max(latest - self._settings.blocks_to_sample, 0)
        newest, oldest = await asyncio.gather(
            self._rpc.checkpoint(latest),
            self._rpc.checkpoint(earlier),
        )
        return checkpoint_tps(newest, oldest)

    def tps_query(self) -> Awaitable[float | None]:
        return self._checkpoint_tps()

    def gas_query(self) -> Awaitable[int]:
        return self._rpc.reference_gas_price()

    async def _validator_uptime(self) -> float:
        return staked_validator_uptime(await self._rpc.system_state())

    def uptime_query(self) -> Awaitable[float]:
        return self._validator_uptime()
