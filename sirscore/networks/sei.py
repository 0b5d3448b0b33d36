"""Sei fetcher (Tendermint REST for blocks/validators, EVM RPC for gas).

TPS uses the same recent-block window as the EVM chains: the latest block
and the ``blocks_to_sample - 1`` blocks before it, transaction counts over
the elapsed header time. No floor or clamp is applied to the result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.data.sources.evm import EvmRpc
from sirscore.data.sources.tendermint import TendermintRest, validator_uptime
from sirscore.data.tps import recent_blocks_tps
from sirscore.networks.base import NetworkFetcher, NetworkProfile

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback

SEI_REST_URL = "https://sei-rest.publicnode.com"
SEI_EVM_RPC_URL = "https://evm-rpc.sei-apis.com"
SEI_REST_SOURCE = "sei-rest"
SEI_EVM_SOURCE = "sei-evm-rpc"

SEI_PROFILE = NetworkProfile(
    network_id="sei",
    display_name="Sei",
    coingecko_id="sei-network",
    llama_name="Sei",
    finality="0.4s",
    uptime=99.0,
    tps=None,
    gas_price="$0.0008",
    market_cap="$2.4B",
    volume_24h="$145M",
    tvl="N/A",
    price_change_24h=2.1,
    gas_precision=6,
    sources=(SEI_REST_SOURCE, SEI_EVM_SOURCE, "coingecko", "defillama"),
)


class SeiFetcher(NetworkFetcher):
    """Sei: recent Tendermint blocks for TPS, validator set for uptime."""

    profile = SEI_PROFILE

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
        rest_url: str = SEI_REST_URL,
        evm_rpc_url: str = SEI_EVM_RPC_URL,
    ) -> None:
        super().__init__(client, settings, metrics=metrics, now=now)
        self._rest = TendermintRest(client, base_url=rest_url, source=SEI_REST_SOURCE)
        self._evm = EvmRpc(client, url=evm_rpc_url, source=SEI_EVM_SOURCE)

    async def _latest_height(self) -> int:
        block = await self._rest.latest_block()
        return block.header.height

    def tps_query(self) -> Awaitable[float | None]:
        return recent_blocks_tps(
            self._latest_height,
            self._rest.block,
            self._settings.blocks_to_sample,
        )

    def gas_query(self) -> Awaitable[int]:
        return self._evm.gas_price()

    async def _validator_uptime(self) -> float:
        return validator_uptime(await self._rest.validator_set())

    def uptime_query(self) -> Awaitable[float]:
        return self._validator_uptime()
