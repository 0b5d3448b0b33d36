"""Etherscan-family networks (Ethereum, Polygon, BSC).

TPS comes from the explorer's proxy module (latest height, then the last
``blocks_to_sample`` blocks) and gas from its gas oracle. Without an API
key the explorer is not called and both fields fall back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from sirscore.data.formatting import gwei_to_wei
from sirscore.data.sources.evm import ScannerApi
from sirscore.data.tps import recent_blocks_tps
from sirscore.networks.base import NetworkFetcher

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime
    from decimal import Decimal

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback


class ScannerNetworkFetcher(NetworkFetcher):
    """Explorer API 기반 EVM 네트워크 fetcher.

    Class Attributes:
        chain_id: EVM chain id (explorer ``chainid`` 파라미터)
        scanner: 키 이름이자 rate limit 소스 라벨 ("etherscan" 등)
    """

    chain_id: ClassVar[int]
    scanner: ClassVar[str]

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(client, settings, metrics=metrics, now=now)
        # Explorer keys are interchangeable on the unified endpoint
        api_key = self._settings.scanner_api_key(self.scanner) or self._settings.scanner_api_key(
            "etherscan"
        )
        self._scanner: ScannerApi | None = None
        if api_key:
            self._scanner = ScannerApi(
                client,
                chain_id=self.chain_id,
                api_key=api_key,
                source=self.scanner,
            )
        else:
            self._log.warning("No {} API key, TPS and gas will use estimates", self.scanner)

    def tps_query(self) -> Awaitable[float | None] | None:
        if self._scanner is None:
            return None
        return recent_blocks_tps(
            self._scanner.block_number,
            self._scanner.block,
            self._settings.blocks_to_sample,
        )

    def gas_query(self) -> Awaitable[Decimal] | None:
        if self._scanner is None:
            return None
        return self._proposed_gas_wei(self._scanner)

    @staticmethod
    async def _proposed_gas_wei(scanner: ScannerApi) -> Decimal:
        oracle = await scanner.gas_oracle()
        return gwei_to_wei(oracle.propose_gas_price)
