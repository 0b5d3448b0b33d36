"""Sui JSON-RPC source with endpoint failover.

Public Sui RPC providers come and go; every call walks the endpoint list in
order and returns the first answer. The list is only exhausted when every
provider failed, in which case the last error is raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from sirscore.core.exceptions import DataValidationError, NetworkError, UpstreamError
from sirscore.data.models import SuiCheckpoint, SuiSystemState, hex_to_int, parse_payload
from sirscore.data.tps import rate_per_second

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sirscore.data.client import AsyncUpstreamClient

SUI_RPC_ENDPOINTS: tuple[str, ...] = (
    "https://sui-mainnet-rpc.allthatnode.com",
    "https://sui-mainnet-rpc.nodereal.io",
    "https://sui-mainnet-rpc.publicnode.com",
    "https://sui-mainnet.blockvision.org",
)
SUI_SOURCE = "sui-rpc"

# Minimum staking pool balance (MIST) for a validator to count as staked
MIN_ACTIVE_STAKE_MIST = 1


class SuiRpc:
    """Sui JSON-RPC client over an ordered failover list."""

    def __init__(
        self,
        client: AsyncUpstreamClient,
        *,
        endpoints: Sequence[str] = SUI_RPC_ENDPOINTS,
        source: str = SUI_SOURCE,
    ) -> None:
        if not endpoints:
            msg = "SuiRpc needs at least one endpoint"
            raise ValueError(msg)
        self._client = client
        self._endpoints = tuple(endpoints)
        self._source = source

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """첫 번째로 성공한 endpoint의 result 반환.

        Raises:
            UpstreamError / DataValidationError: 모든 endpoint 실패 시 마지막 에러
        """
        last_error: Exception | None = None
        for url in self._endpoints:
            try:
                return await self._client.rpc_call(url, method, params, source=self._source)
            except (UpstreamError, DataValidationError) as e:
                logger.debug("Sui endpoint {} failed for {}: {}", url, method, e)
                last_error = e
        if last_error is None:  # pragma: no cover
            raise NetworkError(f"No Sui endpoint answered {method}")
        raise last_error

    async def latest_checkpoint_number(self) -> int:
        result = await self.call("sui_getLatestCheckpointSequenceNumber")
        try:
            return hex_to_int(result)
        except ValueError as e:
            raise DataValidationError(f"Invalid checkpoint number: {result!r}") from e

    async def checkpoint(self, sequence: int) -> SuiCheckpoint:
        result = await self.call("sui_getCheckpoint", [str(sequence)])
        return parse_payload(SuiCheckpoint, result, source=self._source)

    async def reference_gas_price(self) -> int:
        """참조 가스 가격 (MIST per computation unit)."""
        result = await self.call("suix_getReferenceGasPrice")
        try:
            return hex_to_int(result)
        except ValueError as e:
            raise DataValidationError(f"Invalid reference gas price: {result!r}") from e

    async def system_state(self) -> SuiSystemState:
        result = await self.call("suix_getLatestSuiSystemState")
        return parse_payload(SuiSystemState, result, source=self._source)


def checkpoint_tps(newest: SuiCheckpoint, oldest: SuiCheckpoint) -> float | None:
    """networkTotalTransactions 증가분 / timestampMs 차이 (초)."""
    return rate_per_second(
        newest.network_total_transactions - oldest.network_total_transactions,
        (newest.timestamp_ms - oldest.timestamp_ms) / 1000,
    )


def staked_validator_uptime(state: SuiSystemState) -> float:
    """스테이크가 있는 active validator 비율 (%, 소수 2자리)."""
    total = len(state.active_validators)
    staked = sum(
        1 for v in state.active_validators if v.staking_pool_sui_balance >= MIN_ACTIVE_STAKE_MIST
    )
    return round(staked / total * 100, 2)
