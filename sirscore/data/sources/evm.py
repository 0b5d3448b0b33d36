"""EVM chain sources: Etherscan-family explorer API and plain JSON-RPC.

Both expose the same ``block_number`` / ``block`` pair so the recent-block
TPS sampler does not care which one it walks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sirscore.core.exceptions import DataValidationError, RpcError
from sirscore.data.models import EvmBlock, GasOracleResult, hex_to_int, parse_payload
from sirscore.data.tps import BlockSample

if TYPE_CHECKING:
    from sirscore.data.client import AsyncUpstreamClient

ETHERSCAN_V2_URL = "https://api.etherscan.io/v2/api"


class ScannerApi:
    """Etherscan-family explorer API (module/action/apikey query style).

    Example:
        >>> api = ScannerApi(client, chain_id=1, api_key="KEY", source="etherscan")
        >>> oracle = await api.gas_oracle()
        >>> oracle.propose_gas_price
        Decimal('20')
    """

    def __init__(
        self,
        client: AsyncUpstreamClient,
        *,
        chain_id: int,
        api_key: str,
        source: str,
        base_url: str = ETHERSCAN_V2_URL,
    ) -> None:
        self._client = client
        self._chain_id = chain_id
        self._api_key = api_key
        self._source = source
        self._base_url = base_url

    @property
    def source(self) -> str:
        return self._source

    async def _query(self, module: str, action: str, **extra: str) -> dict[str, Any]:
        params = {
            "chainid": str(self._chain_id),
            "module": module,
            "action": action,
            "apikey": self._api_key,
            **extra,
        }
        data = await self._client.get_json(self._base_url, source=self._source, params=params)
        if not isinstance(data, dict):
            raise DataValidationError(
                f"Malformed {self._source} response",
                context={"module": module, "action": action},
            )
        return data

    async def gas_oracle(self) -> GasOracleResult:
        """gastracker/gasoracle → gwei 단위 제안 가스 가격.

        Raises:
            DataValidationError: status != "1" (잘못된 키, 미지원 체인 등)
        """
        data = await self._query("gastracker", "gasoracle")
        if str(data.get("status")) != "1" or not isinstance(data.get("result"), dict):
            raise DataValidationError(
                f"{self._source} gas oracle rejected the request: {data.get('result')}",
                context={"message": data.get("message")},
            )
        return parse_payload(GasOracleResult, data["result"], source=self._source)

    async def _proxy(self, action: str, **extra: str) -> Any:
        data = await self._query("proxy", action, **extra)
        if data.get("error") is not None:
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise RpcError(
                f"{self._source} proxy error: {message}",
                code=code,
                context={"action": action},
            )
        result = data.get("result")
        # Explorer-level rejections come back as {"status": "0", "result": "<reason>"}
        if result is None or str(data.get("status", "")) == "0":
            raise DataValidationError(
                f"{self._source} proxy returned no result: {result}",
                context={"action": action},
            )
        return result

    async def block_number(self) -> int:
        result = await self._proxy("eth_blockNumber")
        try:
            return hex_to_int(result)
        except ValueError as e:
            raise DataValidationError(
                f"Invalid block number from {self._source}: {result!r}",
            ) from e

    async def block(self, height: int) -> BlockSample:
        result = await self._proxy("eth_getBlockByNumber", tag=hex(height), boolean="false")
        block = parse_payload(EvmBlock, result, source=self._source)
        return BlockSample(tx_count=block.tx_count, timestamp=float(block.timestamp))


class EvmRpc:
    """Plain EVM JSON-RPC endpoint (eth_blockNumber / eth_getBlockByNumber / eth_gasPrice)."""

    def __init__(self, client: AsyncUpstreamClient, *, url: str, source: str) -> None:
        self._client = client
        self._url = url
        self._source = source

    @property
    def source(self) -> str:
        return self._source

    async def _quantity(self, method: str) -> int:
        result = await self._client.rpc_call(self._url, method, source=self._source)
        try:
            return hex_to_int(result)
        except ValueError as e:
            raise DataValidationError(
                f"Invalid {method} quantity from {self._source}: {result!r}",
            ) from e

    async def block_number(self) -> int:
        return await self._quantity("eth_blockNumber")

    async def gas_price(self) -> int:
        """현재 가스 가격 (wei)."""
        return await self._quantity("eth_gasPrice")

    async def block(self, height: int) -> BlockSample:
        result = await self._client.rpc_call(
            self._url, "eth_getBlockByNumber", [hex(height), False], source=self._source
        )
        block = parse_payload(EvmBlock, result, source=self._source)
        return BlockSample(tx_count=block.tx_count, timestamp=float(block.timestamp))
