"""Cosmos SDK / Tendermint REST (LCD) source."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.data.models import (
    TendermintBlock,
    TendermintBlockResponse,
    TendermintValidatorSet,
    parse_payload,
)
from sirscore.data.tps import BlockSample

if TYPE_CHECKING:
    from sirscore.data.client import AsyncUpstreamClient

TENDERMINT_BASE_PATH = "/cosmos/base/tendermint/v1beta1"


class TendermintRest:
    """LCD endpoint: blocks and the active validator set.

    Example:
        >>> rest = TendermintRest(
        ...     client, base_url="https://sei-rest.publicnode.com", source="sei-rest"
        ... )
        >>> latest = await rest.latest_block()
        >>> latest.header.height
        123456789
    """

    def __init__(self, client: AsyncUpstreamClient, *, base_url: str, source: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._source = source

    async def _block(self, ref: str) -> TendermintBlock:
        url = f"{self._base_url}{TENDERMINT_BASE_PATH}/blocks/{ref}"
        data = await self._client.get_json(url, source=self._source)
        return parse_payload(TendermintBlockResponse, data, source=self._source).block

    async def latest_block(self) -> TendermintBlock:
        return await self._block("latest")

    async def block(self, height: int) -> BlockSample:
        block = await self._block(str(height))
        return BlockSample(tx_count=block.tx_count, timestamp=block.header.time.timestamp())

    async def validator_set(self) -> TendermintValidatorSet:
        url = f"{self._base_url}{TENDERMINT_BASE_PATH}/validatorsets/latest"
        data = await self._client.get_json(url, source=self._source)
        return parse_payload(TendermintValidatorSet, data, source=self._source)


def validator_uptime(validators: TendermintValidatorSet) -> float:
    """투표권을 가진 validator 비율 (%, 소수 2자리)."""
    total = len(validators.validators)
    active = sum(1 for v in validators.validators if v.voting_power > 0)
    return round(active / total * 100, 2)
