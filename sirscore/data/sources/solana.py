"""Solana JSON-RPC source."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.core.exceptions import DataValidationError
from sirscore.data.models import SolanaPerformanceSample, parse_payload
from sirscore.data.tps import rate_per_second

if TYPE_CHECKING:
    from sirscore.data.client import AsyncUpstreamClient

SOLANA_RPC_URL = "https://api.mainnet-beta.solana.com"
SOLANA_SOURCE = "solana-rpc"


async def fetch_performance_samples(
    client: AsyncUpstreamClient,
    limit: int,
    *,
    url: str = SOLANA_RPC_URL,
) -> list[SolanaPerformanceSample]:
    """getRecentPerformanceSamples(limit) → 최근 성능 샘플 (보통 60초 단위).

    Raises:
        DataValidationError: result가 리스트가 아님
        SchemaValidationError: 샘플 스키마 불일치
    """
    result = await client.rpc_call(
        url, "getRecentPerformanceSamples", [limit], source=SOLANA_SOURCE
    )
    if not isinstance(result, list):
        raise DataValidationError(
            "getRecentPerformanceSamples did not return a list",
            context={"type": type(result).__name__},
        )
    return [parse_payload(SolanaPerformanceSample, item, source=SOLANA_SOURCE) for item in result]


def samples_tps(samples: list[SolanaPerformanceSample]) -> float | None:
    """Σ numTransactions / Σ samplePeriodSecs (소수 1자리), 기간 합이 0이면 None."""
    return rate_per_second(
        sum(s.num_transactions for s in samples),
        sum(s.sample_period_secs for s in samples),
    )
