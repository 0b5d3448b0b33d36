"""Market data (CoinGecko) and TVL (DeFiLlama) sources.

Rules:
    - One CoinGecko /simple/price call yields price, market cap, 24h volume
      and 24h change for a coin id.
    - TVL is matched by display name: DeFiLlama /v2/chains first, then the
      /protocols list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from sirscore.core.exceptions import DataValidationError
from sirscore.data.models import CoinMarketData, LlamaTvlEntry, parse_payload

if TYPE_CHECKING:
    from sirscore.data.client import AsyncUpstreamClient

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
DEFILLAMA_API_URL = "https://api.llama.fi"

COINGECKO_SOURCE = "coingecko"
DEFILLAMA_SOURCE = "defillama"


async def fetch_coin_market(client: AsyncUpstreamClient, coin_id: str) -> CoinMarketData:
    """CoinGecko simple price with 24h change, market cap and 24h volume.

    API: GET /simple/price?ids={coin_id}&vs_currencies=usd&include_...

    Raises:
        DataValidationError: Coin id missing from the response.
        SchemaValidationError: Unexpected payload shape.
    """
    url = f"{COINGECKO_BASE_URL}/simple/price"
    params = {
        "ids": coin_id,
        "vs_currencies": "usd",
        "include_24hr_change": "true",
        "include_market_cap": "true",
        "include_24hr_vol": "true",
    }
    data = await client.get_json(url, source=COINGECKO_SOURCE, params=params)

    if not isinstance(data, dict) or coin_id not in data:
        raise DataValidationError(
            f"CoinGecko response has no entry for {coin_id}",
            context={"coin_id": coin_id},
        )
    return parse_payload(CoinMarketData, data[coin_id], source=COINGECKO_SOURCE)


async def fetch_chain_tvl(client: AsyncUpstreamClient, name: str) -> float | None:
    """TVL in USD for a chain, matched by display name (case-insensitive).

    API: GET /v2/chains, then GET /protocols when the chain is not listed.

    Returns:
        TVL in USD, or None when no entry carries a TVL for ``name``.
    """
    tvl = await _match_tvl(client, f"{DEFILLAMA_API_URL}/v2/chains", name)
    if tvl is not None:
        return tvl

    logger.debug("{} not in DeFiLlama chain list, trying protocol list", name)
    return await _match_tvl(client, f"{DEFILLAMA_API_URL}/protocols", name)


async def _match_tvl(client: AsyncUpstreamClient, url: str, name: str) -> float | None:
    data = await client.get_json(url, source=DEFILLAMA_SOURCE)
    if not isinstance(data, list):
        raise DataValidationError(
            "DeFiLlama list endpoint did not return a list",
            context={"url": url},
        )

    wanted = name.casefold()
    for raw in data:
        if not isinstance(raw, dict) or str(raw.get("name", "")).casefold() != wanted:
            continue
        entry = parse_payload(LlamaTvlEntry, raw, source=DEFILLAMA_SOURCE)
        return entry.tvl
    return None
