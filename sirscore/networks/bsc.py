"""BNB Smart Chain fetcher."""

from __future__ import annotations

from sirscore.networks.base import NetworkProfile
from sirscore.networks.scanner import ScannerNetworkFetcher

BSC_PROFILE = NetworkProfile(
    network_id="bsc",
    display_name="BNB Smart Chain",
    coingecko_id="binancecoin",
    llama_name="BSC",
    finality="3s",
    uptime=99.2,
    tps=300.0,
    gas_price="$0.15",
    market_cap="$45.2B",
    volume_24h="$1.8B",
    tvl="$3.2B",
    price_change_24h=0.2,
    gas_precision=4,
    sources=("bscscan", "coingecko", "defillama"),
)


class BscFetcher(ScannerNetworkFetcher):
    profile = BSC_PROFILE
    chain_id = 56
    scanner = "bscscan"
