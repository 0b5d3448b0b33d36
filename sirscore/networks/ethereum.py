"""Ethereum mainnet fetcher (Etherscan + CoinGecko + DeFiLlama)."""

from __future__ import annotations

from sirscore.networks.base import NetworkProfile
from sirscore.networks.scanner import ScannerNetworkFetcher

ETHEREUM_PROFILE = NetworkProfile(
    network_id="ethereum",
    display_name="Ethereum",
    coingecko_id="ethereum",
    llama_name="Ethereum",
    finality="12s",
    uptime=99.95,
    tps=15.0,
    gas_price="$2.50",
    market_cap="$445.8B",
    volume_24h="$12.4B",
    tvl="$45.2B",
    price_change_24h=0.1,
    gas_precision=2,
    sources=("etherscan", "coingecko", "defillama"),
)


class EthereumFetcher(ScannerNetworkFetcher):
    """Ethereum: Etherscan proxy blocks for TPS, gas oracle ProposeGasPrice × 21000 × ETH."""

    profile = ETHEREUM_PROFILE
    chain_id = 1
    scanner = "etherscan"
