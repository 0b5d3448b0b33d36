"""Polygon PoS fetcher."""

from __future__ import annotations

from sirscore.networks.base import NetworkProfile
from sirscore.networks.scanner import ScannerNetworkFetcher

POLYGON_PROFILE = NetworkProfile(
    network_id="polygon",
    display_name="Polygon",
    coingecko_id="polygon-ecosystem-token",
    llama_name="Polygon",
    finality="2.3s",
    uptime=98.8,
    tps=350.0,
    gas_price="$0.001",
    market_cap="$11.7B",
    volume_24h="$623M",
    tvl="$1.2B",
    price_change_24h=-1.2,
    gas_precision=6,
    sources=("polygonscan", "coingecko", "defillama"),
)


class PolygonFetcher(ScannerNetworkFetcher):
    profile = POLYGON_PROFILE
    chain_id = 137
    scanner = "polygonscan"
