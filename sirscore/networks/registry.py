"""Network id → fetcher class registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sirscore.core.exceptions import ConfigurationError
from sirscore.networks.base_chain import BaseChainFetcher
from sirscore.networks.bsc import BscFetcher
from sirscore.networks.ethereum import EthereumFetcher
from sirscore.networks.polygon import PolygonFetcher
from sirscore.networks.sei import SeiFetcher
from sirscore.networks.solana import SolanaFetcher
from sirscore.networks.sui import SuiFetcher

if TYPE_CHECKING:
    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback
    from sirscore.networks.base import NetworkFetcher, NetworkProfile

NETWORK_FETCHERS: dict[str, type[NetworkFetcher]] = {
    fetcher.profile.network_id: fetcher
    for fetcher in (
        EthereumFetcher,
        SolanaFetcher,
        PolygonFetcher,
        BscFetcher,
        BaseChainFetcher,
        SeiFetcher,
        SuiFetcher,
    )
}


def available_networks() -> list[str]:
    """지원 네트워크 ID 목록 (등록 순서)."""
    return list(NETWORK_FETCHERS)


def get_profile(network_id: str) -> NetworkProfile:
    return _fetcher_class(network_id).profile


def create_fetcher(
    network_id: str,
    client: AsyncUpstreamClient,
    settings: SirScoreSettings | None = None,
    metrics: UpstreamMetricsCallback | None = None,
) -> NetworkFetcher:
    """네트워크 ID로 fetcher 생성.

    Raises:
        ConfigurationError: 등록되지 않은 네트워크
    """
    return _fetcher_class(network_id)(client, settings, metrics=metrics)


def _fetcher_class(network_id: str) -> type[NetworkFetcher]:
    fetcher_cls = NETWORK_FETCHERS.get(network_id.lower())
    if fetcher_cls is None:
        raise ConfigurationError(
            f"Unknown network: {network_id}",
            context={"available": ", ".join(NETWORK_FETCHERS)},
        )
    return fetcher_cls
