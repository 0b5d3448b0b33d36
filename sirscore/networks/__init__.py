"""Per-network live snapshot fetchers."""

from sirscore.networks.base import NetworkFetcher, NetworkProfile
from sirscore.networks.developer import DEVELOPER_BASELINES, DeveloperActivityFetcher
from sirscore.networks.registry import (
    NETWORK_FETCHERS,
    available_networks,
    create_fetcher,
    get_profile,
)

__all__ = [
    "DEVELOPER_BASELINES",
    "NETWORK_FETCHERS",
    "DeveloperActivityFetcher",
    "NetworkFetcher",
    "NetworkProfile",
    "available_networks",
    "create_fetcher",
    "get_profile",
]
