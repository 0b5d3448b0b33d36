"""Upstream API adapters (explorers, RPC nodes, market data, GitHub)."""

from sirscore.data.sources.evm import EvmRpc, ScannerApi
from sirscore.data.sources.github import search_repository_count
from sirscore.data.sources.market import fetch_chain_tvl, fetch_coin_market
from sirscore.data.sources.solana import fetch_performance_samples, samples_tps
from sirscore.data.sources.sui import SuiRpc, checkpoint_tps, staked_validator_uptime
from sirscore.data.sources.tendermint import TendermintRest, validator_uptime

__all__ = [
    "EvmRpc",
    "ScannerApi",
    "SuiRpc",
    "TendermintRest",
    "checkpoint_tps",
    "fetch_chain_tvl",
    "fetch_coin_market",
    "fetch_performance_samples",
    "samples_tps",
    "search_repository_count",
    "staked_validator_uptime",
    "validator_uptime",
]
