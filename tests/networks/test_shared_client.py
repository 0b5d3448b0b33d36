"""Tests for several fetchers polling through one rate-limited client."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from conftest import FakeUpstream, hang
from sirscore.config.settings import SirScoreSettings
from sirscore.data.models import DataQuality
from sirscore.networks.registry import create_fetcher

NETWORKS = ("ethereum", "polygon", "solana", "sei", "sui")


def _market(url: str, params: dict[str, Any]) -> dict[str, Any]:
    return {
        params["ids"]: {
            "usd": 2.0,
            "usd_market_cap": 1_000_000_000,
            "usd_24h_vol": 50_000_000,
            "usd_24h_change": 0.5,
        }
    }


@pytest.fixture
def tight_settings() -> SirScoreSettings:
    return SirScoreSettings(
        _env_file=None,  # type: ignore[call-arg]
        etherscan_api_key="",
        polygonscan_api_key="",
        bscscan_api_key="",
        github_token="",
        request_timeout=0.15,
    )


class TestSharedRateLimitedClient:
    @pytest.mark.asyncio()
    async def test_queued_market_calls_stay_live(self, tight_settings) -> None:
        # 600 rpm: market calls leave the queue 0.1 s apart, the fifth after 0.4 s
        upstream = FakeUpstream(requests_per_minute=600, rate_limited=True)
        upstream.on_get("simple/price", _market)
        fetchers = [create_fetcher(n, upstream, tight_settings) for n in NETWORKS]

        snaps = await asyncio.gather(*(f.fetch_snapshot() for f in fetchers))

        assert {s.network: s.data_quality["market_cap"] for s in snaps} == dict.fromkeys(
            NETWORKS, DataQuality.LIVE
        )
        assert all(s.market_cap == "$1.0B" for s in snaps)
        assert upstream.called("simple/price") == len(NETWORKS)

    @pytest.mark.asyncio()
    async def test_slow_upstream_still_times_out(self, tight_settings) -> None:
        upstream = FakeUpstream(requests_per_minute=600, rate_limited=True)
        upstream.on_get("simple/price", hang())
        fetchers = [create_fetcher(n, upstream, tight_settings) for n in ("ethereum", "solana")]

        snaps = await asyncio.gather(*(f.fetch_snapshot() for f in fetchers))

        for snap in snaps:
            assert snap.data_quality["market_cap"] is DataQuality.ESTIMATED
