"""Tests for sirscore/networks/developer.py: GitHub repository counts over baselines."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import FIXED_NOW, FakeUpstream
from sirscore.config.settings import SirScoreSettings
from sirscore.core.exceptions import ConfigurationError, RateLimitError
from sirscore.data.models import DEVELOPER_METRIC_FIELDS, DataQuality
from sirscore.data.sources.github import search_repository_count
from sirscore.networks.developer import DEVELOPER_BASELINES, DeveloperActivityFetcher


def _github(
    counts: dict[str, object], *, requests_per_minute: int = 60, rate_limited: bool = False
) -> FakeUpstream:
    def search(url: str, params: dict[str, object]) -> dict[str, object]:
        result = counts.get(str(params["q"]), 0)
        if isinstance(result, Exception):
            raise result
        return {"total_count": result, "incomplete_results": False, "items": []}

    upstream = FakeUpstream(requests_per_minute, rate_limited=rate_limited)
    return upstream.on_get("search/repositories", search)


ETHEREUM_COUNTS = {
    "ethereum language:solidity": 5000,
    "ethereum language:javascript": 3000,
    "ethereum language:typescript": 2000,
}


class TestBaselines:
    def test_ten_networks(self) -> None:
        assert len(DEVELOPER_BASELINES) == 10
        assert DeveloperActivityFetcher.networks()[:2] == ["ethereum", "solana"]

    def test_three_queries_each(self) -> None:
        for network_id, baseline in DEVELOPER_BASELINES.items():
            assert len(baseline.queries) == 3
            assert all(q.startswith(f"{network_id} language:") for q in baseline.queries)

    def test_ethereum_figures(self) -> None:
        baseline = DEVELOPER_BASELINES["ethereum"]
        assert baseline.active_developers == 8500
        assert baseline.repositories == 8386
        assert baseline.ecosystem == "Dominant"


class TestDeveloperActivityFetcher:
    @pytest.mark.asyncio()
    async def test_repositories_sum_is_live(self, settings, fixed_now) -> None:
        fetcher = DeveloperActivityFetcher(_github(ETHEREUM_COUNTS), settings, now=fixed_now)
        snap = await fetcher.fetch_snapshot("ethereum")

        assert snap.repositories == 10_000
        assert snap.data_quality["repositories"] is DataQuality.LIVE
        assert snap.active_developers == 8500
        assert snap.monthly_commits == 45000
        assert snap.ecosystem == "Dominant"
        assert snap.last_updated == FIXED_NOW
        for field in ("active_developers", "monthly_commits", "ecosystem"):
            assert snap.data_quality[field] is DataQuality.ESTIMATED

    @pytest.mark.asyncio()
    async def test_partial_failure_sums_successes(self, settings) -> None:
        counts = dict(ETHEREUM_COUNTS)
        counts["ethereum language:javascript"] = RateLimitError("Rate limited by github (429)")
        snap = await DeveloperActivityFetcher(_github(counts), settings).fetch_snapshot("ethereum")

        assert snap.repositories == 7000
        assert snap.data_quality["repositories"] is DataQuality.LIVE

    @pytest.mark.asyncio()
    async def test_all_queries_fail_uses_baseline(self, settings) -> None:
        snap = await DeveloperActivityFetcher(FakeUpstream(), settings).fetch_snapshot("solana")

        assert snap.repositories == DEVELOPER_BASELINES["solana"].repositories
        assert snap.data_quality["repositories"] is DataQuality.ESTIMATED
        assert not snap.is_live
        assert snap.error is None

    @pytest.mark.asyncio()
    async def test_zero_total_uses_baseline(self, settings) -> None:
        snap = await DeveloperActivityFetcher(_github({}), settings).fetch_snapshot("sei")

        assert snap.repositories == DEVELOPER_BASELINES["sei"].repositories
        assert snap.data_quality["repositories"] is DataQuality.ESTIMATED

    @pytest.mark.asyncio()
    async def test_unknown_network(self, settings) -> None:
        fetcher = DeveloperActivityFetcher(FakeUpstream(), settings)
        with pytest.raises(ConfigurationError, match="dogecoin"):
            await fetcher.fetch_snapshot("dogecoin")

    @pytest.mark.asyncio()
    async def test_unexpected_failure_serves_baseline_with_error(self, settings) -> None:
        fetcher = DeveloperActivityFetcher(FakeUpstream(), settings)
        with patch(
            "sirscore.networks.developer.settle_all",
            new_callable=AsyncMock,
            side_effect=RuntimeError("boom"),
        ):
            snap = await fetcher.fetch_snapshot("sui")

        assert snap.error == "boom"
        assert snap.repositories == DEVELOPER_BASELINES["sui"].repositories
        assert set(snap.data_quality) == set(DEVELOPER_METRIC_FIELDS)

    @pytest.mark.asyncio()
    async def test_metrics_per_query(self, settings) -> None:
        metrics = MagicMock()
        fetcher = DeveloperActivityFetcher(_github(ETHEREUM_COUNTS), settings, metrics=metrics)
        await fetcher.fetch_snapshot("ethereum")

        assert metrics.on_call.call_count == 3
        network, source, _, status = metrics.on_call.call_args.args
        assert (network, source, status) == ("ethereum", "github", "success")

    @pytest.mark.asyncio()
    async def test_fetch_all_covers_every_baseline(self, settings) -> None:
        upstream = _github({"solana language:rust": 9000})
        snapshots = await DeveloperActivityFetcher(upstream, settings).fetch_all()

        assert list(snapshots) == list(DEVELOPER_BASELINES)
        assert snapshots["solana"].repositories == 9000
        assert snapshots["solana"].data_quality["repositories"] is DataQuality.LIVE
        assert snapshots["arbitrum"].data_quality["repositories"] is DataQuality.ESTIMATED
        assert upstream.called("search/repositories") == 30

    @pytest.mark.asyncio()
    async def test_queued_searches_are_not_timed_out(self) -> None:
        settings = SirScoreSettings(
            _env_file=None,  # type: ignore[call-arg]
            github_token="",
            request_timeout=0.15,
        )
        # 600 rpm: the third search leaves the queue after 0.2 s
        upstream = _github(ETHEREUM_COUNTS, requests_per_minute=600, rate_limited=True)
        snap = await DeveloperActivityFetcher(upstream, settings).fetch_snapshot("ethereum")

        assert snap.repositories == 10_000
        assert snap.data_quality["repositories"] is DataQuality.LIVE


class TestGithubToken:
    @pytest.mark.asyncio()
    async def test_bearer_header_when_token_set(self) -> None:
        client = MagicMock()
        client.get_json = AsyncMock(return_value={"total_count": 12})
        await search_repository_count(client, "sui language:rust", token="ghp_test")

        headers = client.get_json.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer ghp_test"

    @pytest.mark.asyncio()
    async def test_no_header_without_token(self) -> None:
        client = MagicMock()
        client.get_json = AsyncMock(return_value={"total_count": 12})
        await search_repository_count(client, "sui language:rust")

        assert "Authorization" not in client.get_json.call_args.kwargs["headers"]

    @pytest.mark.asyncio()
    async def test_fetcher_passes_configured_token(self) -> None:
        settings = SirScoreSettings(
            _env_file=None,  # type: ignore[call-arg]
            github_token="ghp_configured",
        )
        with patch(
            "sirscore.networks.developer.search_repository_count",
            new_callable=AsyncMock,
            return_value=10,
        ) as mock_search:
            snap = await DeveloperActivityFetcher(FakeUpstream(), settings).fetch_snapshot("sui")

        assert snap.repositories == 30
        assert all(c.kwargs["token"] == "ghp_configured" for c in mock_search.call_args_list)
