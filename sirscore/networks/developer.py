"""Developer activity per network ecosystem.

Static baseline figures per network; the repository count is refreshed
from GitHub repository search (sum of ``total_count`` over three language
queries). Active developers, monthly commits and the ecosystem tier have no
live source and are always ``estimated``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sirscore.config.settings import get_settings
from sirscore.core.exceptions import ConfigurationError
from sirscore.data.fanout import settle_all
from sirscore.data.models import DEVELOPER_METRIC_FIELDS, DataQuality, DeveloperActivitySnapshot
from sirscore.data.sources.github import GITHUB_SOURCE, search_repository_count
from sirscore.logging.context import LoggingContext, generate_poll_id, get_network_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.monitoring.metrics import UpstreamMetricsCallback


@dataclass(frozen=True)
class DeveloperBaseline:
    """정적 개발자 활동 기준값과 GitHub 검색 쿼리."""

    active_developers: int
    repositories: int
    monthly_commits: int
    ecosystem: str
    queries: tuple[str, ...]


def _queries(network: str, *languages: str) -> tuple[str, ...]:
    return tuple(f"{network} language:{lang}" for lang in languages)


DEVELOPER_BASELINES: dict[str, DeveloperBaseline] = {
    "ethereum": DeveloperBaseline(
        8500, 8386, 45000, "Dominant", _queries("ethereum", "solidity", "javascript", "typescript")
    ),
    "solana": DeveloperBaseline(
        3200, 8045, 28000, "Mature", _queries("solana", "rust", "javascript", "typescript")
    ),
    "base": DeveloperBaseline(
        1200, 4000, 15000, "Growing", _queries("base", "solidity", "javascript", "typescript")
    ),
    "sei": DeveloperBaseline(
        450, 850, 8000, "Emerging", _queries("sei", "rust", "javascript", "typescript")
    ),
    "sui": DeveloperBaseline(
        680, 1200, 12000, "Emerging", _queries("sui", "rust", "javascript", "typescript")
    ),
    "polygon": DeveloperBaseline(
        2100, 3200, 18000, "Mature", _queries("polygon", "solidity", "javascript", "typescript")
    ),
    "arbitrum": DeveloperBaseline(
        1800, 2800, 16000, "Mature", _queries("arbitrum", "solidity", "javascript", "typescript")
    ),
    "optimism": DeveloperBaseline(
        1600, 2400, 14000, "Mature", _queries("optimism", "solidity", "javascript", "typescript")
    ),
    "avalanche": DeveloperBaseline(
        1200, 1800, 10000, "Mature", _queries("avalanche", "javascript", "typescript", "go")
    ),
    "bsc": DeveloperBaseline(
        2800, 4200, 22000, "Mature", _queries("bsc", "solidity", "javascript", "typescript")
    ),
}


class DeveloperActivityFetcher:
    """GitHub 검색 기반 개발자 활동 fetcher.

    Example:
        >>> async with AsyncUpstreamClient() as client:
        ...     fetcher = DeveloperActivityFetcher(client)
        ...     snapshot = await fetcher.fetch_snapshot("solana")
        >>> snapshot.data_quality["repositories"]
        <DataQuality.LIVE: 'live'>
    """

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._metrics = metrics
        self._now = now or (lambda: datetime.now(UTC))

    @staticmethod
    def networks() -> list[str]:
        return list(DEVELOPER_BASELINES)

    async def fetch_snapshot(self, network_id: str) -> DeveloperActivitySnapshot:
        """네트워크의 개발자 활동 스냅샷.

        Raises:
            ConfigurationError: 기준값이 없는 네트워크
        """
        baseline = DEVELOPER_BASELINES.get(network_id)
        if baseline is None:
            raise ConfigurationError(
                f"No developer data available for {network_id}",
                context={"available": ", ".join(DEVELOPER_BASELINES)},
            )

        with LoggingContext(network=network_id, poll_id=generate_poll_id()):
            return await self._fetch_snapshot(network_id, baseline)

    async def _fetch_snapshot(
        self, network_id: str, baseline: DeveloperBaseline
    ) -> DeveloperActivitySnapshot:
        log = get_network_logger(network=network_id, source=GITHUB_SOURCE)
        try:
            token = self._settings.github_token.get_secret_value()
            outcomes = await settle_all(
                {
                    query: search_repository_count(self._client, query, token=token)
                    for query in baseline.queries
                },
                timeout=self._settings.request_timeout,
            )
        except Exception as e:
            log.exception("Developer activity fetch failed, serving baseline")
            return self._snapshot(network_id, baseline, repositories=None, error=str(e))

        succeeded = 0
        total = 0
        for query, outcome in outcomes.items():
            if self._metrics is not None:
                self._metrics.on_call(network_id, GITHUB_SOURCE, outcome.elapsed, outcome.status)
            if outcome.ok:
                succeeded += 1
                total += outcome.value
            else:
                log.warning(
                    "GitHub search '{}' failed ({}): {}", query, outcome.status, outcome.error
                )

        # A zero sum carries no signal; keep the baseline
        repositories = total if succeeded and total > 0 else None
        log.debug("GitHub search: {}/{} queries, {} repositories", succeeded, len(outcomes), total)
        return self._snapshot(network_id, baseline, repositories=repositories)

    async def fetch_all(self) -> dict[str, DeveloperActivitySnapshot]:
        """모든 네트워크의 스냅샷.

        GitHub 검색 quota를 한 네트워크씩 소비하도록 순차 실행합니다.
        """
        snapshots: dict[str, DeveloperActivitySnapshot] = {}
        for network_id in DEVELOPER_BASELINES:
            snapshots[network_id] = await self.fetch_snapshot(network_id)
        return snapshots

    def _snapshot(
        self,
        network_id: str,
        baseline: DeveloperBaseline,
        *,
        repositories: int | None,
        error: str | None = None,
    ) -> DeveloperActivitySnapshot:
        quality = dict.fromkeys(DEVELOPER_METRIC_FIELDS, DataQuality.ESTIMATED)
        if repositories is not None:
            quality["repositories"] = DataQuality.LIVE
        return DeveloperActivitySnapshot(
            network=network_id,
            active_developers=baseline.active_developers,
            repositories=repositories if repositories is not None else baseline.repositories,
            monthly_commits=baseline.monthly_commits,
            ecosystem=baseline.ecosystem,
            last_updated=self._now(),
            data_quality=quality,
            error=error,
        )
