"""NetworkMonitor: 여러 네트워크의 스냅샷 poller 묶음.

하나의 AsyncUpstreamClient를 공유하여 소스별 rate limit이 네트워크 전체에
걸쳐 지켜지도록 합니다.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from sirscore.config.settings import get_settings
from sirscore.data.client import AsyncUpstreamClient
from sirscore.live.poller import SnapshotPoller
from sirscore.networks.developer import DeveloperActivityFetcher
from sirscore.networks.registry import available_networks, create_fetcher, get_profile

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.models import DeveloperActivitySnapshot, NetworkSnapshot
    from sirscore.monitoring.metrics import UpstreamMetricsCallback


@dataclass(frozen=True)
class PollerStatus:
    """poller 1개의 현재 상태."""

    loading: bool
    error: str | None
    has_snapshot: bool


class NetworkMonitor:
    """네트워크별 poller와 (선택) 개발자 활동 poller를 관리.

    Example:
        >>> async with NetworkMonitor(["ethereum", "solana"]) as monitor:
        ...     monitor.add_listener(lambda net, snap: print(net, snap.tps))
        ...     await asyncio.sleep(60)
    """

    def __init__(
        self,
        networks: Sequence[str] | None = None,
        settings: SirScoreSettings | None = None,
        *,
        interval: float | None = None,
        include_developers: bool = False,
        developer_interval: float | None = None,
        metrics: UpstreamMetricsCallback | None = None,
        client: AsyncUpstreamClient | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize monitor.

        Args:
            networks: 대상 네트워크 ID (None이면 전체)
            settings: 설정 (None이면 get_settings())
            interval: 네트워크 polling 주기 (None이면 price_refresh_interval)
            include_developers: 개발자 활동 poller 포함 여부
            developer_interval: 개발자 활동 주기 (None이면 developer_refresh_interval)
            metrics: 메트릭 콜백
            client: 외부 클라이언트 (None이면 start()에서 생성, stop()에서 닫음)
            sleep: 타이머 sleep (테스트 주입용)

        Raises:
            ConfigurationError: 알 수 없는 네트워크 ID
        """
        self._settings = settings or get_settings()
        self._network_ids = [n.lower() for n in networks] if networks else available_networks()
        for network_id in self._network_ids:
            get_profile(network_id)

        self._interval = interval or self._settings.price_refresh_interval
        self._include_developers = include_developers
        self._developer_interval = developer_interval or self._settings.developer_refresh_interval
        self._metrics = metrics
        self._sleep = sleep

        self._client = client
        self._owns_client = client is None
        self._pollers: dict[str, SnapshotPoller[NetworkSnapshot]] = {}
        self._developer_poller: SnapshotPoller[dict[str, DeveloperActivitySnapshot]] | None = None
        self._listeners: list[Callable[[str, NetworkSnapshot], object]] = []
        self._developer_listeners: list[
            Callable[[dict[str, DeveloperActivitySnapshot]], object]
        ] = []

    @property
    def networks(self) -> list[str]:
        return list(self._network_ids)

    @property
    def running(self) -> bool:
        return any(p.active for p in self._pollers.values())

    def add_listener(self, callback: Callable[[str, NetworkSnapshot], object]) -> None:
        """(network_id, snapshot) callback 등록. start() 전후 모두 가능."""
        self._listeners.append(callback)
        for network_id, poller in self._pollers.items():
            poller.add_listener(self._bind_listener(network_id, callback))

    def add_developer_listener(
        self, callback: Callable[[dict[str, DeveloperActivitySnapshot]], object]
    ) -> None:
        self._developer_listeners.append(callback)
        if self._developer_poller is not None:
            self._developer_poller.add_listener(callback)

    async def start(self) -> None:
        """클라이언트를 열고 모든 poller 시작."""
        if self.running:
            return
        if self._client is None:
            self._client = AsyncUpstreamClient(self._settings)
        if self._owns_client:
            await self._client.__aenter__()

        for network_id in self._network_ids:
            fetcher = create_fetcher(network_id, self._client, self._settings, self._metrics)
            poller: SnapshotPoller[NetworkSnapshot] = SnapshotPoller(
                fetcher.fetch_snapshot,
                self._interval,
                sleep=self._sleep,
                name=network_id,
            )
            for callback in self._listeners:
                poller.add_listener(self._bind_listener(network_id, callback))
            self._pollers[network_id] = poller

        if self._include_developers:
            developers = DeveloperActivityFetcher(
                self._client, self._settings, metrics=self._metrics
            )
            self._developer_poller = SnapshotPoller(
                developers.fetch_all,
                self._developer_interval,
                sleep=self._sleep,
                name="developers",
            )
            for dev_callback in self._developer_listeners:
                self._developer_poller.add_listener(dev_callback)

        for poller in self._all_pollers():
            poller.start()
        logger.info(
            "NetworkMonitor started: {} (interval={}s, developers={})",
            ", ".join(self._network_ids),
            self._interval,
            self._include_developers,
        )

    async def stop(self) -> None:
        """모든 poller 중지 후 클라이언트 닫기.

        진행 중인 fetch는 request_timeout까지 기다린 뒤 취소합니다.
        """
        for poller in self._all_pollers():
            poller.stop()
        cancelled = await asyncio.gather(
            *(p.wait_idle(self._settings.request_timeout) for p in self._all_pollers())
        )
        if sum(cancelled):
            logger.warning("Cancelled {} fetches still running at stop", sum(cancelled))

        if self._owns_client and self._client is not None:
            await self._client.__aexit__(None, None, None)
            self._client = None
        logger.info("NetworkMonitor stopped")

    async def __aenter__(self) -> NetworkMonitor:
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.stop()

    def snapshots(self) -> dict[str, NetworkSnapshot]:
        """네트워크별 최신 스냅샷 (아직 없는 네트워크는 제외)."""
        return {
            network_id: poller.latest
            for network_id, poller in self._pollers.items()
            if poller.latest is not None
        }

    def developer_snapshots(self) -> dict[str, DeveloperActivitySnapshot]:
        if self._developer_poller is None or self._developer_poller.latest is None:
            return {}
        return dict(self._developer_poller.latest)

    def status(self) -> dict[str, PollerStatus]:
        """poller별 loading / error 상태."""
        return {
            poller.name: PollerStatus(
                loading=poller.loading,
                error=poller.error,
                has_snapshot=poller.latest is not None,
            )
            for poller in self._all_pollers()
        }

    def _all_pollers(self) -> list[SnapshotPoller[object]]:
        pollers: list[SnapshotPoller[object]] = [*self._pollers.values()]  # type: ignore[list-item]
        if self._developer_poller is not None:
            pollers.append(self._developer_poller)  # type: ignore[arg-type]
        return pollers

    @staticmethod
    def _bind_listener(
        network_id: str, callback: Callable[[str, NetworkSnapshot], object]
    ) -> Callable[[NetworkSnapshot], object]:
        return lambda snapshot: callback(network_id, snapshot)
