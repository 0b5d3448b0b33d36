"""SnapshotPoller: 주기적 fetch 구독.

start() 시 즉시 1회 fetch 후 interval마다 fetch합니다. 각 fetch는 독립된
task이며 큐잉/중복 제거를 하지 않으므로, 느린 fetch와 다음 tick의 fetch가
겹칠 수 있고 마지막으로 완료된 결과가 latest가 됩니다.

stop() 이후에는 진행 중인 fetch를 중단하지 않지만 그 결과는 버려지며,
어떤 상태 변경이나 listener 호출도 일어나지 않습니다.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Generic, TypeVar

from loguru import logger

from sirscore.live.scheduler import RepeatingTask

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

SnapshotT = TypeVar("SnapshotT")

# 기본 polling 주기 (초)
NETWORK_REFRESH_INTERVAL = 30.0
DEVELOPER_REFRESH_INTERVAL = 300.0


class SnapshotPoller(Generic[SnapshotT]):
    """fetch 코루틴을 주기적으로 실행하고 최신 결과를 보관.

    Attributes:
        latest: 마지막으로 완료된 fetch 결과 (첫 완료 전에는 None)
        loading: 진행 중인 fetch가 하나 이상 있으면 True
        error: fetch 밖으로 전파된 마지막 예외 메시지 (다음 성공 시 초기화)
        active: start() 이후 stop() 전까지 True

    Example:
        >>> poller = SnapshotPoller(fetcher.fetch_snapshot, 30.0, name="ethereum")
        >>> poller.add_listener(lambda snap: print(snap.tps))
        >>> poller.start()
        >>> ...
        >>> poller.stop()
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[SnapshotT]],
        interval: float = NETWORK_REFRESH_INTERVAL,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        name: str = "poller",
    ) -> None:
        self._fetch = fetch
        self._interval = interval
        self._sleep = sleep
        self._name = name

        self._latest: SnapshotT | None = None
        self._error: str | None = None
        self._pending = 0
        self._active = False
        # Incremented on every start/stop; fetches from an older generation are discarded
        self._generation = 0
        self._timer: RepeatingTask | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[Callable[[SnapshotT], object]] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def latest(self) -> SnapshotT | None:
        return self._latest

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def active(self) -> bool:
        return self._active

    def add_listener(self, callback: Callable[[SnapshotT], object]) -> Callable[[], None]:
        """새 결과마다 호출될 callback 등록.

        Returns:
            등록 해제 함수
        """
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """즉시 fetch 후 interval마다 fetch. 이미 active면 무시."""
        if self._active:
            return
        self._active = True
        self._generation += 1
        self._timer = RepeatingTask(self._interval, sleep=self._sleep, name=f"{self._name}-timer")
        self._timer.start(self._spawn_fetch)
        logger.debug("{} started (interval={}s)", self._name, self._interval)

    def stop(self) -> None:
        """타이머 취소. 진행 중인 fetch의 결과는 버려짐."""
        if not self._active:
            return
        self._active = False
        self._generation += 1
        self._pending = 0
        if self._timer is not None:
            self._timer.cancel()
        logger.debug("{} stopped ({} fetches in flight)", self._name, len(self._tasks))

    async def wait_idle(self, timeout: float | None = None) -> int:
        """stop() 후 타이머와 진행 중인 fetch task 종료 대기.

        Args:
            timeout: fetch 대기 상한 (초). 넘으면 남은 fetch를 취소 (None이면 무제한)

        Returns:
            취소된 fetch 수
        """
        if self._timer is not None:
            await self._timer.wait_cancelled()
        if not self._tasks:
            return 0

        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("{} cancelled {} fetches still in flight", self._name, len(pending))
        return len(pending)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _spawn_fetch(self) -> None:
        generation = self._generation
        self._pending += 1
        task = asyncio.create_task(self._run_fetch(generation), name=f"{self._name}-fetch")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    async def _run_fetch(self, generation: int) -> None:
        try:
            result = await self._fetch()
        except Exception as e:
            if self._is_current(generation):
                self._error = str(e) or type(e).__name__
                logger.warning("{} fetch failed: {}", self._name, self._error)
            return
        finally:
            # Also runs on cancellation; stop() already zeroed the count of older generations
            if self._is_current(generation):
                self._pending -= 1

        if not self._is_current(generation):
            logger.debug("{} discarded a result that resolved after stop", self._name)
            return
        self._latest = result
        self._error = None
        self._notify(result)

    def _notify(self, result: SnapshotT) -> None:
        for callback in list(self._listeners):
            try:
                callback(result)
            except Exception:
                logger.exception("{} listener failed", self._name)
