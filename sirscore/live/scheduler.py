"""RepeatingTask: 즉시 1회 실행 후 주기적으로 callback을 호출하는 타이머.

Rules Applied:
    - asyncio task lifecycle (create_task / cancel)
    - sleep 주입 가능 (테스트에서 wall-clock 대기 없음)
    - tick은 callback의 작업 완료를 기다리지 않음 (callback은 동기 호출)
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class RepeatingTask:
    """취소 가능한 반복 타이머.

    Args:
        interval: tick 간격 (초)
        sleep: 대기 코루틴 (기본 asyncio.sleep)
        name: asyncio task 이름 (로그용)

    Example:
        >>> timer = RepeatingTask(30.0, name="ethereum")
        >>> timer.start(lambda: print("tick"))
        >>> timer.cancel()
    """

    def __init__(
        self,
        interval: float,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        name: str = "repeating-task",
    ) -> None:
        if interval <= 0:
            msg = f"interval must be positive, got {interval}"
            raise ValueError(msg)
        self._interval = interval
        self._sleep = sleep
        self._name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], object]) -> None:
        """callback을 즉시 1회 호출하고 이후 interval마다 호출.

        Raises:
            RuntimeError: 이미 실행 중
        """
        if self.running:
            msg = f"{self._name} is already running"
            raise RuntimeError(msg)
        self._task = asyncio.create_task(self._run(callback), name=self._name)

    def cancel(self) -> None:
        """이후 tick 중단. 이미 호출된 callback의 작업에는 영향 없음."""
        if self._task is not None:
            self._task.cancel()

    async def wait_cancelled(self) -> None:
        """cancel() 후 task 종료 대기."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self, callback: Callable[[], object]) -> None:
        while True:
            try:
                callback()
            except Exception:
                logger.exception("{} tick callback failed", self._name)
            await self._sleep(self._interval)
