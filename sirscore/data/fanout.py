"""Settle-all fan-out for independent upstream calls.

Every branch is raced against its own timeout and its outcome (value,
empty, failure or timeout) is captured into a labeled slot. One branch
failing never cancels or changes the result of a sibling; the join returns
only after every branch has settled.

The timeout covers upstream work only: while a branch is queued for a
rate-limit slot (see ``timer_paused``) its timer stands still, so fetchers
sharing one client do not time out on each other's queue.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from sirscore.core.exceptions import UpstreamTimeoutError, add_context_note

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterator, Mapping

T = TypeVar("T")

OutcomeStatus = Literal["success", "empty", "failure", "timeout"]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """단일 branch의 정산 결과.

    Attributes:
        label: branch 이름 (예: "tps", "market")
        value: 성공 시 반환값 (None이면 "empty")
        error: 실패 시 예외
        elapsed: 소요 시간 (초)
    """

    label: str
    value: T | None = None
    error: Exception | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """값이 있는 성공 여부."""
        return self.error is None and self.value is not None

    @property
    def status(self) -> OutcomeStatus:
        if isinstance(self.error, UpstreamTimeoutError):
            return "timeout"
        if self.error is not None:
            return "failure"
        if self.value is None:
            return "empty"
        return "success"

    def value_or(self, default: T) -> T:
        """성공 값 또는 default."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        return default


class QueryTimer:
    """Per-query deadline that stops running while the query waits for a rate-limit slot.

    A query may fan out internally (e.g. concurrent block fetches); the timer
    stays stopped while at least one of its branches is queued. Pauses
    propagate to an enclosing timer.
    """

    def __init__(self, timeout: asyncio.Timeout, parent: QueryTimer | None = None) -> None:
        self._timeout = timeout
        self._parent = parent
        self._queued = 0
        self._remaining: float | None = None
        self._closed = False

    def pause(self) -> None:
        if self._parent is not None:
            self._parent.pause()
        self._queued += 1
        if self._queued == 1 and self._adjustable():
            when = self._timeout.when()
            if when is not None:
                self._remaining = when - asyncio.get_running_loop().time()
                self._timeout.reschedule(None)

    def resume(self) -> None:
        self._queued -= 1
        if self._queued == 0 and self._remaining is not None:
            if self._adjustable():
                loop_time = asyncio.get_running_loop().time()
                self._timeout.reschedule(loop_time + self._remaining)
            self._remaining = None
        if self._parent is not None:
            self._parent.resume()

    def close(self) -> None:
        self._closed = True

    def _adjustable(self) -> bool:
        return not self._closed and not self._timeout.expired()


_active_timer: ContextVar[QueryTimer | None] = ContextVar("sirscore_query_timer", default=None)


@contextlib.contextmanager
def timer_paused() -> Iterator[None]:
    """Stop the current query's timer for the duration of the block.

    Used around rate-limit waits. Outside a timed query this is a no-op.
    """
    timer = _active_timer.get()
    if timer is None:
        yield
        return
    timer.pause()
    try:
        yield
    finally:
        timer.resume()


async def with_timeout(aw: Awaitable[T], timeout: float, *, label: str = "call") -> T:
    """Race an awaitable against a timer.

    The call is cancelled when the timer wins, so a late response is never
    observed. Expiry is reported as ``UpstreamTimeoutError`` and is treated
    exactly like any other upstream failure. Time spent queued for a
    rate-limit slot is not counted.

    Args:
        aw: Upstream call.
        timeout: Timeout in seconds.
        label: Name used in the error message.

    Raises:
        UpstreamTimeoutError: Timer fired first.
    """
    try:
        async with asyncio.timeout(timeout) as deadline:
            timer = QueryTimer(deadline, _active_timer.get())
            token = _active_timer.set(timer)
            try:
                return await aw
            finally:
                timer.close()
                _active_timer.reset(token)
    except TimeoutError as e:
        raise UpstreamTimeoutError(
            f"{label} timed out after {timeout:.1f}s",
            context={"label": label, "timeout": timeout},
        ) from e


async def _settle(label: str, aw: Awaitable[Any], timeout: float) -> Outcome[Any]:
    start = time.monotonic()
    try:
        value = await with_timeout(aw, timeout, label=label)
    except Exception as e:  # noqa: BLE001 - captured into the outcome slot
        add_context_note(e, f"while running the {label} query")
        return Outcome(label=label, error=e, elapsed=time.monotonic() - start)
    return Outcome(label=label, value=value, elapsed=time.monotonic() - start)


async def settle_all(
    calls: Mapping[str, Awaitable[Any]],
    *,
    timeout: float,
) -> dict[str, Outcome[Any]]:
    """Run labeled upstream calls concurrently and wait for all of them.

    Args:
        calls: {label: awaitable}
        timeout: Per-branch timeout in seconds.

    Returns:
        {label: Outcome} in the same order as ``calls``.

    Example:
        >>> outcomes = await settle_all(
        ...     {"tps": fetch_tps(), "market": fetch_market()}, timeout=10.0
        ... )
        >>> outcomes["tps"].value_or(15.0)
    """
    labels = list(calls)
    results = await asyncio.gather(*(_settle(label, calls[label], timeout) for label in labels))
    return dict(zip(labels, results, strict=True))
