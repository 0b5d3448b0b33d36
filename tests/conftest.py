"""Shared fixtures for tests.

이 모듈은 테스트에서 공통으로 사용되는 픽스처와 가짜 업스트림을 제공합니다.

Rules Applied:
    - Testing Standards: Pytest fixtures, 네트워크 호출 없음
    - FakeUpstream: AsyncUpstreamClient와 같은 인터페이스 (get_json / rpc_call)
"""

from __future__ import annotations

import asyncio
import inspect
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import pytest

from sirscore.config.settings import SirScoreSettings
from sirscore.core.exceptions import NetworkError
from sirscore.data.client import RateLimiter

if TYPE_CHECKING:
    from collections.abc import Callable

# ---------------------------------------------------------------------------
# 디렉토리 경로 → pytest 마커 자동 매핑
# ---------------------------------------------------------------------------
_DIR_MARKER_MAP: dict[str, str] = {
    "/networks/": "networks",
    "/live/": "live",
    "/cli/": "cli",
    "/data/": "data",
    "/core/": "unit",
    "/config/": "unit",
    "/monitoring/": "unit",
    "/logging/": "unit",
}


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """디렉토리 경로 기반 자동 마커 부여."""
    for item in items:
        fspath = str(item.fspath)
        for dir_pattern, marker_name in _DIR_MARKER_MAP.items():
            if dir_pattern in fspath:
                item.add_marker(getattr(pytest.mark, marker_name))
                break


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Fake upstream
# ---------------------------------------------------------------------------


class FakeUpstream:
    """URL / JSON-RPC method 기반 응답 라우터.

    GET 라우트는 ``url?query`` 문자열에 pattern이 포함되면 매칭됩니다
    (등록 순서대로 첫 매칭). RPC 라우트는 method 이름으로 매칭됩니다.

    rate_limited=True면 실제 AsyncUpstreamClient처럼 소스별 RateLimiter를 거칩니다.

    응답 값:
        - Exception 인스턴스: raise
        - callable: GET은 (url, params), RPC는 (url, params)로 호출.
          반환값이 awaitable이면 await
        - 그 외: 그대로 반환
    """

    def __init__(self, requests_per_minute: int = 60, *, rate_limited: bool = False) -> None:
        self.get_routes: list[tuple[str, Any]] = []
        self.rpc_routes: dict[str, Any] = {}
        self.calls: list[tuple[str, str, Any]] = []
        self._rpm = requests_per_minute
        self._rate_limited = rate_limited
        self._limiters: dict[str, RateLimiter] = {}

    def on_get(self, pattern: str, response: Any) -> FakeUpstream:
        self.get_routes.append((pattern, response))
        return self

    def on_rpc(self, method: str, response: Any) -> FakeUpstream:
        self.rpc_routes[method] = response
        return self

    def limiter_for(self, source: str) -> RateLimiter:
        return self._limiters.setdefault(source, RateLimiter(self._rpm))

    async def get_json(
        self,
        url: str,
        *,
        source: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        if self._rate_limited:
            await self.limiter_for(source).acquire()
        self.calls.append(("GET", url, params))
        key = f"{url}?{urlencode(params)}" if params else url
        for pattern, response in self.get_routes:
            if pattern in key:
                return await _resolve(response, url, params)
        raise NetworkError(f"HTTP 404 from {source}", context={"url": key})

    async def rpc_call(
        self,
        url: str,
        method: str,
        params: list[Any] | None = None,
        *,
        source: str,
    ) -> Any:
        if self._rate_limited:
            await self.limiter_for(source).acquire()
        self.calls.append(("RPC", url, (method, params)))
        if method not in self.rpc_routes:
            raise NetworkError(f"HTTP 404 from {source}", context={"method": method})
        return await _resolve(self.rpc_routes[method], url, params)

    def called(self, needle: str) -> int:
        """needle이 URL 또는 RPC method에 포함된 호출 수."""
        count = 0
        for kind, url, extra in self.calls:
            target = f"{url} {extra[0]}" if kind == "RPC" else f"{url}?{urlencode(extra or {})}"
            if needle in target:
                count += 1
        return count


async def _resolve(response: Any, url: str, params: Any) -> Any:
    if isinstance(response, Exception):
        raise response
    if callable(response):
        result = response(url, params)
        if inspect.isawaitable(result):
            result = await result
        return result
    return response


def hang(seconds: float = 5.0) -> Callable[[str, Any], Any]:
    """응답하지 않는 업스트림 (타임아웃 테스트용)."""

    async def _hang(url: str, params: Any) -> Any:
        await asyncio.sleep(seconds)
        return None

    return _hang


# ---------------------------------------------------------------------------
# Manual clock for pollers
# ---------------------------------------------------------------------------


class ManualClock:
    """수동으로 진행하는 sleep (RepeatingTask / SnapshotPoller 주입용)."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    def tick(self) -> None:
        """대기 중인 모든 sleep 완료."""
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """predicate가 True가 될 때까지 이벤트 루프 양보."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> SirScoreSettings:
    """스캐너 키가 설정된 테스트 설정 (.env 무시)."""
    return SirScoreSettings(
        _env_file=None,  # type: ignore[call-arg]
        etherscan_api_key="test-etherscan-key",
        polygonscan_api_key="",
        bscscan_api_key="",
        github_token="",
        request_timeout=1.0,
        blocks_to_sample=10,
    )


@pytest.fixture
def keyless_settings() -> SirScoreSettings:
    """API 키가 하나도 없는 설정."""
    return SirScoreSettings(
        _env_file=None,  # type: ignore[call-arg]
        etherscan_api_key="",
        polygonscan_api_key="",
        bscscan_api_key="",
        github_token="",
        request_timeout=1.0,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
