"""Rate-limited async HTTP client for chain, explorer and market-data APIs.

Wraps httpx.AsyncClient with per-source rate limiting and maps transport
failures onto the domain exception hierarchy. Each call is a single attempt;
the next poll cycle is the retry.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger

from sirscore.core.exceptions import (
    DataValidationError,
    NetworkError,
    RateLimitError,
    RpcError,
    UpstreamTimeoutError,
)
from sirscore.data.fanout import timer_paused

if TYPE_CHECKING:
    from sirscore.config.settings import SirScoreSettings

DEFAULT_TIMEOUT = 10.0
DEFAULT_RATE_LIMIT = 120
USER_AGENT = "sirscore/0.1 (+live network data)"

# HTTP status codes
HTTP_TOO_MANY_REQUESTS = 429


class RateLimiter:
    """Interval-based rate limiter using asyncio.Lock.

    Ensures minimum interval between requests to a given source.
    """

    def __init__(self, requests_per_minute: int) -> None:
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute.
        """
        self._interval = 60.0 / requests_per_minute
        self._last_request: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def interval(self) -> float:
        """Minimum interval between requests (seconds)."""
        return self._interval

    async def acquire(self) -> None:
        """Wait for rate limit slot.

        The wait does not count toward the timeout of the query that is
        queued (see ``sirscore.data.fanout.timer_paused``).
        """
        with timer_paused():
            async with self._lock:
                now = time.monotonic()
                elapsed = now - self._last_request
                if elapsed < self._interval:
                    wait_time = self._interval - elapsed
                    await asyncio.sleep(wait_time)
                self._last_request = time.monotonic()


class AsyncUpstreamClient:
    """Rate-limited async HTTP client shared by all network fetchers.

    One rate limiter per source label (``"etherscan"``, ``"coingecko"``, ...)
    so that several fetchers hitting the same public API stay within its
    free-tier budget.

    Example:
        >>> async with AsyncUpstreamClient() as client:
        ...     data = await client.get_json(
        ...         "https://api.llama.fi/v2/chains", source="defillama"
        ...     )
    """

    def __init__(
        self,
        settings: SirScoreSettings | None = None,
        *,
        timeout: float | None = None,
        rate_limits: dict[str, int] | None = None,
    ) -> None:
        """Initialize client.

        Args:
            settings: Settings for timeout and per-source rate limits.
            timeout: Transport timeout override in seconds.
            rate_limits: Per-source requests-per-minute override.
        """
        self._settings = settings
        if settings is not None:
            self._timeout = timeout or settings.request_timeout
        else:
            self._timeout = timeout or DEFAULT_TIMEOUT
        self._rate_limits = dict(rate_limits or {})

        self._limiters: dict[str, RateLimiter] = {}
        self._rpc_ids = itertools.count(1)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AsyncUpstreamClient:
        """Enter async context: create httpx client."""
        self._client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context: close httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def limiter_for(self, source: str) -> RateLimiter:
        """Return (creating on first use) the rate limiter of a source."""
        limiter = self._limiters.get(source)
        if limiter is None:
            rpm = self._rate_limits.get(source)
            if rpm is None:
                rpm = (
                    self._settings.rate_limit_for(source)
                    if self._settings is not None
                    else DEFAULT_RATE_LIMIT
                )
            limiter = RateLimiter(rpm)
            self._limiters[source] = limiter
        return limiter

    async def get_json(
        self,
        url: str,
        *,
        source: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send GET request and decode the JSON body.

        Args:
            url: Request URL.
            source: Source label (rate limit bucket, error context).
            params: Query parameters.
            headers: Extra request headers.

        Returns:
            Decoded JSON payload.

        Raises:
            RuntimeError: Client not initialized (use async with).
            RateLimitError: HTTP 429.
            NetworkError: Transport failure or non-2xx status.
            UpstreamTimeoutError: Transport timeout.
            DataValidationError: Body is not valid JSON.
        """
        response = await self._send("GET", url, source=source, params=params, headers=headers)
        return self._decode(response, source=source, url=url)

    async def post_json(
        self,
        url: str,
        payload: Any,
        *,
        source: str,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send POST request with a JSON body and decode the JSON response."""
        response = await self._send("POST", url, source=source, json=payload, headers=headers)
        return self._decode(response, source=source, url=url)

    async def rpc_call(
        self,
        url: str,
        method: str,
        params: list[Any] | None = None,
        *,
        source: str,
    ) -> Any:
        """Send a JSON-RPC 2.0 request and return its ``result``.

        Args:
            url: RPC endpoint URL.
            method: RPC method name (e.g. "eth_blockNumber").
            params: Positional params.
            source: Source label.

        Returns:
            The ``result`` member.

        Raises:
            RpcError: Response carries an ``error`` member.
            DataValidationError: Response has neither ``result`` nor ``error``.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._rpc_ids),
            "method": method,
            "params": params or [],
        }
        body = await self.post_json(url, payload, source=source)

        if not isinstance(body, dict):
            raise DataValidationError(
                f"Malformed JSON-RPC response from {source}",
                context={"method": method, "url": url},
            )
        if body.get("error") is not None:
            error = body["error"]
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise RpcError(
                f"JSON-RPC error from {source}: {message}",
                code=code,
                context={"method": method, "url": url},
            )
        if "result" not in body or body["result"] is None:
            raise DataValidationError(
                f"JSON-RPC response from {source} has no result",
                context={"method": method, "url": url},
            )
        return body["result"]

    async def _send(self, method: str, url: str, *, source: str, **kwargs: Any) -> httpx.Response:
        if self._client is None:
            msg = (
                "Client not initialized. Use 'async with AsyncUpstreamClient(...)' context manager."
            )
            raise RuntimeError(msg)

        await self.limiter_for(source).acquire()
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == HTTP_TOO_MANY_REQUESTS:
                retry_after = _parse_retry_after(e.response.headers.get("Retry-After"))
                raise RateLimitError(
                    f"Rate limited by {source} (429)",
                    retry_after=retry_after,
                    context={"url": url},
                ) from e
            raise NetworkError(
                f"HTTP {status} from {source}",
                context={"url": url, "status": status},
            ) from e
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                f"Transport timeout from {source}",
                context={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                f"Request to {source} failed: {e}",
                context={"url": url},
            ) from e

        logger.trace("{} {} -> {}", method, url, response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response, *, source: str, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DataValidationError(
                f"Invalid JSON from {source}",
                context={"url": url},
            ) from e


def _parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
