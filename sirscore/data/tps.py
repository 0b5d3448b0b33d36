"""Throughput from recent blocks.

Shared shape across chains: take the latest height, walk back a fixed
number of blocks, sum their transaction counts and divide by the wall-clock
span between the oldest and newest block in the window.
"""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING, NamedTuple

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

TPS_DECIMALS = 1


class BlockSample(NamedTuple):
    """블록 1개의 (트랜잭션 수, 타임스탬프 초)."""

    tx_count: int
    timestamp: float


def compute_tps(samples: Sequence[BlockSample]) -> float | None:
    """Σ tx_count / (newest - oldest timestamp).

    Args:
        samples: Sampled blocks, newest first (the order
            ``sample_recent_blocks`` returns).

    Returns:
        TPS rounded to one decimal, or None when fewer than two samples
        or the window spans no time (identical or inverted timestamps).
    """
    if len(samples) < 2:  # noqa: PLR2004
        return None

    # Window is measured by block order; an older block stamped later inverts it
    elapsed = samples[0].timestamp - samples[-1].timestamp
    if elapsed <= 0:
        return None

    tps = sum(s.tx_count for s in samples) / elapsed
    if not math.isfinite(tps):
        return None
    return round(tps, TPS_DECIMALS)


def rate_per_second(count_delta: float, seconds: float) -> float | None:
    """Cumulative-counter variant (e.g. checkpoint transaction totals)."""
    if seconds <= 0 or count_delta < 0:
        return None
    return round(count_delta / seconds, TPS_DECIMALS)


async def sample_recent_blocks(
    latest: int,
    count: int,
    get_block: Callable[[int], Awaitable[BlockSample]],
) -> list[BlockSample]:
    """Fetch ``count`` blocks walking backward from ``latest``.

    Blocks are requested concurrently. A block that fails to load is
    skipped; the caller decides whether the remaining window is usable.

    Args:
        latest: Latest block height.
        count: Number of blocks in the window (including ``latest``).
        get_block: Coroutine loading one block by height.

    Returns:
        Successfully loaded samples, newest first.
    """
    heights = [h for h in range(latest, latest - count, -1) if h >= 0]
    results = await asyncio.gather(*(get_block(h) for h in heights), return_exceptions=True)

    samples: list[BlockSample] = []
    for height, result in zip(heights, results, strict=True):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.debug("Skipping block {}: {}", height, result)
            continue
        samples.append(result)
    return samples


async def recent_blocks_tps(
    latest_height: Callable[[], Awaitable[int]],
    get_block: Callable[[int], Awaitable[BlockSample]],
    count: int,
) -> float | None:
    """Latest height → ``count`` recent blocks → TPS (None when the window is unusable)."""
    latest = await latest_height()
    samples = await sample_recent_blocks(latest, count, get_block)
    return compute_tps(samples)
