"""Context binding utilities for structured logging.

Async-safe context propagation using contextvars: a fetch cycle opens a
``LoggingContext`` and ``inject_log_context`` (installed as the loguru
patcher) copies the network id, upstream source and poll id into every
record emitted inside it, even when several networks are polled concurrently.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

# =============================================================================
# Context Variables (Async-Safe)
# =============================================================================
# Propagated across await boundaries and into tasks created inside the scope

current_network: ContextVar[str | None] = ContextVar("network", default=None)
current_source: ContextVar[str | None] = ContextVar("source", default=None)
current_poll_id: ContextVar[str | None] = ContextVar("poll_id", default=None)


# =============================================================================
# Logger Factory Functions
# =============================================================================


def get_network_logger(
    *,
    network: str | None = None,
    source: str | None = None,
    poll_id: str | None = None,
    **extra: str,
) -> Logger:
    """Get a logger with network context bound.

    Only binds ``extra``; the context variables are left untouched. Use
    ``LoggingContext`` to scope values for every logger in a fetch cycle.

    Args:
        network: Network id (e.g., "ethereum", "sui")
        source: Upstream source label (e.g., "coingecko", "etherscan")
        poll_id: Poll cycle identifier for correlating one snapshot's calls
        **extra: Additional context key-value pairs

    Returns:
        Logger instance with context bound

    Example:
        >>> log = get_network_logger(network="solana", source="solana_rpc")
        >>> log.warning("Upstream call failed")
    """
    ctx: dict[str, str] = {}

    if network:
        ctx["network"] = network
    if source:
        ctx["source"] = source
    if poll_id:
        ctx["poll_id"] = poll_id

    ctx.update(extra)

    return logger.bind(**ctx)


def generate_poll_id(prefix: str = "poll") -> str:
    """Generate a short poll cycle identifier (e.g. ``poll_a1b2c3d4``)."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def get_current_context() -> dict[str, str | None]:
    """Get all current context values."""
    return {
        "network": current_network.get(),
        "source": current_source.get(),
        "poll_id": current_poll_id.get(),
    }


def inject_log_context(record: dict[str, Any]) -> None:
    """Loguru patcher: scoped context values into ``record["extra"]``.

    Values bound explicitly on the logger take precedence.
    """
    extra = record["extra"]
    for key, value in get_current_context().items():
        if value is not None:
            extra.setdefault(key, value)


# =============================================================================
# Context Manager for Scoped Logging
# =============================================================================


class LoggingContext:
    """Context manager for scoped logging context.

    Example:
        >>> async with LoggingContext(network="sei", poll_id="poll_1"):
        ...     logger.info("Fetching")  # Includes context
    """

    def __init__(
        self,
        network: str | None = None,
        source: str | None = None,
        poll_id: str | None = None,
    ) -> None:
        self._values = {"network": network, "source": source, "poll_id": poll_id}
        self._tokens: dict[str, object] = {}

    def __enter__(self) -> LoggingContext:
        """Enter context and set variables."""
        context_vars = _context_vars()
        for key, value in self._values.items():
            if value:
                self._tokens[key] = context_vars[key].set(value)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit context and reset variables."""
        context_vars = _context_vars()
        for key, token in self._tokens.items():
            context_vars[key].reset(token)  # type: ignore[arg-type]
        self._tokens.clear()

    async def __aenter__(self) -> LoggingContext:
        """Async enter - delegates to sync enter."""
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async exit - delegates to sync exit."""
        self.__exit__(exc_type, exc_val, exc_tb)


def _context_vars() -> dict[str, ContextVar[str | None]]:
    return {
        "network": current_network,
        "source": current_source,
        "poll_id": current_poll_id,
    }
