"""Currency / duration formatting and per-transaction cost conversion."""

from __future__ import annotations

from decimal import Decimal

WEI_PER_GWEI = Decimal(10**9)

_COMPACT_UNITS: tuple[tuple[float, str], ...] = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def gas_cost_usd(
    gas_price: Decimal | int | float,
    units_per_tx: int,
    native_decimals: int,
    token_usd: float,
) -> float:
    """Native gas price → USD cost of one simple transaction.

    Args:
        gas_price: Price per gas unit in the chain's smallest unit (wei, MIST, ...)
        units_per_tx: Gas units of a simple transfer
        native_decimals: Decimals of the native token (18 for ETH, 9 for SUI)
        token_usd: Native token price in USD

    Example:
        >>> gas_cost_usd(20 * 10**9, 21_000, 18, 3000.0)  # 20 gwei on Ethereum
        1.26
    """
    native = Decimal(str(gas_price)) * units_per_tx / (Decimal(10) ** native_decimals)
    return float(native * Decimal(str(token_usd)))


def gwei_to_wei(gwei: Decimal | int | float) -> Decimal:
    return Decimal(str(gwei)) * WEI_PER_GWEI


def format_usd(value: float, precision: int) -> str:
    """``1.26`` → ``"$1.26"`` / ``0.00042, 6`` → ``"$0.000420"``."""
    return f"${value:.{precision}f}"


def format_compact_usd(value: float) -> str:
    """Large USD amounts with a unit suffix.

    Example:
        >>> format_compact_usd(445_812_000_000)
        '$445.8B'
        >>> format_compact_usd(623_000_000)
        '$623.0M'
    """
    for threshold, suffix in _COMPACT_UNITS:
        if abs(value) >= threshold:
            return f"${value / threshold:.1f}{suffix}"
    return f"${value:.2f}"
