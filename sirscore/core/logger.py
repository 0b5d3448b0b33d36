"""Loguru logging configuration.

This module provides a centralized logging setup. All logging in the
application should use the configured loguru logger.

Features:
    - Dual sinks: Console (human-readable) + File (text or JSON serialized)
    - loguru's built-in rotation/retention/compression for the file sink
    - Structured logging with context binding (network / source / poll id)
      injected into every record by a global patcher
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from sirscore.logging.config import LoggingConfig, get_logging_config
from sirscore.logging.context import inject_log_context

# Remove default handler to prevent duplicate logs
logger.remove()


# =============================================================================
# Console Format Templates
# =============================================================================

CONSOLE_FORMAT_DEFAULT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_NAME_TEMPLATE = "sirscore_{time:YYYY-MM-DD}"


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logger_from_config(config: LoggingConfig | None = None) -> None:
    """Initialize logger from Pydantic config model.

    Args:
        config: LoggingConfig instance (loads from LOG_* env vars if None)

    Example:
        >>> from sirscore.core.logger import setup_logger_from_config
        >>> setup_logger_from_config()
    """
    if config is None:
        config = get_logging_config()

    _setup_logger_internal(config)


def setup_logger(
    log_dir: Path | str = Path("logs"),
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    *,
    file_logs: bool = True,
) -> None:
    """Initialize the logger with minimal configuration.

    For full configuration options, use setup_logger_from_config()
    with a LoggingConfig instance.

    Args:
        log_dir: Directory for log files (default: "logs")
        console_level: Console output level (default: "INFO")
        file_level: File output level (default: "DEBUG")
        file_logs: Add the file sink (default: True)

    Example:
        >>> from sirscore.core.logger import setup_logger, logger
        >>> setup_logger(log_dir="logs", console_level="DEBUG")
        >>> logger.info("Monitor started")
    """
    config = LoggingConfig(
        log_dir=Path(log_dir),
        console_level=console_level,  # type: ignore[arg-type]
        file_level=file_level,  # type: ignore[arg-type]
        file_logs=file_logs,
    )
    _setup_logger_internal(config)


def _setup_logger_internal(config: LoggingConfig) -> None:
    """Internal logger setup using config object.

    Args:
        config: LoggingConfig instance with all settings
    """
    logger.remove()
    logger.configure(patcher=inject_log_context)  # type: ignore[arg-type]

    # 1. Console Handler (Human-readable, synchronous)
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT_DEFAULT,
        level=config.console_level,
        colorize=True,
        backtrace=config.backtrace,
        diagnose=config.diagnose,
    )

    # 2. File Handler (optional)
    log_path = Path(config.log_dir)
    if config.file_logs:
        log_path.mkdir(parents=True, exist_ok=True)
        if config.json_logs:
            _setup_json_file_sink(log_path, config)
        else:
            _setup_text_file_sink(log_path, config)

    logger.debug(
        "Logger initialized",
        log_dir=str(log_path),
        console_level=config.console_level,
        file_level=config.file_level,
        file_logs=config.file_logs,
    )


def _setup_json_file_sink(log_path: Path, config: LoggingConfig) -> None:
    """Set up JSON file sink (one serialized record per line).

    Args:
        log_path: Path to log directory
        config: Logging configuration
    """
    logger.add(
        log_path / f"{FILE_NAME_TEMPLATE}.json",
        level=config.file_level,
        serialize=True,
        rotation=config.rotation,
        retention=config.retention,
        compression=config.compression,
        enqueue=True,
        backtrace=config.backtrace,
        diagnose=False,
    )


def _setup_text_file_sink(log_path: Path, config: LoggingConfig) -> None:
    """Set up text file sink with loguru's built-in rotation.

    Args:
        log_path: Path to log directory
        config: Logging configuration
    """
    logger.add(
        log_path / f"{FILE_NAME_TEMPLATE}.log",
        format=CONSOLE_FORMAT_DEFAULT,
        level=config.file_level,
        rotation=config.rotation,
        retention=config.retention,
        compression=config.compression,
        enqueue=True,
        backtrace=config.backtrace,
        diagnose=False,
    )


__all__ = [
    "logger",
    "setup_logger",
    "setup_logger_from_config",
]
