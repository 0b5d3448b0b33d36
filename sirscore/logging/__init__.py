"""Logging service module.

Provides the loguru configuration model and async-safe context binding
(network, upstream source, poll cycle) used by fetchers and pollers.
"""

from sirscore.logging.config import LoggingConfig, get_logging_config
from sirscore.logging.context import (
    LoggingContext,
    generate_poll_id,
    get_current_context,
    get_network_logger,
    inject_log_context,
)

__all__ = [
    "LoggingConfig",
    "LoggingContext",
    "generate_poll_id",
    "get_current_context",
    "get_logging_config",
    "get_network_logger",
    "inject_log_context",
]
