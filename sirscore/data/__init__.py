"""Data layer: snapshot models, upstream client, fan-out and sub-algorithms."""

from sirscore.data.client import AsyncUpstreamClient, RateLimiter
from sirscore.data.fanout import Outcome, settle_all, with_timeout
from sirscore.data.models import (
    DEVELOPER_METRIC_FIELDS,
    NETWORK_METRIC_FIELDS,
    DataQuality,
    DeveloperActivitySnapshot,
    NetworkSnapshot,
    parse_payload,
)

__all__ = [
    "DEVELOPER_METRIC_FIELDS",
    "NETWORK_METRIC_FIELDS",
    "AsyncUpstreamClient",
    "DataQuality",
    "DeveloperActivitySnapshot",
    "NetworkSnapshot",
    "Outcome",
    "RateLimiter",
    "parse_payload",
    "settle_all",
    "with_timeout",
]
