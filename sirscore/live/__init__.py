"""Live polling: repeating timer, snapshot poller and the multi-network monitor."""

from sirscore.live.monitor import NetworkMonitor, PollerStatus
from sirscore.live.poller import (
    DEVELOPER_REFRESH_INTERVAL,
    NETWORK_REFRESH_INTERVAL,
    SnapshotPoller,
)
from sirscore.live.scheduler import RepeatingTask

__all__ = [
    "DEVELOPER_REFRESH_INTERVAL",
    "NETWORK_REFRESH_INTERVAL",
    "NetworkMonitor",
    "PollerStatus",
    "RepeatingTask",
    "SnapshotPoller",
]
