"""SIR Score live network data.

Per-network live-data aggregation for ranking blockchain networks as
execution environments for autonomous agents.
"""

__version__ = "0.1.0"
