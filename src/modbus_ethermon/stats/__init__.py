"""Polling statistics."""

from pathlib import Path
from typing import Union

from modbus_ethermon.stats.collector import NullStatsCollector, StatsCollector

StatsBackend = Union[StatsCollector, NullStatsCollector]


def create_stats_collector(
    enabled: bool,
    stats_path: Path,
    hourly_stats_path: Path,
    retention_days: int = 7
) -> StatsBackend:
    """Build the statistics implementation selected by configuration."""
    if not enabled:
        return NullStatsCollector()
    return StatsCollector(stats_path, hourly_stats_path, retention_days=retention_days)


__all__ = ["NullStatsCollector", "StatsCollector", "StatsBackend", "create_stats_collector"]
