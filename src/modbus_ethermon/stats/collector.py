"""
Polling statistics.

Cumulative poll/error counters (global and per device) plus hour buckets kept
for a rolling window. Persistence is best-effort: failures are logged and
never reach the poller.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from modbus_ethermon.helpers.config_files import read_json_config, write_json_config
from modbus_ethermon.helpers.date_time import parse_iso_datetime
from modbus_ethermon.logging import get_logger
from modbus_ethermon.schemas.modbus_models import (
    DeviceStats,
    HourlyDeviceStats,
    HourlyStatsEntry,
    Stats,
)
from modbus_ethermon.utils.exceptions import ConfigMissingError, ConfigParseError

logger = get_logger(__name__)

_hourly_adapter = TypeAdapter(List[HourlyStatsEntry])


def _local_now() -> datetime:
    return datetime.now().astimezone()


class StatsCollector:
    """
    Poll statistics backed by stats.json and hourly-stats.json.

    Hour buckets are matched on local wall-clock (year, month, day, hour);
    their timestamps are stored as ISO strings with UTC offset.
    """

    def __init__(
        self,
        stats_path: Path,
        hourly_stats_path: Path,
        retention_days: int = 7,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.stats_path = stats_path
        self.hourly_stats_path = hourly_stats_path
        self.retention_days = retention_days
        self._clock = clock or _local_now
        self.stats = Stats()
        self.hourly_stats: List[HourlyStatsEntry] = []

    def _now(self) -> datetime:
        return self._clock().astimezone()

    def load(self) -> None:
        """Load both stats files; missing files are created with defaults."""
        try:
            self.stats = Stats.model_validate(read_json_config(self.stats_path))
            logger.info(f"Stats loaded from {self.stats_path}")
        except ConfigMissingError:
            logger.info("Stats file not found, using defaults")
            self.stats = Stats()
            self.save_stats()
        except (ConfigParseError, PydanticValidationError) as e:
            logger.error(f"Error loading stats: {e}")
            self.stats = Stats()

        try:
            self.hourly_stats = _hourly_adapter.validate_python(read_json_config(self.hourly_stats_path))
            logger.info(f"Hourly stats loaded from {self.hourly_stats_path}")
        except ConfigMissingError:
            logger.info("Hourly stats file not found, using defaults")
            self.initialize_hourly_stats()
            self.save_hourly_stats()
        except (ConfigParseError, PydanticValidationError) as e:
            logger.error(f"Error loading hourly stats: {e}")
            self.initialize_hourly_stats()

    def initialize_hourly_stats(self) -> None:
        """Replace the hourly stats with 24 empty buckets for the current day."""
        day_start = self._now().replace(hour=0, minute=0, second=0, microsecond=0)
        self.hourly_stats = [
            HourlyStatsEntry(timestamp=(day_start.replace(hour=hour)).isoformat())
            for hour in range(24)
        ]

    def _is_current_hour(self, entry: HourlyStatsEntry, now: datetime) -> bool:
        entry_time = parse_iso_datetime(entry.timestamp)
        if entry_time is None:
            return False
        entry_time = entry_time.astimezone()
        return (
            entry_time.hour == now.hour
            and entry_time.day == now.day
            and entry_time.month == now.month
            and entry_time.year == now.year
        )

    def _find_hour_bucket(self, now: datetime) -> Optional[HourlyStatsEntry]:
        for entry in self.hourly_stats:
            if self._is_current_hour(entry, now):
                return entry
        return None

    def _current_hour_bucket(self, now: datetime) -> HourlyStatsEntry:
        entry = self._find_hour_bucket(now)
        if entry is None:
            entry = HourlyStatsEntry(timestamp=now.replace(minute=0, second=0, microsecond=0).isoformat())
            self.hourly_stats.append(entry)
        return entry

    def _device_stats(self, device_id: str) -> DeviceStats:
        device_stats = self.stats.device_stats.get(device_id)
        if device_stats is None:
            device_stats = DeviceStats()
            self.stats.device_stats[device_id] = device_stats
        return device_stats

    def _update_hourly(self, device_id: str, now: datetime, is_poll: bool) -> None:
        entry = self._current_hour_bucket(now)
        device_entry = entry.device_stats.setdefault(device_id, HourlyDeviceStats())
        if is_poll:
            entry.polls += 1
            device_entry.polls += 1
        else:
            entry.errors += 1
            device_entry.errors += 1

    def register_poll(self, device_id: str) -> None:
        """Count one successful register read."""
        now = self._now()
        timestamp = now.isoformat()

        self.stats.total_polls += 1
        self.stats.last_poll = timestamp

        device_stats = self._device_stats(device_id)
        device_stats.polls += 1
        device_stats.last_poll = timestamp

        self._update_hourly(device_id, now, is_poll=True)

    def register_error(self, device_id: str) -> None:
        """Count one failed register read."""
        now = self._now()

        self.stats.errors += 1
        self._device_stats(device_id).errors += 1

        self._update_hourly(device_id, now, is_poll=False)

    def roll_hourly_window(self) -> None:
        """
        Make sure the current hour has a bucket and drop buckets older than the
        retention window. Saves the hourly stats when anything changed.
        """
        now = self._now()
        added = self._find_hour_bucket(now) is None
        self._current_hour_bucket(now)

        cutoff = now - timedelta(days=self.retention_days)
        kept = []
        for entry in self.hourly_stats:
            entry_time = parse_iso_datetime(entry.timestamp)
            if entry_time is None:
                logger.warning(f"Dropping hourly stats entry with invalid timestamp: {entry.timestamp}")
                continue
            if entry_time.tzinfo is None:
                entry_time = entry_time.astimezone()
            if entry_time >= cutoff:
                kept.append(entry)
        pruned = len(self.hourly_stats) - len(kept)
        self.hourly_stats = kept

        if added or pruned:
            if pruned:
                logger.info(f"Pruned {pruned} hourly stats bucket(s) older than {self.retention_days} days")
            self.save_hourly_stats()

    def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.model_dump(mode="json", by_alias=True)
        stats["timestamp"] = self._now().isoformat()
        return stats

    def get_hourly_stats(self) -> List[Dict[str, Any]]:
        return [entry.model_dump(mode="json", by_alias=True) for entry in self.hourly_stats]

    def get_device_stats(self, device_id: str) -> Dict[str, Any]:
        device_stats = self.stats.device_stats.get(device_id) or DeviceStats()
        return device_stats.model_dump(mode="json", by_alias=True)

    def reset_stats(self) -> None:
        """Zero all counters, start a fresh day of hour buckets and persist."""
        self.stats = Stats()
        self.initialize_hourly_stats()
        self.save()
        logger.info("Stats reset")

    def save_stats(self) -> None:
        try:
            write_json_config(self.stats_path, self.stats.model_dump(mode="json", by_alias=True))
            logger.debug("Stats saved")
        except OSError as e:
            logger.error(f"Error saving stats: {e}")

    def save_hourly_stats(self) -> None:
        try:
            write_json_config(self.hourly_stats_path, self.get_hourly_stats())
            logger.debug("Hourly stats saved")
        except OSError as e:
            logger.error(f"Error saving hourly stats: {e}")

    def save(self) -> None:
        self.save_stats()
        self.save_hourly_stats()


class NullStatsCollector:
    """
    Statistics implementation that records nothing.

    Selected at startup when statistics are disabled; exposes the same
    interface as StatsCollector.
    """

    def load(self) -> None:
        logger.info("Statistics collection disabled")

    def register_poll(self, device_id: str) -> None:
        pass

    def register_error(self, device_id: str) -> None:
        pass

    def roll_hourly_window(self) -> None:
        pass

    def get_stats(self) -> Dict[str, Any]:
        return Stats().model_dump(mode="json", by_alias=True)

    def get_hourly_stats(self) -> List[Dict[str, Any]]:
        return []

    def get_device_stats(self, device_id: str) -> Dict[str, Any]:
        return DeviceStats().model_dump(mode="json", by_alias=True)

    def reset_stats(self) -> None:
        pass

    def save(self) -> None:
        pass
