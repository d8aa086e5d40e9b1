"""Polling statistics models, persisted as stats.json and hourly-stats.json."""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class DeviceStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    polls: int = 0
    errors: int = 0
    last_poll: Optional[str] = Field(default=None, alias="lastPoll")


class Stats(BaseModel):
    """Cumulative counters, globally and per device."""
    model_config = ConfigDict(populate_by_name=True)

    total_polls: int = Field(default=0, alias="totalPolls")
    errors: int = 0
    last_poll: Optional[str] = Field(default=None, alias="lastPoll")
    device_stats: Dict[str, DeviceStats] = Field(default_factory=dict, alias="deviceStats")


class HourlyDeviceStats(BaseModel):
    polls: int = 0
    errors: int = 0


class HourlyStatsEntry(BaseModel):
    """One hour bucket; `timestamp` is the hour start."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    polls: int = 0
    errors: int = 0
    device_stats: Dict[str, HourlyDeviceStats] = Field(default_factory=dict, alias="deviceStats")
