"""Modbus device, statistics and schedule models."""

from modbus_ethermon.schemas.modbus_models.models import (
    COIL,
    DISCRETE,
    HOLDING,
    INPUT,
    REGISTER_TYPES,
    Device,
    Reading,
    Register,
)
from modbus_ethermon.schemas.modbus_models.stats import (
    DeviceStats,
    HourlyDeviceStats,
    HourlyStatsEntry,
    Stats,
)
from modbus_ethermon.schemas.modbus_models.schedule import ScheduleConfig, parse_time

__all__ = [
    "COIL",
    "DISCRETE",
    "HOLDING",
    "INPUT",
    "REGISTER_TYPES",
    "Device",
    "Reading",
    "Register",
    "DeviceStats",
    "HourlyDeviceStats",
    "HourlyStatsEntry",
    "Stats",
    "ScheduleConfig",
    "parse_time",
]
