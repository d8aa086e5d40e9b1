"""Scheduler engine and maintenance jobs."""

from modbus_ethermon.scheduler.engine import SchedulerEngine
from modbus_ethermon.scheduler.jobs import register_maintenance_jobs

__all__ = ["SchedulerEngine", "register_maintenance_jobs"]
