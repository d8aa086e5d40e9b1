"""Per-device polling."""

from modbus_ethermon.polling.manager import PollingManager, poll_job_id

__all__ = ["PollingManager", "poll_job_id"]
