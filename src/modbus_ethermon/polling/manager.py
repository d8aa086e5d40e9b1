"""
Per-device Modbus polling.

Each device gets its own interval job. All jobs share one ModbusSession and
take the session lock for a whole connect -> read -> disconnect cycle, so
reads of two devices never overlap on the wire.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from apscheduler.job import Job
from apscheduler.triggers.interval import IntervalTrigger

from modbus_ethermon.archive import ArchiveStore
from modbus_ethermon.config import settings
from modbus_ethermon.helpers.date_time import utc_now
from modbus_ethermon.helpers.devices import DeviceRegistry
from modbus_ethermon.logging import get_logger
from modbus_ethermon.modbus import ConnectionFailureError, ModbusSession, ModbusSessionError
from modbus_ethermon.scheduler.engine import SchedulerEngine
from modbus_ethermon.schemas.api_models import ModbusRegisterValues, PollResult
from modbus_ethermon.schemas.modbus_models import REGISTER_TYPES, Device, Reading
from modbus_ethermon.stats import StatsBackend
from modbus_ethermon.utils.exceptions import ValidationError

logger = get_logger(__name__)

POLL_JOB_PREFIX = "poll"


def poll_job_id(device_id: str) -> str:
    return f"{POLL_JOB_PREFIX}:{device_id}"


class PollingManager:
    """
    Owns the shared session, the device data snapshots and the poll jobs.

    Args:
        registry: Device configuration source
        session: The single Modbus session used for all devices
        stats: Statistics backend (StatsCollector or NullStatsCollector)
        archive: Daily archive store
        engine: Scheduler engine the poll jobs are registered with
        default_interval_ms: Interval used when start_polling gets none (POLL_INTERVAL_MS)
        clock: Source of reading timestamps (UTC)
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        session: ModbusSession,
        stats: StatsBackend,
        archive: ArchiveStore,
        engine: SchedulerEngine,
        default_interval_ms: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.registry = registry
        self.session = session
        self.stats = stats
        self.archive = archive
        self.engine = engine
        self.default_interval_ms = default_interval_ms or settings.poll_interval_ms
        self._clock = clock or utc_now
        self._session_lock = asyncio.Lock()
        self._device_data: Dict[str, Dict[str, Reading]] = {}
        self._poll_jobs: Dict[str, Job] = {}
        self._poll_intervals: Dict[str, int] = {}

    # Device data

    def get_device_data(self, device_id: str) -> Dict[str, Dict[str, Any]]:
        """Latest reading per register name; empty if the device was never polled."""
        snapshot = self._device_data.get(device_id, {})
        return {name: reading.model_dump(mode="json") for name, reading in snapshot.items()}

    def get_all_device_data(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {device_id: self.get_device_data(device_id) for device_id in self._device_data}

    # Poll scheduling

    def start_polling(self, device_id: str, interval_ms: Optional[int] = None) -> Job:
        """
        Start periodic polling of a device, replacing any existing poll job.

        The first cycle runs one interval after the call.

        Args:
            device_id: Device to poll
            interval_ms: Poll interval in milliseconds (defaults to default_interval_ms)

        Raises:
            DeviceNotFoundError: If the device is not configured
            ValidationError: If the device is disabled or the interval is not positive
        """
        interval_ms = interval_ms if interval_ms is not None else self.default_interval_ms
        if interval_ms <= 0:
            raise ValidationError("Poll interval must be positive", {"interval": interval_ms})

        self.stop_polling(device_id)

        device = self.registry.require_device(device_id)
        if not device.enabled:
            raise ValidationError(f"Device {device.name} is disabled", {"device_id": device_id})

        self._device_data.setdefault(device_id, {})

        job = self.engine.add_job(
            self._run_poll_job,
            trigger=IntervalTrigger(seconds=interval_ms / 1000),
            job_id=poll_job_id(device_id),
            name=f"Poll {device.name}",
            args=[device_id],
            max_instances=1,
            coalesce=True
        )
        self._poll_jobs[device_id] = job
        self._poll_intervals[device_id] = interval_ms
        logger.info(f"Started polling device {device.name} every {interval_ms} ms")
        return job

    def stop_polling(self, device_id: str) -> bool:
        """
        Stop polling a device. A cycle already in progress is allowed to finish.

        Returns:
            True if a poll job was stopped, False if the device was not being polled
        """
        job = self._poll_jobs.pop(device_id, None)
        self._poll_intervals.pop(device_id, None)
        if job is None:
            return False

        self.engine.remove_job(job.id)
        device = self.registry.get_device(device_id)
        logger.info(f"Stopped polling device {device.name if device else device_id}")
        return True

    def is_polling(self, device_id: str) -> bool:
        return device_id in self._poll_jobs

    def active_polls(self) -> Dict[str, int]:
        """Device ids being polled, with their interval in milliseconds."""
        return dict(self._poll_intervals)

    def start_enabled_devices(self, interval_ms: Optional[int] = None) -> List[str]:
        """Start polling every enabled device of the registry."""
        started = []
        for device in self.registry.load():
            if not device.enabled:
                logger.debug(f"Device {device.name} is disabled, not polling")
                continue
            self.start_polling(device.id, interval_ms)
            started.append(device.id)
        logger.info(f"Started polling {len(started)} device(s)")
        return started

    async def shutdown(self) -> None:
        for device_id in list(self._poll_jobs):
            self.stop_polling(device_id)
        async with self._session_lock:
            await self.session.disconnect()

    # Poll cycle

    async def _run_poll_job(self, device_id: str) -> None:
        device = self.registry.get_device(device_id)
        if device is None:
            logger.warning(f"Device {device_id} no longer configured, stopping its poll job")
            self.stop_polling(device_id)
            return
        if not device.enabled:
            logger.warning(f"Device {device.name} is disabled, skipping poll cycle")
            return

        result = await self.poll_device(device)
        if not result["success"]:
            logger.warning(f"Device '{device.name}' poll cycle failed: {result['error']}")

    async def poll_device(self, device: Device) -> PollResult:
        """
        Run one poll cycle: connect, read every enabled register in order,
        disconnect, then merge the snapshot into today's archive.

        A failing register is counted as an error and the cycle moves on to the
        next one. A failed connection aborts the cycle without touching stats.
        """
        result: PollResult = {
            "device_id": device.id,
            "success": False,
            "polls": 0,
            "errors": 0,
            "skipped": 0,
            "archived": False,
            "error": None
        }

        async with self._session_lock:
            if not await self.session.connect(device):
                result["error"] = f"Failed to connect to {device.ip}:{device.port}"
                return result

            try:
                snapshot = self._device_data.setdefault(device.id, {})
                for register in device.enabled_registers():
                    reader = self.session.reader_for(register.type)
                    if reader is None:
                        logger.warning(f"Unknown register type '{register.type}' for register {register.name}")
                        result["skipped"] += 1
                        continue

                    try:
                        value = await reader(register.address, register.length)
                    except ModbusSessionError as e:
                        self.stats.register_error(device.id)
                        result["errors"] += 1
                        logger.error(f"Error reading register {register.name} of device {device.name}: {e.message}")
                        continue

                    snapshot[register.name] = Reading(
                        value=value,
                        timestamp=self._clock().isoformat(),
                        address=register.address,
                        type=register.type
                    )
                    self.stats.register_poll(device.id)
                    result["polls"] += 1
                    logger.debug(f"Read register {register.name}: {value}")
            finally:
                await self.session.disconnect()

        result["success"] = result["errors"] == 0
        if result["errors"]:
            result["error"] = f"{result['errors']} register read(s) failed"

        readings = self.get_device_data(device.id)
        if readings:
            try:
                await asyncio.to_thread(self.archive.save_device_data, device.id, readings)
                result["archived"] = True
            except OSError as e:
                logger.error(f"Error saving data of device {device.name} to archive: {e}")

        logger.info(
            f"Device '{device.name}' poll cycle completed: "
            f"{result['polls']} read(s), {result['errors']} error(s), {result['skipped']} skipped"
        )
        return result

    # Ad-hoc session operations

    async def connect_device(self, device_id: str) -> Device:
        """
        Connect the shared session to a device and leave it open.

        Raises:
            DeviceNotFoundError: If the device is not configured
            ConnectionFailureError: If the device is unreachable
        """
        device = self.registry.require_device(device_id)
        async with self._session_lock:
            if not await self.session.connect(device):
                raise ConnectionFailureError(
                    f"Failed to connect to device {device.name}",
                    {"device_id": device_id, "host": device.ip, "port": device.port}
                )
        return device

    async def disconnect(self) -> None:
        async with self._session_lock:
            await self.session.disconnect()

    async def read_registers(
        self,
        device_id: str,
        register_type: str,
        address: int,
        length: int = 1
    ) -> ModbusRegisterValues:
        """
        One-off read: connect, read, disconnect.

        Raises:
            DeviceNotFoundError: If the device is not configured
            ValidationError: If the register type is unknown
            ConnectionFailureError: If the device is unreachable
            ModbusSessionError: If the read itself fails
        """
        device = self.registry.require_device(device_id)
        reader = self.session.reader_for(register_type)
        if reader is None:
            raise ValidationError(
                f"Unknown register type: {register_type}",
                {"registerType": register_type, "allowed": list(REGISTER_TYPES)}
            )

        async with self._session_lock:
            if not await self.session.connect(device):
                raise ConnectionFailureError(
                    f"Failed to connect to device {device.name}",
                    {"device_id": device_id, "host": device.ip, "port": device.port}
                )
            try:
                return await reader(address, length)
            finally:
                await self.session.disconnect()

    async def write_registers(
        self,
        device_id: str,
        address: int,
        value: Optional[int] = None,
        values: Optional[List[int]] = None
    ) -> bool:
        """
        One-off write of a single value or consecutive values.

        Returns:
            True if the device acknowledged the write, False otherwise

        Raises:
            DeviceNotFoundError: If the device is not configured
            ValidationError: If neither value nor values is given
            ConnectionFailureError: If the device is unreachable
        """
        device = self.registry.require_device(device_id)
        if value is None and not values:
            raise ValidationError("Either value or values is required")

        async with self._session_lock:
            if not await self.session.connect(device):
                raise ConnectionFailureError(
                    f"Failed to connect to device {device.name}",
                    {"device_id": device_id, "host": device.ip, "port": device.port}
                )
            try:
                if values:
                    return await self.session.write_registers(address, values)
                return await self.session.write_register(address, value)
            finally:
                await self.session.disconnect()
