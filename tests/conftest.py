"""
Shared fixtures.

The pymodbus client is replaced by FakeModbusClient through the session's
client_factory hook; every test works on its own tmp_path data directory.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from modbus_ethermon.archive import ArchiveStore
from modbus_ethermon.config import Settings
from modbus_ethermon.helpers.devices import DeviceRegistry
from modbus_ethermon.modbus import ModbusSession
from modbus_ethermon.polling import PollingManager
from modbus_ethermon.scheduler import SchedulerEngine
from modbus_ethermon.stats import StatsCollector


class FakeResponse:
    def __init__(self, registers=None, bits=None, exception_code=None):
        self.registers = registers or []
        self.bits = bits or []
        self.exception_code = exception_code

    def isError(self) -> bool:
        return self.exception_code is not None


class FakeDevice:
    """In-memory register image of one Modbus server."""

    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.holding: Dict[int, int] = {}
        self.input: Dict[int, int] = {}
        self.coils: Dict[int, bool] = {}
        self.discrete: Dict[int, bool] = {}
        # address -> exception instance raised on read
        self.failures: Dict[int, Exception] = {}
        # address -> Modbus exception code returned on read
        self.exception_codes: Dict[int, int] = {}


class FakeNetwork:
    """Fake devices keyed by host, plus a log of everything that touched the wire."""

    def __init__(self):
        self.devices: Dict[str, FakeDevice] = {}
        self.calls: List[tuple] = []
        self.open_connections = 0
        self.max_open_connections = 0

    def add_device(self, host: str, reachable: bool = True) -> FakeDevice:
        device = FakeDevice(reachable)
        self.devices[host] = device
        return device

    def factory(self, host: str, port: int = 502, timeout: float = 3.0, retries: int = 3) -> "FakeModbusClient":
        return FakeModbusClient(self, host, port)


class FakeModbusClient:
    """Subset of pymodbus.client.AsyncModbusTcpClient used by ModbusSession."""

    def __init__(self, network: FakeNetwork, host: str, port: int):
        self.network = network
        self.host = host
        self.port = port
        self.connected = False

    @property
    def _device(self) -> FakeDevice:
        return self.network.devices[self.host]

    async def connect(self) -> bool:
        self.network.calls.append(("connect", self.host, self.port))
        device = self.network.devices.get(self.host)
        if device is None or not device.reachable:
            return False
        self.connected = True
        self.network.open_connections += 1
        self.network.max_open_connections = max(self.network.max_open_connections, self.network.open_connections)
        return True

    def close(self) -> None:
        if self.connected:
            self.network.open_connections -= 1
        self.connected = False

    def _check(self, operation: str, address: int, device_id: int) -> Optional[FakeResponse]:
        self.network.calls.append((operation, self.host, address, device_id))
        device = self._device
        if address in device.failures:
            raise device.failures[address]
        if address in device.exception_codes:
            return FakeResponse(exception_code=device.exception_codes[address])
        return None

    async def read_holding_registers(self, address: int, count: int = 1, device_id: int = 1):
        error = self._check("read_holding_registers", address, device_id)
        return error or FakeResponse(registers=[self._device.holding.get(address + i, 0) for i in range(count)])

    async def read_input_registers(self, address: int, count: int = 1, device_id: int = 1):
        error = self._check("read_input_registers", address, device_id)
        return error or FakeResponse(registers=[self._device.input.get(address + i, 0) for i in range(count)])

    async def read_coils(self, address: int, count: int = 1, device_id: int = 1):
        error = self._check("read_coils", address, device_id)
        # Padded to a whole byte like a real response
        bits = [self._device.coils.get(address + i, False) for i in range(8 * ((count + 7) // 8))]
        return error or FakeResponse(bits=bits)

    async def read_discrete_inputs(self, address: int, count: int = 1, device_id: int = 1):
        error = self._check("read_discrete_inputs", address, device_id)
        bits = [self._device.discrete.get(address + i, False) for i in range(8 * ((count + 7) // 8))]
        return error or FakeResponse(bits=bits)

    async def write_register(self, address: int, value: int, device_id: int = 1):
        error = self._check("write_register", address, device_id)
        if error is None:
            self._device.holding[address] = value
        return error or FakeResponse()

    async def write_registers(self, address: int, values: List[int], device_id: int = 1):
        error = self._check("write_registers", address, device_id)
        if error is None:
            for offset, value in enumerate(values):
                self._device.holding[address + offset] = value
        return error or FakeResponse()


class StepClock:
    """Deterministic clock advancing by a fixed step on every call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


def sample_devices() -> List[dict]:
    return [
        {
            "id": "dev-1",
            "name": "Boiler room",
            "ip": "10.0.0.1",
            "port": 502,
            "unitId": 1,
            "enabled": True,
            "registers": [
                {"name": f"temp{i}", "address": i, "type": "holding", "enabled": True}
                for i in range(1, 6)
            ],
        },
        {
            "id": "dev-2",
            "name": "Pump station",
            "ip": "10.0.0.2",
            "port": 502,
            "unitId": 3,
            "enabled": True,
            "registers": [
                {"name": "flow", "address": 10, "type": "input", "enabled": True},
                {"name": "running", "address": 0, "type": "coil", "enabled": True},
                {"name": "alarm", "address": 4, "type": "discrete", "enabled": True},
                {"name": "spare", "address": 20, "type": "holding", "enabled": False},
            ],
        },
        {
            "id": "dev-off",
            "name": "Decommissioned meter",
            "ip": "10.0.0.9",
            "enabled": False,
            "registers": [
                {"name": "energy", "address": 0, "type": "holding", "enabled": True},
            ],
        },
    ]


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    configs = tmp_path / "configs"
    configs.mkdir()
    (configs / "devices.json").write_text(json.dumps(sample_devices(), indent=2), encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return Settings(
        DATA_DIR=data_dir,
        LOG_TO_FILE=False,
        POLL_AUTOSTART=False,
        MODBUS_TIMEOUT_S=1.0,
        MODBUS_RETRIES=0,
    )


@pytest.fixture
def network() -> FakeNetwork:
    network = FakeNetwork()
    boiler = network.add_device("10.0.0.1")
    boiler.holding.update({1: 215, 2: 220, 3: 225, 4: 230, 5: 235})
    pumps = network.add_device("10.0.0.2")
    pumps.input[10] = 42
    pumps.coils[0] = True
    pumps.discrete[4] = False
    network.add_device("10.0.0.9")
    return network


@pytest.fixture
def registry(settings: Settings) -> DeviceRegistry:
    return DeviceRegistry(settings.devices_config_path)


@pytest.fixture
def session(network: FakeNetwork) -> ModbusSession:
    return ModbusSession(timeout=1.0, retries=0, client_factory=network.factory)


@pytest.fixture
def stats(settings: Settings) -> StatsCollector:
    collector = StatsCollector(settings.stats_path, settings.hourly_stats_path)
    collector.load()
    return collector


@pytest.fixture
def archive(settings: Settings) -> ArchiveStore:
    return ArchiveStore(settings.archives_dir)


@pytest.fixture
def engine() -> SchedulerEngine:
    # Never started: jobs stay pending and are driven by calling them directly
    return SchedulerEngine()


@pytest.fixture
def manager(registry, session, stats, archive, engine, settings) -> PollingManager:
    clock = StepClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))
    return PollingManager(
        registry, session, stats, archive, engine,
        default_interval_ms=settings.poll_interval_ms,
        clock=clock
    )
