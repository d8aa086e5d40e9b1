"""
Modbus TCP Session Module

Handles Modbus TCP communication with one device at a time: connection
lifecycle, typed register reads/writes and error translation. Separated from
the FastAPI application layer.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from pymodbus.client import AsyncModbusTcpClient

from modbus_ethermon.config import settings
from modbus_ethermon.logging import get_logger
from modbus_ethermon.modbus.errors import (
    ModbusProtocolError,
    NotConnectedError,
    describe_exception_code,
    to_protocol_error,
)
from modbus_ethermon.schemas.modbus_models import COIL, DISCRETE, HOLDING, INPUT, Device

logger = get_logger(__name__)

__all__ = ["ModbusSession", "SessionState", "RegisterReader"]

RegisterReader = Callable[[int, int], Awaitable[List[Union[int, bool]]]]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ModbusSession:
    """
    One exclusive Modbus TCP connection, reused sequentially across devices.

    connect() always closes the previous connection first, so at most one
    socket is open per session. Callers that share a session between tasks
    must serialise whole connect/read/disconnect sequences themselves.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        client_factory: Callable[..., Any] = AsyncModbusTcpClient
    ):
        self.timeout = timeout if timeout is not None else settings.modbus_timeout_s
        self.retries = retries if retries is not None else settings.modbus_retries
        self._client_factory = client_factory
        self._client: Optional[Any] = None
        self._device: Optional[Device] = None
        self.state = SessionState.DISCONNECTED

    @property
    def connected(self) -> bool:
        return self.state == SessionState.CONNECTED and self._client is not None

    @property
    def device(self) -> Optional[Device]:
        """Device of the current connection, if any."""
        return self._device

    async def connect(self, device: Device) -> bool:
        """
        Open a TCP connection to a device and select its unit id.

        Args:
            device: Device to connect to

        Returns:
            True on success; False if the device is unreachable (logged, not raised)
        """
        if self.state != SessionState.DISCONNECTED:
            await self.disconnect()

        self.state = SessionState.CONNECTING
        client = None
        try:
            client = self._client_factory(
                device.ip,
                port=device.port,
                timeout=self.timeout,
                retries=self.retries
            )
            connected = bool(await client.connect())
        except Exception as e:
            logger.error(f"Error connecting to device {device.name} ({device.ip}:{device.port}): {e}")
            connected = False

        if not connected:
            logger.error(f"Failed to connect to device {device.name} ({device.ip}:{device.port})")
            if client is not None:
                self._close_client(client)
            self.state = SessionState.DISCONNECTED
            return False

        self._client = client
        self._device = device
        self.state = SessionState.CONNECTED
        logger.info(f"Connected to device {device.name} ({device.ip}:{device.port}, unit {device.unit_id})")
        return True

    async def disconnect(self) -> None:
        """Close the current connection. Closing a closed session is a no-op."""
        if self._client is None:
            self.state = SessionState.DISCONNECTED
            return

        device_name = self._device.name if self._device else "unknown"
        self._close_client(self._client)
        self._client = None
        self._device = None
        self.state = SessionState.DISCONNECTED
        logger.info(f"Disconnected from device {device_name}")

    @staticmethod
    def _close_client(client: Any) -> None:
        try:
            client.close()
        except Exception as e:
            logger.error(f"Error while closing Modbus connection: {e}")

    def _require_connection(self) -> Any:
        if not self.connected:
            raise NotConnectedError("No active connection to a device")
        return self._client

    async def _read(self, operation: str, address: int, length: int, bits: bool) -> List[Union[int, bool]]:
        client = self._require_connection()
        try:
            response = await getattr(client, operation)(
                address,
                count=length,
                device_id=self._device.unit_id
            )
        except Exception as e:
            error = to_protocol_error(e, operation, address)
            logger.error(f"Error in {operation} (address={address}, length={length}): {error.message}")
            raise error from e

        if response.isError():
            exception_code = getattr(response, "exception_code", None)
            if exception_code is not None:
                detail = describe_exception_code(exception_code)
            else:
                detail = str(response)
            logger.error(f"Error in {operation} (address={address}, length={length}): {detail}")
            raise ModbusProtocolError(
                f"{operation} at {address} failed: {detail}",
                {"operation": operation, "address": address, "exception_code": exception_code}
            )

        if bits:
            # Bit responses are padded to a whole number of bytes
            return list(response.bits[:length])
        return list(response.registers)

    async def read_holding_registers(self, address: int, length: int = 1) -> List[int]:
        return await self._read("read_holding_registers", address, length, bits=False)

    async def read_input_registers(self, address: int, length: int = 1) -> List[int]:
        return await self._read("read_input_registers", address, length, bits=False)

    async def read_coils(self, address: int, length: int = 1) -> List[bool]:
        return await self._read("read_coils", address, length, bits=True)

    async def read_discrete_inputs(self, address: int, length: int = 1) -> List[bool]:
        return await self._read("read_discrete_inputs", address, length, bits=True)

    def reader_for(self, register_type: str) -> Optional[RegisterReader]:
        """Return the read operation for a register type, or None if the type is unknown."""
        readers = {
            HOLDING: self.read_holding_registers,
            INPUT: self.read_input_registers,
            COIL: self.read_coils,
            DISCRETE: self.read_discrete_inputs,
        }
        return readers.get(register_type)

    async def _write(self, operation: str, address: int, value: Any) -> bool:
        try:
            client = self._require_connection()
            response = await getattr(client, operation)(
                address,
                value,
                device_id=self._device.unit_id
            )
            if response.isError():
                exception_code = getattr(response, "exception_code", None)
                detail = describe_exception_code(exception_code) if exception_code is not None else str(response)
                logger.error(f"Error in {operation} (address={address}): {detail}")
                return False
        except NotConnectedError as e:
            logger.error(f"Error in {operation} (address={address}): {e.message}")
            return False
        except Exception as e:
            logger.error(f"Error in {operation} (address={address}): {to_protocol_error(e, operation, address).message}")
            return False

        logger.info(f"Wrote {value} to register {address}")
        return True

    async def write_register(self, address: int, value: int) -> bool:
        """Write one holding register. Returns False on any failure."""
        return await self._write("write_register", address, value)

    async def write_registers(self, address: int, values: List[int]) -> bool:
        """Write consecutive holding registers starting at address. Returns False on any failure."""
        return await self._write("write_registers", address, values)
