"""
Modbus error types and translation.

Session failures are typed so the poller can count them and the API can turn
them into HTTP status codes.
"""

import asyncio
from typing import Optional

from fastapi import status
from pymodbus.exceptions import ConnectionException, ModbusException, ModbusIOException

from modbus_ethermon.utils.exceptions import AppError

MODBUS_EXCEPTION_MESSAGES = {
    1: "Illegal function - The function code received is not supported",
    2: "Illegal data address - The data address received is not valid",
    3: "Illegal data value - The value in the request is not valid",
    4: "Server device failure - The server encountered an error processing the request",
    5: "Acknowledge - The server accepted the request but needs more time",
    6: "Server device busy - The server is processing a long-duration command",
    10: "Gateway path unavailable",
    11: "Gateway target device failed to respond",
}


class ModbusSessionError(AppError):
    """Base class for session-level Modbus failures."""
    http_status_code = status.HTTP_502_BAD_GATEWAY


class NotConnectedError(ModbusSessionError):
    """Raised when a register operation is attempted without an open connection."""
    http_status_code = status.HTTP_409_CONFLICT


class ConnectionFailureError(ModbusSessionError):
    """Raised when a device is unreachable or refuses the connection."""
    http_status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ModbusProtocolError(ModbusSessionError):
    """Raised for exception responses, malformed responses and timeouts."""

    def __init__(self, message: str, payload: Optional[dict] = None, timeout: bool = False):
        super().__init__(message, payload)
        self.timeout = timeout
        if timeout:
            self.http_status_code = status.HTTP_504_GATEWAY_TIMEOUT


def describe_exception_code(exception_code: int) -> str:
    return MODBUS_EXCEPTION_MESSAGES.get(exception_code, f"Modbus error code: {exception_code}")


def to_protocol_error(error: Exception, operation: str, address: int) -> ModbusSessionError:
    """Wrap a pymodbus/transport exception raised during a register operation."""
    payload = {"operation": operation, "address": address}
    if isinstance(error, ModbusSessionError):
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ModbusProtocolError(f"{operation} at {address} timed out", payload, timeout=True)
    if isinstance(error, ConnectionException):
        return ConnectionFailureError(f"{operation} at {address} failed: connection lost ({error})", payload)
    if isinstance(error, ModbusIOException):
        return ModbusProtocolError(f"{operation} at {address} failed: no valid response ({error})", payload, timeout=True)
    if isinstance(error, ModbusException):
        return ModbusProtocolError(f"{operation} at {address} failed: {error}", payload)
    return ModbusProtocolError(f"{operation} at {address} failed: {type(error).__name__}: {error}", payload)
