"""Modbus TCP session and error handling."""

from modbus_ethermon.modbus.client import ModbusSession, SessionState
from modbus_ethermon.modbus.errors import (
    ConnectionFailureError,
    ModbusProtocolError,
    ModbusSessionError,
    NotConnectedError,
)

__all__ = [
    "ModbusSession",
    "SessionState",
    "ConnectionFailureError",
    "ModbusProtocolError",
    "ModbusSessionError",
    "NotConnectedError",
]
