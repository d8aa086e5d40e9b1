"""API request/response models."""

from modbus_ethermon.schemas.api_models.requests import (
    ConnectRequest,
    PollingStartRequest,
    PollingStopRequest,
    ReadRequest,
    WriteRequest,
)
from modbus_ethermon.schemas.api_models.responses import (
    ActionResponse,
    ErrorResponse,
    HealthResponse,
    PollingStatusResponse,
    ReadResponse,
    StatusResponse,
    ZipCreateResponse,
)
from modbus_ethermon.schemas.api_models.types import ModbusRegisterValues, PollResult

__all__ = [
    "ConnectRequest",
    "PollingStartRequest",
    "PollingStopRequest",
    "ReadRequest",
    "WriteRequest",
    "ActionResponse",
    "ErrorResponse",
    "HealthResponse",
    "PollingStatusResponse",
    "ReadResponse",
    "StatusResponse",
    "ZipCreateResponse",
    "ModbusRegisterValues",
    "PollResult",
]
