"""API response models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from modbus_ethermon.schemas.api_models.types import ModbusRegisterValues


class HealthResponse(BaseModel):
    """Response model for health check."""
    ok: bool
    timestamp: str = Field(..., description="ISO format timestamp of the check")
    detail: Optional[str] = None


class StatusResponse(BaseModel):
    """Response model for the service status overview."""
    ok: bool
    timestamp: str
    connected: bool = Field(..., description="Whether the shared Modbus session is open")
    connected_device: Optional[str] = Field(None, alias="connectedDevice")
    devices: int = Field(..., description="Number of configured devices")
    polling: Dict[str, int] = Field(
        default_factory=dict, description="Device ids being polled, with their interval in milliseconds"
    )
    scheduler_running: bool = Field(..., alias="schedulerRunning")

    model_config = {
        "populate_by_name": True,
    }


class ActionResponse(BaseModel):
    """Generic response for commands without a payload."""
    success: bool
    message: str


class ReadResponse(BaseModel):
    """Response model for a one-off register read."""
    success: bool
    device_id: str = Field(..., alias="deviceId")
    register_type: str = Field(..., alias="registerType")
    address: int
    length: int
    timestamp: str = Field(..., description="ISO format timestamp of when the read completed")
    value: ModbusRegisterValues

    model_config = {
        "populate_by_name": True,
    }


class PollingStatusResponse(BaseModel):
    """Response model listing the active poll jobs."""
    polling: Dict[str, int]


class ZipCreateResponse(BaseModel):
    """Response model for a monthly zip request."""
    success: bool
    message: str
    file: str
    month: str
    size: int
    files: int
    created: bool


class ErrorResponse(BaseModel):
    """Body returned for handled application errors."""
    error: str
    detail: Optional[Any] = None
