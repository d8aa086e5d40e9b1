"""API request models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class ConnectRequest(BaseModel):
    """Request model for opening the shared session to a device."""
    device_id: str = Field(..., alias="deviceId", min_length=1, description="Configured device id")

    model_config = {
        "populate_by_name": True,
    }


class ReadRequest(BaseModel):
    """Request model for a one-off register read."""
    device_id: str = Field(..., alias="deviceId", min_length=1, description="Configured device id")
    register_type: Literal["holding", "input", "coil", "discrete"] = Field(
        ..., alias="registerType", description="Type of register to read"
    )
    address: int = Field(..., ge=0, le=65535, description="Starting address")
    length: int = Field(default=1, ge=1, le=2000, description="Number of registers/bits to read")

    model_config = {
        "populate_by_name": True,
    }


class WriteRequest(BaseModel):
    """Request model for a one-off holding register write."""
    device_id: str = Field(..., alias="deviceId", min_length=1, description="Configured device id")
    address: int = Field(..., ge=0, le=65535, description="Register address")
    value: Optional[int] = Field(None, ge=0, le=65535, description="Single value to write")
    values: Optional[List[int]] = Field(
        None, min_length=1, description="Consecutive values to write starting at address"
    )

    model_config = {
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def check_value_or_values(self) -> "WriteRequest":
        if self.value is None and not self.values:
            raise ValueError("Either value or values is required")
        if self.values and any(v < 0 or v > 65535 for v in self.values):
            raise ValueError("Register values must be between 0 and 65535")
        return self


class PollingStartRequest(BaseModel):
    """Request model for starting periodic polling of a device."""
    device_id: str = Field(..., alias="deviceId", min_length=1, description="Configured device id")
    interval: Optional[int] = Field(
        None, gt=0, description="Poll interval in milliseconds (defaults to POLL_INTERVAL_MS)"
    )

    model_config = {
        "populate_by_name": True,
    }


class PollingStopRequest(BaseModel):
    """Request model for stopping periodic polling of a device."""
    device_id: str = Field(..., alias="deviceId", min_length=1, description="Configured device id")

    model_config = {
        "populate_by_name": True,
    }
