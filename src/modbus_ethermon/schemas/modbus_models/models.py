"""Modbus device and register configuration models."""

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

HOLDING = "holding"
INPUT = "input"
COIL = "coil"
DISCRETE = "discrete"

REGISTER_TYPES = (HOLDING, INPUT, COIL, DISCRETE)

DEFAULT_MODBUS_PORT = 502
DEFAULT_UNIT_ID = 1


class Register(BaseModel):
    """
    Schema for a single Modbus register entry of a device.

    `type` is a plain string; registers of an unknown type load and are
    skipped by the poller.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., description="Register name, unique within the device")
    address: int = Field(..., ge=0, le=65535, description="Modbus register address")
    type: str = Field(..., description="Register type: holding, input, coil or discrete")
    length: int = Field(default=1, ge=1, le=2000, description="Number of registers/bits to read")
    enabled: bool = Field(default=False, description="Whether the register is polled")
    data_type: Optional[str] = Field(default=None, alias="dataType", description="Data type interpretation")
    unit: Optional[str] = Field(default=None, description="Physical unit (e.g., 'V', 'A', 'kW')")
    multiplier: Optional[float] = Field(default=None, description="Scale factor to apply to raw value")


class Device(BaseModel):
    """Schema for a Modbus TCP device and its register map."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., description="Unique device identifier")
    name: str = Field(..., description="Human-readable device name")
    ip: str = Field(..., description="Device hostname or IP address")
    port: int = Field(default=DEFAULT_MODBUS_PORT, ge=1, le=65535, description="Modbus TCP port")
    unit_id: int = Field(default=DEFAULT_UNIT_ID, ge=0, le=255, alias="unitId", description="Modbus unit/slave ID")
    enabled: bool = Field(default=True, description="Whether the device may be polled")
    registers: List[Register] = Field(default_factory=list, description="Register map in polling order")

    @model_validator(mode="after")
    def check_unique_register_names(self) -> "Device":
        seen = set()
        for register in self.registers:
            if register.name in seen:
                raise ValueError(f"Duplicate register name '{register.name}' in device {self.id}")
            seen.add(register.name)
        return self

    def enabled_registers(self) -> List[Register]:
        return [r for r in self.registers if r.enabled]


class Reading(BaseModel):
    """Latest value read from one register."""
    value: List[Union[bool, int]] = Field(..., description="Raw register words or bits")
    timestamp: str = Field(..., description="ISO-8601 timestamp of the read")
    address: int
    type: str
