"""Device registry backed by configs/devices.json."""

from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from modbus_ethermon.helpers.config_files import read_json_config, write_json_config
from modbus_ethermon.logging import get_logger
from modbus_ethermon.schemas.modbus_models import Device
from modbus_ethermon.utils.exceptions import ConfigMissingError, ConfigParseError, DeviceNotFoundError

logger = get_logger(__name__)

_device_list_adapter = TypeAdapter(List[Device])


def duplicate_device_ids(devices: List[Device]) -> List[str]:
    """Ids used by more than one device, in first-seen order."""
    seen = set()
    duplicates: List[str] = []
    for device in devices:
        if device.id in seen and device.id not in duplicates:
            duplicates.append(device.id)
        seen.add(device.id)
    return duplicates


class DeviceRegistry:
    """
    Loads and caches device definitions.

    The list is read lazily on first access and kept until a forced reload.
    Load failures never propagate: a missing or malformed file yields an
    empty device list.
    """

    def __init__(self, devices_path: Path):
        self.devices_path = devices_path
        self._devices: List[Device] = []

    def load(self, force_reload: bool = False) -> List[Device]:
        """
        Return the device list, reading the configuration on cache miss.

        Args:
            force_reload: Re-read the configuration even if devices are cached

        Returns:
            List of devices (empty if the configuration is absent or invalid)
        """
        if self._devices and not force_reload:
            return self._devices

        try:
            self._devices = self._read_devices()
            logger.info(f"Loaded configuration for {len(self._devices)} device(s) from {self.devices_path}")
        except ConfigMissingError:
            logger.warning(f"Device configuration not found: {self.devices_path}")
            self._devices = []
        except ConfigParseError as e:
            logger.error(f"Error loading device configuration: {e.message}")
            self._devices = []

        return self._devices

    def _read_devices(self) -> List[Device]:
        raw = read_json_config(self.devices_path)
        try:
            devices = _device_list_adapter.validate_python(raw)
        except PydanticValidationError as e:
            raise ConfigParseError(
                f"Invalid device configuration in {self.devices_path}: {e.error_count()} error(s)",
                {"errors": e.errors(include_url=False, include_context=False, include_input=False)}
            ) from e

        duplicates = duplicate_device_ids(devices)
        if duplicates:
            raise ConfigParseError(
                f"Duplicate device id(s) in {self.devices_path}: {', '.join(duplicates)}",
                {"duplicates": duplicates}
            )
        return devices

    def get_device(self, device_id: str) -> Optional[Device]:
        for device in self.load():
            if device.id == device_id:
                return device
        return None

    def require_device(self, device_id: str) -> Device:
        """
        Get a device by id.

        Raises:
            DeviceNotFoundError: If no device has this id
        """
        device = self.get_device(device_id)
        if device is None:
            raise DeviceNotFoundError(f"Device with ID {device_id} not found", {"device_id": device_id})
        return device

    def save(self, devices: List[Device]) -> List[Device]:
        """Persist a new device list and replace the cached one."""
        write_json_config(
            self.devices_path,
            [device.model_dump(mode="json", by_alias=True) for device in devices]
        )
        self._devices = list(devices)
        logger.info(f"Saved configuration for {len(devices)} device(s) to {self.devices_path}")
        return self._devices
