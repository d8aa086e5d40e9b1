"""
Unit tests for the device registry.

Run with: pytest tests/unit/test_registry.py -v
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from modbus_ethermon.helpers.devices import DeviceRegistry
from modbus_ethermon.schemas.modbus_models import Device
from modbus_ethermon.utils.exceptions import DeviceNotFoundError


def test_load_devices(registry):
    """Devices load with aliases, defaults and register flags."""
    devices = registry.load()
    assert [d.id for d in devices] == ["dev-1", "dev-2", "dev-off"]

    pumps = registry.get_device("dev-2")
    assert pumps.unit_id == 3
    assert [r.name for r in pumps.enabled_registers()] == ["flow", "running", "alarm"]

    meter = registry.get_device("dev-off")
    assert meter.enabled is False
    assert meter.port == 502
    assert meter.unit_id == 1


def test_register_enabled_defaults_to_false():
    device = Device.model_validate({
        "id": "d",
        "name": "d",
        "ip": "127.0.0.1",
        "registers": [{"name": "r", "address": 0, "type": "holding"}],
    })
    assert device.enabled is True
    assert device.enabled_registers() == []


def test_missing_file_yields_empty_list(tmp_path):
    registry = DeviceRegistry(tmp_path / "configs" / "devices.json")
    assert registry.load() == []


def test_malformed_file_yields_empty_list(tmp_path):
    path = tmp_path / "devices.json"
    path.write_text("{not json", encoding="utf-8")
    assert DeviceRegistry(path).load() == []


def test_invalid_device_yields_empty_list(tmp_path):
    path = tmp_path / "devices.json"
    path.write_text(json.dumps([{"id": "x", "registers": []}]), encoding="utf-8")
    assert DeviceRegistry(path).load() == []


def test_load_is_cached_until_forced(registry, settings):
    assert len(registry.load()) == 3
    settings.devices_config_path.write_text(json.dumps([]), encoding="utf-8")

    assert len(registry.load()) == 3
    assert registry.load(force_reload=True) == []


def test_require_device_unknown_id(registry):
    with pytest.raises(DeviceNotFoundError) as exc_info:
        registry.require_device("nope")
    assert exc_info.value.http_status_code == 404


def test_save_round_trips_aliases(registry, settings):
    devices = registry.load()
    registry.save(devices[:1])

    raw = json.loads(settings.devices_config_path.read_text(encoding="utf-8"))
    assert len(raw) == 1
    assert raw[0]["unitId"] == 1
    assert registry.load(force_reload=True)[0].id == "dev-1"


def test_duplicate_device_ids_yield_empty_list(tmp_path):
    path = tmp_path / "devices.json"
    path.write_text(json.dumps([
        {"id": "dup", "name": "a", "ip": "10.0.0.1"},
        {"id": "dup", "name": "b", "ip": "10.0.0.2"},
    ]), encoding="utf-8")
    assert DeviceRegistry(path).load() == []


def test_duplicate_register_names_are_rejected(tmp_path):
    device = {
        "id": "d",
        "name": "d",
        "ip": "127.0.0.1",
        "registers": [
            {"name": "temp", "address": 0, "type": "holding"},
            {"name": "temp", "address": 1, "type": "holding"},
        ],
    }
    with pytest.raises(PydanticValidationError):
        Device.model_validate(device)

    path = tmp_path / "devices.json"
    path.write_text(json.dumps([device]), encoding="utf-8")
    assert DeviceRegistry(path).load() == []
