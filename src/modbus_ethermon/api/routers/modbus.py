"""Modbus device, data, polling and statistics endpoints."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from modbus_ethermon.api.dependencies import get_manager, get_registry, get_stats_backend
from modbus_ethermon.helpers.date_time import utc_now_iso
from modbus_ethermon.helpers.devices import DeviceRegistry
from modbus_ethermon.logging import get_logger
from modbus_ethermon.polling import PollingManager
from modbus_ethermon.schemas.api_models import (
    ActionResponse,
    ConnectRequest,
    PollingStartRequest,
    PollingStatusResponse,
    PollingStopRequest,
    ReadRequest,
    ReadResponse,
    WriteRequest,
)
from modbus_ethermon.schemas.modbus_models import Device
from modbus_ethermon.stats import StatsBackend
from modbus_ethermon.utils.exceptions import InternalError, NotFoundError

logger = get_logger(__name__)

router = APIRouter()


# Devices

@router.get("/devices", response_model=List[Device], response_model_by_alias=True)
async def list_devices(registry: DeviceRegistry = Depends(get_registry)):
    return registry.load()


@router.post("/devices/reload", response_model=List[Device], response_model_by_alias=True)
async def reload_devices(registry: DeviceRegistry = Depends(get_registry)):
    """Re-read configs/devices.json."""
    return registry.load(force_reload=True)


@router.get("/devices/{device_id}", response_model=Device, response_model_by_alias=True)
async def get_device(device_id: str, registry: DeviceRegistry = Depends(get_registry)):
    return registry.require_device(device_id)


# Latest data

@router.get("/data")
async def get_all_device_data(manager: PollingManager = Depends(get_manager)) -> Dict[str, Any]:
    return manager.get_all_device_data()


@router.get("/data/{device_id}")
async def get_device_data(device_id: str, manager: PollingManager = Depends(get_manager)) -> Dict[str, Any]:
    """Latest reading of every register of a device; 404 until the first successful read."""
    data = manager.get_device_data(device_id)
    if not data:
        raise NotFoundError(f"No data for device {device_id}", {"device_id": device_id})
    return data


# Session control

@router.post("/connect", response_model=ActionResponse)
async def connect(request: ConnectRequest, manager: PollingManager = Depends(get_manager)):
    device = await manager.connect_device(request.device_id)
    return ActionResponse(success=True, message=f"Connected to device {device.name}")


@router.post("/disconnect", response_model=ActionResponse)
async def disconnect(manager: PollingManager = Depends(get_manager)):
    await manager.disconnect()
    return ActionResponse(success=True, message="Disconnected")


@router.post("/read", response_model=ReadResponse, response_model_by_alias=True)
async def read_registers(request: ReadRequest, manager: PollingManager = Depends(get_manager)):
    """
    Read registers of a configured device once.

    Supports four types of reads:
    - holding: Holding registers (function code 3)
    - input: Input registers (function code 4)
    - coil: Coils (function code 1)
    - discrete: Discrete inputs (function code 2)
    """
    value = await manager.read_registers(
        request.device_id,
        request.register_type,
        request.address,
        request.length
    )
    return ReadResponse(
        success=True,
        device_id=request.device_id,
        register_type=request.register_type,
        address=request.address,
        length=request.length,
        timestamp=utc_now_iso(),
        value=value
    )


@router.post("/write", response_model=ActionResponse)
async def write_registers(request: WriteRequest, manager: PollingManager = Depends(get_manager)):
    """Write one holding register (`value`) or consecutive ones (`values`)."""
    success = await manager.write_registers(
        request.device_id,
        request.address,
        value=request.value,
        values=request.values
    )
    if not success:
        raise InternalError(
            f"Failed to write register {request.address}",
            {"device_id": request.device_id, "address": request.address}
        )
    return ActionResponse(success=True, message=f"Wrote register {request.address}")


# Polling

@router.post("/polling/start", response_model=ActionResponse)
async def start_polling(request: PollingStartRequest, manager: PollingManager = Depends(get_manager)):
    manager.start_polling(request.device_id, request.interval)
    interval = manager.active_polls()[request.device_id]
    return ActionResponse(success=True, message=f"Started polling device {request.device_id} every {interval} ms")


@router.post("/polling/stop", response_model=ActionResponse)
async def stop_polling(request: PollingStopRequest, manager: PollingManager = Depends(get_manager)):
    if manager.stop_polling(request.device_id):
        return ActionResponse(success=True, message=f"Stopped polling device {request.device_id}")
    return ActionResponse(success=True, message=f"Device {request.device_id} was not being polled")


@router.get("/polling", response_model=PollingStatusResponse)
async def polling_status(manager: PollingManager = Depends(get_manager)):
    return PollingStatusResponse(polling=manager.active_polls())


# Statistics

@router.get("/stats")
async def get_stats(stats: StatsBackend = Depends(get_stats_backend)) -> Dict[str, Any]:
    return stats.get_stats()


@router.get("/stats/hourly")
async def get_hourly_stats(stats: StatsBackend = Depends(get_stats_backend)) -> List[Dict[str, Any]]:
    return stats.get_hourly_stats()


@router.get("/stats/device/{device_id}")
async def get_device_stats(device_id: str, stats: StatsBackend = Depends(get_stats_backend)) -> Dict[str, Any]:
    return stats.get_device_stats(device_id)


@router.post("/stats/reset", response_model=ActionResponse)
async def reset_stats(stats: StatsBackend = Depends(get_stats_backend)):
    stats.reset_stats()
    return ActionResponse(success=True, message="Statistics reset")
