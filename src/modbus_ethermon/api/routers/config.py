"""Read and replace the JSON configuration files."""

from typing import Any, List

from fastapi import APIRouter, Body, Depends
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from modbus_ethermon.api.dependencies import Services, get_services
from modbus_ethermon.helpers.devices import duplicate_device_ids
from modbus_ethermon.helpers.schedule import load_schedule_config, save_schedule_config
from modbus_ethermon.logging import get_logger
from modbus_ethermon.scheduler import register_maintenance_jobs
from modbus_ethermon.schemas.api_models import ActionResponse
from modbus_ethermon.schemas.modbus_models import Device, ScheduleConfig
from modbus_ethermon.utils.exceptions import NotFoundError, ValidationError

logger = get_logger(__name__)

router = APIRouter()

CONFIG_TYPES = ("devices", "schedule")

_device_list_adapter = TypeAdapter(List[Device])


def _check_config_type(config_type: str) -> None:
    if config_type not in CONFIG_TYPES:
        raise NotFoundError(f"Unknown configuration type: {config_type}", {"type": config_type})


@router.get("/{config_type}")
async def get_config(config_type: str, services: Services = Depends(get_services)) -> Any:
    _check_config_type(config_type)
    if config_type == "devices":
        return [device.model_dump(mode="json", by_alias=True) for device in services.registry.load()]
    schedule = load_schedule_config(services.settings.schedule_config_path)
    return schedule.model_dump(mode="json", by_alias=True)


@router.put("/{config_type}", response_model=ActionResponse)
async def update_config(
    config_type: str,
    payload: Any = Body(...),
    services: Services = Depends(get_services)
):
    """
    Replace a configuration file.

    Saving `devices` refreshes the registry; running poll jobs pick up the new
    definitions on their next tick. Saving `schedule` re-registers the
    maintenance jobs.
    """
    _check_config_type(config_type)

    try:
        if config_type == "devices":
            devices = _device_list_adapter.validate_python(payload)
        else:
            schedule = ScheduleConfig.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {config_type} configuration",
            {"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        ) from e

    if config_type == "devices":
        duplicates = duplicate_device_ids(devices)
        if duplicates:
            raise ValidationError("Duplicate device id(s) in devices configuration", {"duplicates": duplicates})
        services.registry.save(devices)
    else:
        save_schedule_config(services.settings.schedule_config_path, schedule)
        if services.settings.scheduler_enabled:
            register_maintenance_jobs(
                services.engine, schedule, services.archive, services.stats, services.settings
            )

    logger.info(f"Configuration '{config_type}' updated")
    return ActionResponse(success=True, message=f"Configuration '{config_type}' updated")
