"""Loading and saving of the archiving schedule configuration."""

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from modbus_ethermon.helpers.config_files import read_json_config, write_json_config
from modbus_ethermon.logging import get_logger
from modbus_ethermon.schemas.modbus_models import ScheduleConfig
from modbus_ethermon.utils.exceptions import ConfigMissingError, ConfigParseError

logger = get_logger(__name__)


def load_schedule_config(path: Path) -> ScheduleConfig:
    """
    Load schedule.json, falling back to defaults when it is absent or invalid.
    """
    try:
        raw = read_json_config(path)
        return ScheduleConfig.model_validate(raw)
    except ConfigMissingError:
        logger.warning(f"Schedule configuration not found: {path}, using defaults")
    except ConfigParseError as e:
        logger.error(f"Error loading schedule configuration: {e.message}, using defaults")
    except PydanticValidationError as e:
        logger.error(f"Invalid schedule configuration in {path}: {e}, using defaults")
    return ScheduleConfig()


def save_schedule_config(path: Path, config: ScheduleConfig) -> None:
    write_json_config(path, config.model_dump(mode="json", by_alias=True))
    logger.info(f"Saved schedule configuration to {path}")
