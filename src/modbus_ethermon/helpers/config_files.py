"""JSON configuration file access shared by the device registry, schedule and stats."""

import json
import os
from pathlib import Path
from typing import Any

from modbus_ethermon.utils.exceptions import ConfigMissingError, ConfigParseError


def read_json_config(path: Path) -> Any:
    """
    Read and parse a JSON configuration file.

    Raises:
        ConfigMissingError: If the file does not exist
        ConfigParseError: If the file cannot be read or is not valid JSON
    """
    if not path.exists():
        raise ConfigMissingError(f"Configuration file not found: {path}", {"path": str(path)})
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigParseError(f"Failed to parse {path}: {e}", {"path": str(path)}) from e


def write_json_config(path: Path, data: Any) -> None:
    """
    Write data as pretty-printed JSON, creating the parent directory if needed.

    The content goes to a sibling temp file first and is then moved into place.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)
