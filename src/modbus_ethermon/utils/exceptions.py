"""
Custom application exceptions.

Provides a structured way to handle errors across the application layers.
"""

from typing import Any, Optional, Dict
from fastapi import status


class AppError(Exception):
    """Base class for all application errors."""
    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""
    http_status_code = status.HTTP_404_NOT_FOUND


class DeviceNotFoundError(NotFoundError):
    """Raised when a device id is not present in the device configuration."""


class ArchiveNotFoundError(NotFoundError):
    """Raised when a daily archive, monthly zip or its source files are missing."""


class ValidationError(AppError):
    """Raised when input validation fails in the logic layer."""
    http_status_code = status.HTTP_400_BAD_REQUEST


class InternalError(AppError):
    """Raised for unexpected internal errors."""
    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigError(AppError):
    """Base class for configuration file problems. Callers degrade to defaults."""


class ConfigMissingError(ConfigError):
    """Raised when a configuration file does not exist."""


class ConfigParseError(ConfigError):
    """Raised when a configuration file is not valid JSON or fails validation."""
