"""
Application configuration using Pydantic Settings.

Environment-driven configuration with validation and type safety.
"""

from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Modbus Configuration
    modbus_timeout_s: float = Field(default=5.0, alias="MODBUS_TIMEOUT_S")
    modbus_retries: int = Field(default=3, alias="MODBUS_RETRIES")

    # Server Configuration
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=3000, alias="API_PORT")
    api_reload: bool = Field(default=False, alias="API_RELOAD")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Path = Field(default=Path("logs"), alias="LOG_DIR")
    log_to_file: bool = Field(default=True, alias="LOG_TO_FILE")

    # Storage Layout
    data_dir: Path = Field(default=Path("."), alias="DATA_DIR")
    configs_dir_name: str = Field(default="configs", alias="CONFIGS_DIR")
    archives_dir_name: str = Field(default="archives", alias="ARCHIVES_DIR")

    # Polling Configuration
    poll_interval_ms: int = Field(default=5000, ge=100, alias="POLL_INTERVAL_MS")
    poll_autostart: bool = Field(default=False, alias="POLL_AUTOSTART")

    # Statistics Configuration
    stats_enabled: bool = Field(default=True, alias="STATS_ENABLED")
    stats_autosave_seconds: int = Field(default=300, ge=1, alias="STATS_AUTOSAVE_SECONDS")
    hourly_stats_retention_days: int = Field(default=7, ge=1, alias="HOURLY_STATS_RETENTION_DAYS")

    # Scheduler Configuration
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")

    @property
    def configs_dir(self) -> Path:
        return self.data_dir / self.configs_dir_name

    @property
    def archives_dir(self) -> Path:
        return self.data_dir / self.archives_dir_name

    @property
    def devices_config_path(self) -> Path:
        return self.configs_dir / "devices.json"

    @property
    def schedule_config_path(self) -> Path:
        return self.configs_dir / "schedule.json"

    @property
    def stats_path(self) -> Path:
        return self.configs_dir / "stats.json"

    @property
    def hourly_stats_path(self) -> Path:
        return self.configs_dir / "hourly-stats.json"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True


# Global settings instance
settings = Settings()
