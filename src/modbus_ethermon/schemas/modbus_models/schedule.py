"""Archiving schedule configuration (configs/schedule.json)."""

import re
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]?\d):([0-5]?\d)$")


def _validate_time(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time '{value}', expected HH:MM:SS")
    return value


class DailyArchiveConfig(BaseModel):
    enabled: bool = True
    time: str = "00:05:00"

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_time(v)


class MonthlyZipConfig(BaseModel):
    enabled: bool = True
    day: Union[int, str] = Field(default=1, description="Day of month or 'last'")
    time: str = "01:00:00"

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_time(v)

    @field_validator("day")
    @classmethod
    def validate_day(cls, v: Union[int, str]) -> Union[int, str]:
        if isinstance(v, str):
            if v == "last":
                return v
            if not v.isdigit():
                raise ValueError(f"Invalid day '{v}', expected 1-31 or 'last'")
            v = int(v)
        if not 1 <= v <= 31:
            raise ValueError(f"Invalid day {v}, expected 1-31 or 'last'")
        return v


class RetentionConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_files: int = Field(default=31, ge=0, alias="dailyFiles")
    monthly_zips: int = Field(default=12, ge=0, alias="monthlyZips")


class ArchivingConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_archive: DailyArchiveConfig = Field(default_factory=DailyArchiveConfig, alias="dailyArchive")
    monthly_zip: MonthlyZipConfig = Field(default_factory=MonthlyZipConfig, alias="monthlyZip")
    retention: RetentionConfig = Field(default_factory=RetentionConfig)


class ScheduleConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    archiving: ArchivingConfig = Field(default_factory=ArchivingConfig)


def parse_time(value: str) -> tuple[int, int, int]:
    """Split a validated HH:MM:SS string into (hour, minute, second)."""
    hour, minute, second = (int(part) for part in value.split(":"))
    return hour, minute, second
