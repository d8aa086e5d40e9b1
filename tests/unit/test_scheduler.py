"""
Unit tests for the schedule configuration, maintenance jobs and scheduler engine.

Run with: pytest tests/unit/test_scheduler.py -v
"""

import json
from datetime import date

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import ValidationError as PydanticValidationError

from modbus_ethermon.helpers.schedule import load_schedule_config, save_schedule_config
from modbus_ethermon.scheduler import SchedulerEngine, register_maintenance_jobs
from modbus_ethermon.scheduler.engine import _wrap_job
from modbus_ethermon.scheduler.jobs import (
    CLEANUP_JOB_ID,
    DAILY_ARCHIVE_JOB_ID,
    MONTHLY_ZIP_JOB_ID,
    STATS_AUTOSAVE_JOB_ID,
    STATS_ROLL_JOB_ID,
    previous_day,
    previous_month,
    run_daily_archive,
    run_monthly_zip,
)
from modbus_ethermon.schemas.modbus_models import ScheduleConfig, parse_time


def test_schedule_defaults(tmp_path):
    config = load_schedule_config(tmp_path / "schedule.json")

    assert config.archiving.daily_archive.enabled is True
    assert config.archiving.daily_archive.time == "00:05:00"
    assert config.archiving.monthly_zip.day == 1
    assert config.archiving.monthly_zip.time == "01:00:00"
    assert config.archiving.retention.daily_files == 31
    assert config.archiving.retention.monthly_zips == 12


def test_schedule_from_file(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps({
        "archiving": {
            "dailyArchive": {"enabled": False, "time": "02:30:00"},
            "monthlyZip": {"enabled": True, "day": "last", "time": "23:00:00"},
            "retention": {"dailyFiles": 10, "monthlyZips": 3},
        }
    }), encoding="utf-8")

    config = load_schedule_config(path)

    assert config.archiving.daily_archive.enabled is False
    assert config.archiving.monthly_zip.day == "last"
    assert config.archiving.retention.daily_files == 10


def test_malformed_schedule_falls_back_to_defaults(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text("[1, 2", encoding="utf-8")
    assert load_schedule_config(path) == ScheduleConfig()


@pytest.mark.parametrize("payload", [
    {"archiving": {"dailyArchive": {"time": "25:00:00"}}},
    {"archiving": {"monthlyZip": {"day": 32}}},
    {"archiving": {"monthlyZip": {"day": "first"}}},
])
def test_invalid_schedule_values(payload):
    with pytest.raises(PydanticValidationError):
        ScheduleConfig.model_validate(payload)


def test_save_schedule_uses_aliases(tmp_path):
    path = tmp_path / "configs" / "schedule.json"
    save_schedule_config(path, ScheduleConfig())

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["archiving"]["dailyArchive"]["time"] == "00:05:00"
    assert raw["archiving"]["retention"]["monthlyZips"] == 12


def test_parse_time():
    assert parse_time("01:02:03") == (1, 2, 3)


def test_previous_day_and_month():
    assert previous_day(date(2024, 3, 1)) == "2024-02-29"
    assert previous_month(date(2024, 3, 15)) == "202402"
    assert previous_month(date(2024, 1, 1)) == "202312"


def test_run_monthly_zip_without_files(archive):
    assert run_monthly_zip(archive, today=date(2024, 4, 2)) is None
    assert not archive.zip_path("202403").exists()


def test_run_monthly_zip_and_daily_check(archive):
    archive.archives_dir.mkdir(parents=True)
    archive.archive_path("2024-03-31").write_text("{}", encoding="utf-8")

    info = run_monthly_zip(archive, today=date(2024, 4, 1))

    assert info["created"] is True
    assert run_daily_archive(archive, today=date(2024, 4, 1)) is True
    assert run_daily_archive(archive, today=date(2024, 4, 3)) is False


def test_register_maintenance_jobs(archive, stats, settings):
    engine = SchedulerEngine()
    config = ScheduleConfig.model_validate({"archiving": {"monthlyZip": {"day": "last"}}})

    job_ids = register_maintenance_jobs(engine, config, archive, stats, settings)

    assert job_ids == [
        DAILY_ARCHIVE_JOB_ID,
        MONTHLY_ZIP_JOB_ID,
        CLEANUP_JOB_ID,
        STATS_AUTOSAVE_JOB_ID,
        STATS_ROLL_JOB_ID,
    ]
    assert isinstance(engine.get_job(DAILY_ARCHIVE_JOB_ID).trigger, CronTrigger)
    assert "day='last'" in str(engine.get_job(MONTHLY_ZIP_JOB_ID).trigger)
    autosave = engine.get_job(STATS_AUTOSAVE_JOB_ID).trigger
    assert isinstance(autosave, IntervalTrigger)
    assert autosave.interval.total_seconds() == settings.stats_autosave_seconds


def test_disabled_tasks_are_removed_on_reregistration(archive, stats, settings):
    engine = SchedulerEngine()
    register_maintenance_jobs(engine, ScheduleConfig(), archive, stats, settings)

    disabled = ScheduleConfig.model_validate({
        "archiving": {"dailyArchive": {"enabled": False}, "monthlyZip": {"enabled": False}}
    })
    job_ids = register_maintenance_jobs(engine, disabled, archive, stats, settings)

    assert job_ids == [CLEANUP_JOB_ID, STATS_AUTOSAVE_JOB_ID, STATS_ROLL_JOB_ID]
    assert engine.get_job(DAILY_ARCHIVE_JOB_ID) is None
    assert engine.get_job(MONTHLY_ZIP_JOB_ID) is None


@pytest.mark.asyncio
async def test_wrapped_job_logs_instead_of_raising(caplog):
    async def broken():
        raise RuntimeError("boom")

    await _wrap_job(broken, "broken")()

    assert "Error executing job broken: boom" in caplog.text


@pytest.mark.asyncio
async def test_wrapped_sync_job_runs_in_thread():
    calls = []

    def record(value):
        calls.append(value)

    await _wrap_job(record, "record")(5)

    assert calls == [5]


def test_remove_unknown_job():
    assert SchedulerEngine().remove_job("ghost") is False


@pytest.mark.asyncio
async def test_engine_start_and_shutdown():
    engine = SchedulerEngine()
    engine.start()
    assert engine.running
    await engine.shutdown()
    assert not engine.running
