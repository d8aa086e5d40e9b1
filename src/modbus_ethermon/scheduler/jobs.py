"""Archive maintenance and statistics housekeeping jobs."""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from modbus_ethermon.archive import ArchiveStore, ZipInfo
from modbus_ethermon.config import Settings
from modbus_ethermon.logging import get_logger
from modbus_ethermon.scheduler.engine import SchedulerEngine
from modbus_ethermon.schemas.modbus_models import ScheduleConfig, parse_time
from modbus_ethermon.stats import StatsBackend
from modbus_ethermon.utils.exceptions import ArchiveNotFoundError

logger = get_logger(__name__)

DAILY_ARCHIVE_JOB_ID = "archive:daily"
MONTHLY_ZIP_JOB_ID = "archive:monthly-zip"
CLEANUP_JOB_ID = "archive:cleanup"
STATS_AUTOSAVE_JOB_ID = "stats:autosave"
STATS_ROLL_JOB_ID = "stats:hourly-roll"

CLEANUP_TIME = "01:00:00"


def previous_day(today: date) -> str:
    return (today - timedelta(days=1)).isoformat()


def previous_month(today: date) -> str:
    """Month before `today` as YYYYMM."""
    last_day_of_previous = today.replace(day=1) - timedelta(days=1)
    return f"{last_day_of_previous.year:04d}{last_day_of_previous.month:02d}"


def run_daily_archive(archive: ArchiveStore, today: Optional[date] = None) -> bool:
    """Check that yesterday's archive file was written."""
    today = today or datetime.now(timezone.utc).date()
    date_str = previous_day(today)
    logger.info(f"Running daily archive task for {date_str}")
    return archive.check_daily_archive(date_str)


def run_monthly_zip(archive: ArchiveStore, today: Optional[date] = None) -> Optional[ZipInfo]:
    """Bundle last month's daily files; an existing zip is left alone."""
    today = today or datetime.now(timezone.utc).date()
    month = previous_month(today)
    logger.info(f"Running monthly zip task for {month}")
    try:
        return archive.create_monthly_zip(month, overwrite=False)
    except ArchiveNotFoundError as e:
        logger.warning(f"Monthly zip for {month} skipped: {e.message}")
        return None


def run_cleanup(archive: ArchiveStore, retention_days: int, retention_zips: int) -> List[str]:
    return archive.cleanup_old_archives(retention_days, retention_zips)


def _cron_at(time_str: str, **fields) -> CronTrigger:
    hour, minute, second = parse_time(time_str)
    return CronTrigger(hour=hour, minute=minute, second=second, **fields)


def register_maintenance_jobs(
    engine: SchedulerEngine,
    schedule_config: ScheduleConfig,
    archive: ArchiveStore,
    stats: StatsBackend,
    settings: Settings
) -> List[str]:
    """
    Register the archive and statistics jobs with the engine.

    Args:
        engine: Scheduler engine
        schedule_config: Archiving schedule (configs/schedule.json)
        archive: Archive store the archive jobs operate on
        stats: Statistics backend to autosave and roll
        settings: Application settings (autosave interval)

    Returns:
        Ids of the registered jobs
    """
    archiving = schedule_config.archiving
    job_ids: List[str] = []

    if archiving.daily_archive.enabled:
        engine.add_job(
            run_daily_archive,
            trigger=_cron_at(archiving.daily_archive.time),
            job_id=DAILY_ARCHIVE_JOB_ID,
            name="Daily archive check",
            args=[archive]
        )
        job_ids.append(DAILY_ARCHIVE_JOB_ID)
    else:
        engine.remove_job(DAILY_ARCHIVE_JOB_ID)
        logger.info("Daily archive task disabled")

    if archiving.monthly_zip.enabled:
        engine.add_job(
            run_monthly_zip,
            trigger=_cron_at(archiving.monthly_zip.time, day=archiving.monthly_zip.day),
            job_id=MONTHLY_ZIP_JOB_ID,
            name="Monthly archive zip",
            args=[archive]
        )
        job_ids.append(MONTHLY_ZIP_JOB_ID)
    else:
        engine.remove_job(MONTHLY_ZIP_JOB_ID)
        logger.info("Monthly zip task disabled")

    engine.add_job(
        run_cleanup,
        trigger=_cron_at(CLEANUP_TIME),
        job_id=CLEANUP_JOB_ID,
        name="Archive retention cleanup",
        args=[archive, archiving.retention.daily_files, archiving.retention.monthly_zips]
    )
    job_ids.append(CLEANUP_JOB_ID)

    # Stats are only mutated on the event loop thread
    async def autosave_stats() -> None:
        stats.save()

    async def roll_hourly_stats() -> None:
        stats.roll_hourly_window()

    engine.add_job(
        autosave_stats,
        trigger=IntervalTrigger(seconds=settings.stats_autosave_seconds),
        job_id=STATS_AUTOSAVE_JOB_ID,
        name="Stats autosave",
        coalesce=True
    )
    job_ids.append(STATS_AUTOSAVE_JOB_ID)

    engine.add_job(
        roll_hourly_stats,
        trigger=CronTrigger(minute=0),
        job_id=STATS_ROLL_JOB_ID,
        name="Hourly stats roll",
        coalesce=True
    )
    job_ids.append(STATS_ROLL_JOB_ID)

    logger.info(f"Registered {len(job_ids)} maintenance job(s)")
    return job_ids
