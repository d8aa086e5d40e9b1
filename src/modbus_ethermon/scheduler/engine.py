"""APScheduler engine initialization and lifecycle management."""

import asyncio
import inspect
from typing import Any, Callable, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from modbus_ethermon.logging import get_logger

logger = get_logger(__name__)


def _wrap_job(job_func: Callable, job_id: str) -> Callable:
    """
    Wrap a job function so that failures are logged instead of reaching the scheduler.

    Synchronous job functions run in a worker thread.

    Args:
        job_func: Original job function (sync or async)
        job_id: Job identifier

    Returns:
        Async function that APScheduler can invoke
    """
    async def wrapped_job(*args: Any, **kwargs: Any) -> None:
        try:
            logger.debug(f"Executing scheduled job: {job_id}")
            if inspect.iscoroutinefunction(job_func):
                await job_func(*args, **kwargs)
            else:
                await asyncio.to_thread(job_func, *args, **kwargs)
        except Exception as e:
            logger.error(f"Error executing job {job_id}: {e}", exc_info=True)

    return wrapped_job


class SchedulerEngine:
    """
    Owns one AsyncIOScheduler.

    Jobs may be added before start(); they are scheduled once the engine starts.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        if self.scheduler.running:
            return
        self.scheduler.start()
        logger.info("APScheduler started")

    async def shutdown(self) -> None:
        """
        Stop the scheduler without waiting for running jobs.

        AsyncIOScheduler queues its shutdown on the event loop; one loop turn
        lets it run before this returns.
        """
        if not self.scheduler.running:
            return
        try:
            self.scheduler.shutdown(wait=False)
            await asyncio.sleep(0)
        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}", exc_info=True)
            return
        if self.scheduler.running:
            logger.warning("APScheduler still running after shutdown request")
        else:
            logger.info("APScheduler stopped")

    def add_job(
        self,
        job_func: Callable,
        trigger: Any,
        job_id: str,
        name: Optional[str] = None,
        **kwargs: Any
    ) -> Job:
        """
        Add a job to the scheduler with automatic error logging.

        Args:
            job_func: Function to execute (sync or async)
            trigger: APScheduler trigger (e.g., IntervalTrigger, CronTrigger)
            job_id: Unique job identifier; an existing job with this id is replaced
            name: Human-readable job name (defaults to job_id)
            **kwargs: Additional job parameters
        """
        job = self.scheduler.add_job(
            _wrap_job(job_func, job_id),
            trigger=trigger,
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            **kwargs
        )
        logger.info(f"Registered scheduled job: {job_id} ({name or job_id})")
        return job

    def remove_job(self, job_id: str) -> bool:
        """Remove a job. Returns False if no such job exists."""
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            return False
        logger.info(f"Removed scheduled job: {job_id}")
        return True

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.scheduler.get_job(job_id)
