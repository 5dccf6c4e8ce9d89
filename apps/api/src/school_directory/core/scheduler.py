"""
Background Job Scheduler

Provides scheduled task execution using APScheduler with AsyncIO support.
Handles job registration, execution, and graceful shutdown.

Design Principles:
- Jobs are idempotent (safe to run multiple times)
- Failed jobs are logged but don't crash the scheduler
- Jobs can be triggered manually for testing
- Scheduler integrates with FastAPI lifespan

Usage:
    from school_directory.core.scheduler import register_job, start_scheduler, stop_scheduler

    # In FastAPI lifespan:
    async def lifespan(app):
        register_job("my_job", my_job, IntervalTrigger(hours=1))
        await start_scheduler()
        yield
        await stop_scheduler()
"""

import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]

# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None

# Job registry for deferred scheduling and manual triggering
_job_registry: dict[str, tuple[JobFunc, BaseTrigger]] = {}


class SchedulerConfig:
    """Configuration for the background scheduler."""

    # Default timezone for job scheduling
    TIMEZONE = "UTC"

    # Job execution settings
    JOB_COALESCE = True  # Combine multiple missed executions into one
    JOB_MAX_INSTANCES = 1  # Only one instance of each job can run at a time
    JOB_MISFIRE_GRACE_TIME = 60 * 5  # 5 minutes grace time for missed jobs

    JOB_DEFAULTS = {
        "coalesce": JOB_COALESCE,
        "max_instances": JOB_MAX_INSTANCES,
        "misfire_grace_time": JOB_MISFIRE_GRACE_TIME,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    """
    Listener for job execution events.

    Logs job execution results for monitoring and debugging.
    """
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now(UTC).isoformat()}")


def get_scheduler() -> AsyncIOScheduler | None:
    """Get the global scheduler instance, or None if not started."""
    return _scheduler


def _add_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    _scheduler.add_job(
        func,
        trigger=trigger,
        id=job_id,
        replace_existing=True,
    )
    logger.info(f"Scheduled job: {job_id}")


async def start_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the background scheduler.

    Jobs registered before this call are added to the scheduler here.

    Returns:
        The started scheduler instance
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    logger.info("Initializing background job scheduler...")

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )

    # Add event listeners for monitoring
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job_id, (func, trigger) in _job_registry.items():
        _add_job(job_id, func, trigger)

    _scheduler.start()

    logger.info(f"Background job scheduler started with {len(_job_registry)} jobs")
    return _scheduler


async def stop_scheduler() -> None:
    """
    Stop the background scheduler gracefully.

    Waits for currently running jobs to complete before shutting down.
    """
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        _scheduler = None
        return

    logger.info("Stopping background job scheduler...")
    _scheduler.shutdown(wait=True)
    logger.info("Background job scheduler stopped")
    _scheduler = None


def register_job(
    job_id: str,
    func: JobFunc,
    trigger: BaseTrigger,
) -> None:
    """
    Register a job with the scheduler.

    Can be called before or after the scheduler starts. Registering the same
    job_id again replaces the previous job.

    Args:
        job_id: Unique identifier for the job
        func: Async function to execute
        trigger: APScheduler trigger (IntervalTrigger, CronTrigger, etc.)
    """
    _job_registry[job_id] = (func, trigger)

    if _scheduler is not None and _scheduler.running:
        _add_job(job_id, func, trigger)
    else:
        logger.debug(f"Scheduler not started, job {job_id} will be scheduled on start")


def clear_registry() -> None:
    """Forget all registered jobs. Used on shutdown and in tests."""
    _job_registry.clear()


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Trigger a job manually for testing or maintenance purposes.

    This bypasses the scheduler and runs the job function directly.

    Returns:
        Dict with execution result including:
        - job_id: The job ID
        - status: "success" or "error"
        - executed_at: Execution timestamp
        - result: Value returned by the job (on success)
        - error: Error message (on failure)

    Raises:
        ValueError: If job_id is not found in the registry
    """
    if job_id not in _job_registry:
        raise ValueError(
            f"Job {job_id} not found in registry. Available jobs: {list(_job_registry.keys())}"
        )

    func, _ = _job_registry[job_id]
    executed_at = datetime.now(UTC)

    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await func()
        logger.info(f"Manual execution of job {job_id} completed successfully")
        return {
            "job_id": job_id,
            "status": "success",
            "executed_at": executed_at.isoformat(),
            "result": result,
        }
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }


def list_registered_jobs() -> list[dict[str, Any]]:
    """
    List all registered jobs and their status.

    Returns:
        List of job information dicts containing job_id and next_run_time
    """
    jobs = []

    for job_id in _job_registry:
        job_info: dict[str, Any] = {"job_id": job_id, "next_run_time": None}

        if _scheduler is not None:
            scheduled_job = _scheduler.get_job(job_id)
            if scheduled_job and scheduled_job.next_run_time:
                job_info["next_run_time"] = scheduled_job.next_run_time.isoformat()

        jobs.append(job_info)

    return jobs
