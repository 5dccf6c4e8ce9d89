"""
Authentication Background Jobs

Scheduled tasks for the one-time code ledger:
1. Purge expired and used verification codes

Design Principles:
- Jobs are idempotent (safe to run multiple times)
- Jobs open their own session from the injected Database handle
- Failures are logged and reported in the result, never raised to the scheduler
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from school_directory.core.config import settings
from school_directory.core.database import Database
from school_directory.core.scheduler import register_job
from school_directory.modules.auth import repository

logger = logging.getLogger(__name__)

# Job IDs for registration and manual triggering
JOB_ID_PURGE_STALE_OTP_CODES = "auth_purge_stale_otp_codes"


async def purge_stale_otp_codes(database: Database) -> dict[str, Any]:
    """
    Delete verification codes that are expired or already used.

    Returns:
        Dict with job execution summary including:
        - executed_at: When the job ran
        - total_deleted: Number of codes removed
        - total_errors: 1 if the purge failed, else 0
    """
    executed_at = datetime.now(UTC)
    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "total_deleted": 0,
        "total_errors": 0,
    }

    logger.info("Starting stale verification code purge")

    async with database.session() as db:
        try:
            results["total_deleted"] = await repository.purge_stale_codes(db, executed_at)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Stale verification code purge failed: {e}", exc_info=True)
            results["total_errors"] = 1
            results["error"] = str(e)

    logger.info(
        f"Stale verification code purge completed. "
        f"Deleted: {results['total_deleted']}, Errors: {results['total_errors']}"
    )

    return results


def register_auth_jobs(database: Database) -> None:
    """
    Register authentication background jobs with the scheduler.

    Registered jobs:
    1. auth_purge_stale_otp_codes - Runs every OTP_CLEANUP_INTERVAL_MINUTES
    """
    interval = settings.otp_cleanup_interval_minutes

    async def _purge() -> dict[str, Any]:
        return await purge_stale_otp_codes(database)

    register_job(
        job_id=JOB_ID_PURGE_STALE_OTP_CODES,
        func=_purge,
        trigger=IntervalTrigger(minutes=interval),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_STALE_OTP_CODES} (interval: {interval} minutes)")
