"""
Approval Token Background Jobs

Hourly maintenance of the approval_tokens table:
- Delete tokens that expired unused more than the retention window ago

Flag-consumed tokens are never purged; they are the record of an approval.
The job is idempotent and can also be triggered from the debug endpoints.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from accreda.core.config import settings
from accreda.core.database import async_session_maker
from accreda.core.scheduler import register_job
from accreda.modules.approvals import repository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_EXPIRED = "approval_tokens_purge_expired"


async def purge_expired_tokens() -> dict[str, Any]:
    """
    Delete unused tokens whose expiry passed before the retention cutoff.

    Returns:
        Dict with job execution summary
    """
    executed_at = datetime.now(UTC)
    cutoff = executed_at - timedelta(hours=settings.token_purge_retention_hours)

    logger.info(f"Starting expired token purge. Cutoff: {cutoff.isoformat()}")

    async with async_session_maker() as db:
        purged = await repository.purge_expired_tokens(db, expired_before=cutoff)

    logger.info(f"Expired token purge completed. Purged: {purged}")

    return {
        "executed_at": executed_at.isoformat(),
        "cutoff": cutoff.isoformat(),
        "total_purged": purged,
    }


def register_approval_jobs() -> None:
    """
    Register approval token background jobs with the scheduler.

    Call during application startup, before the scheduler is started.
    """
    register_job(
        job_id=JOB_ID_PURGE_EXPIRED,
        func=purge_expired_tokens,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_EXPIRED} (interval: 1 hour)")
