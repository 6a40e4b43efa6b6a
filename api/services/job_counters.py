"""
Denormalized per-job applications counter.

The counter is recomputed from the current rows rather than incremented, so
concurrent or failed refreshes converge on the next successful one.
"""

import logging

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.applications import Application
from database.models.jobs import Job

logger = logging.getLogger(__name__)


async def refresh_applications_count(db: AsyncSession, job_id: int) -> int:
    """
    Recount a job's applications and store the total on the job.

    Runs in its own transaction, after the create/delete that triggered it
    has committed.

    Args:
        db: Database session
        job_id: Job whose counter to refresh

    Returns:
        The stored count
    """
    count_result = await db.execute(
        select(func.count(Application.id)).where(Application.job_id == job_id)
    )
    count = count_result.scalar() or 0

    await db.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(applications_count=count)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info(f"Job {job_id} applications_count refreshed to {count}")
    return count
