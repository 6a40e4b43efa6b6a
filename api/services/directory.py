"""
Job and user lookups.

The `jobs` and `users` tables are owned by other services; the pipeline only
reads them by id.
"""

from typing import Iterable, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFound
from database.models.jobs import Job
from database.models.users import User

logger = logging.getLogger(__name__)


async def find_job(db: AsyncSession, job_id: int) -> Optional[Job]:
    result = await db.execute(select(Job).where(Job.id == job_id))
    return result.scalar_one_or_none()


async def get_job(db: AsyncSession, job_id: int) -> Job:
    """
    Get a job by id.

    Raises:
        NotFound: If no such job exists
    """
    job = await find_job(db, job_id)
    if job is None:
        raise NotFound(f"Job {job_id} not found")
    return job


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_users_by_ids(db: AsyncSession, user_ids: Iterable[int]) -> List[User]:
    """
    Resolve user ids to users.

    Unknown ids are dropped and duplicates collapsed; the result keeps the
    order in which ids first appear in `user_ids`.

    Args:
        db: Database session
        user_ids: Ids to resolve

    Returns:
        Users found, in input order
    """
    ordered_ids = list(dict.fromkeys(user_ids))
    if not ordered_ids:
        return []

    result = await db.execute(select(User).where(User.id.in_(ordered_ids)))
    by_id = {user.id: user for user in result.scalars().all()}

    missing = [user_id for user_id in ordered_ids if user_id not in by_id]
    if missing:
        logger.debug(f"Dropping unknown user ids {missing}")

    return [by_id[user_id] for user_id in ordered_ids if user_id in by_id]
