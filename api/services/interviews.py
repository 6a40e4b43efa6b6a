"""
Interview service functions.

Scheduling, updating and rating interview rounds. Two transitions happen
implicitly and live here as named rules:

- `advance_to_interview_stage`: scheduling a round moves the application to
  the Interview hiring stage.
- `complete_on_first_feedback`: the first feedback on a round completes it.

Both are single conditional UPDATE statements, so racing requests cannot
undo one another.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import NotFound, ValidationError
from core.middleware.authorization import Permission
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.applications import (
    Application,
    ApplicationInterview,
    ApplicationStatus,
    HiringStage,
    InterviewFeedback,
    InterviewStatus,
    InterviewType,
)
from database.models.users import User
from api.services.applications import load_application, load_authorized_application

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 5

UPDATABLE_INTERVIEW_FIELDS = (
    "scheduled_at",
    "duration",
    "type",
    "location",
    "notes",
    "status",
    "interviewers",
)
REQUIRED_INTERVIEW_FIELDS = {"scheduled_at", "duration", "type", "status", "interviewers"}


# ==================== Transition rules ===================== #
async def advance_to_interview_stage(db: AsyncSession, application_id: int) -> bool:
    """
    Move the application to the Interview hiring stage unless it is there.

    When `INTERVIEW_SCHEDULE_SETS_STATUS` is enabled, `status` follows.

    Returns:
        Whether the application changed
    """
    values: Dict[str, Any] = {"hiring_stage": HiringStage.INTERVIEW}
    condition = Application.hiring_stage != HiringStage.INTERVIEW
    if settings.interview_schedule_sets_status:
        values["status"] = ApplicationStatus.INTERVIEW
        condition = condition | (Application.status != ApplicationStatus.INTERVIEW)

    result = await db.execute(
        update(Application)
        .where(Application.id == application_id, condition)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def complete_on_first_feedback(db: AsyncSession, interview_id: int) -> bool:
    """
    Mark an interview Completed unless it already is.

    Returns:
        Whether the interview changed
    """
    result = await db.execute(
        update(ApplicationInterview)
        .where(
            ApplicationInterview.id == interview_id,
            ApplicationInterview.status != InterviewStatus.COMPLETED,
        )
        .values(status=InterviewStatus.COMPLETED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


# ==================== Operations ===================== #
async def _get_interview(
    db: AsyncSession, application_id: int, interview_id: int
) -> ApplicationInterview:
    result = await db.execute(
        select(ApplicationInterview).where(
            ApplicationInterview.id == interview_id,
            ApplicationInterview.application_id == application_id,
        )
    )
    interview = result.scalar_one_or_none()
    if interview is None:
        raise NotFound(f"Interview {interview_id} not found")
    return interview


async def schedule_interview(
    db: AsyncSession,
    user: User,
    application_id: int,
    scheduled_at: datetime,
    interview_type: InterviewType,
    duration: Optional[int] = None,
    location: Optional[str] = None,
    notes: Optional[str] = None,
    interviewers: Optional[List[int]] = None,
) -> Application:
    """
    Schedule an interview round.

    Args:
        db: Database session
        user: Acting user, also the default interviewer
        application_id: Application being interviewed
        scheduled_at: Start time
        interview_type: Kind of interview
        duration: Length in minutes
        location: Meeting URL or address
        notes: Agenda or instructions
        interviewers: Interviewer user ids

    Returns:
        The application with the new round

    Raises:
        ValidationError: If duration is not a positive number of minutes
    """
    if duration is None:
        duration = settings.default_interview_duration
    elif isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
        raise ValidationError("Duration must be a positive number of minutes")

    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_INTERVIEW
    )

    interview = ApplicationInterview(
        application_id=application_id,
        scheduled_at=scheduled_at,
        duration=duration,
        type=interview_type,
        location=location,
        notes=notes,
        status=InterviewStatus.SCHEDULED,
        interviewers=list(interviewers) if interviewers else [actor_id],
        scheduled_by=actor_id,
    )
    db.add(interview)
    await db.flush()
    interview_id = interview.id

    advanced = await advance_to_interview_stage(db, application_id)
    await db.commit()

    logger.info(
        f"Interview {interview_id} scheduled for application {application_id} "
        f"at {scheduled_at.isoformat()}"
    )
    if advanced:
        logger.info(f"Application {application_id} moved to Interview stage")
    log_audit_event(
        AuditAction.SCHEDULE_INTERVIEW,
        ResourceType.INTERVIEW,
        resource_id=interview_id,
        user_id=actor_id,
        details={
            "application_id": application_id,
            "interview_type": interview_type.value,
            "scheduled_at": scheduled_at.isoformat(),
        },
    )
    return await load_application(db, application_id)


async def update_interview(
    db: AsyncSession,
    user: User,
    application_id: int,
    interview_id: int,
    fields: Dict[str, Any],
) -> Application:
    """
    Partially update an interview round.

    Only keys present in `fields` are written; status changes are not
    checked against any transition order.

    Raises:
        NotFound: If the application or round does not exist
    """
    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_INTERVIEW
    )
    await _get_interview(db, application_id, interview_id)

    values = {
        field: value
        for field, value in fields.items()
        if field in UPDATABLE_INTERVIEW_FIELDS
        and not (value is None and field in REQUIRED_INTERVIEW_FIELDS)
    }
    if values:
        await db.execute(
            update(ApplicationInterview)
            .where(ApplicationInterview.id == interview_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

    logger.info(
        f"Interview {interview_id} of application {application_id} updated: "
        f"{sorted(values)}"
    )
    log_audit_event(
        AuditAction.UPDATE_INTERVIEW,
        ResourceType.INTERVIEW,
        resource_id=interview_id,
        user_id=actor_id,
        details={"application_id": application_id, "fields": sorted(values)},
    )
    return await load_application(db, application_id)


async def add_interview_feedback(
    db: AsyncSession,
    user: User,
    application_id: int,
    interview_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Application:
    """
    Record interviewer feedback on a round.

    Raises:
        ValidationError: If rating is not between 1 and 5
        NotFound: If the application or round does not exist
    """
    if (
        not isinstance(rating, int)
        or isinstance(rating, bool)
        or not RATING_MIN <= rating <= RATING_MAX
    ):
        raise ValidationError(
            f"Rating must be an integer between {RATING_MIN} and {RATING_MAX}"
        )

    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_INTERVIEW
    )
    await _get_interview(db, application_id, interview_id)

    feedback = InterviewFeedback(
        interview_id=interview_id,
        rating=rating,
        comment=comment,
        submitted_by=actor_id,
    )
    db.add(feedback)
    await db.flush()
    feedback_id = feedback.id

    completed = await complete_on_first_feedback(db, interview_id)
    await db.commit()

    logger.info(
        f"Feedback {feedback_id} added to interview {interview_id} "
        f"(rating={rating})"
    )
    if completed:
        logger.info(f"Interview {interview_id} completed")
    log_audit_event(
        AuditAction.ADD_FEEDBACK,
        ResourceType.INTERVIEW,
        resource_id=interview_id,
        user_id=actor_id,
        details={"application_id": application_id, "rating": rating},
    )
    return await load_application(db, application_id)
