"""
Application service functions for API endpoints.

Lifecycle of application records: submission, retrieval, pipeline listings,
status/stage/score updates, team assignment, AI assessment and deletion.

Every function takes the request's session and the acting user, checks
authorization, and returns the freshly reloaded application (notes with
replies, interviews with feedback, and the job).
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import select, func, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import settings
from core.exceptions import Conflict, NotFound, ValidationError
from core.middleware.authorization import (
    Permission,
    check_application_permission,
    check_applicant_listing,
    check_can_apply,
    check_job_access,
    check_pipeline_access,
)
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.applications import (
    Application,
    ApplicationInterview,
    ApplicationNote,
    ApplicationStatus,
    HiringStage,
    InterviewFeedback,
)
from database.models.jobs import Job
from database.models.users import User, UserType
from api.services.ai_assessment import has_ai_assessment, normalize_ai_assessment
from api.services.directory import get_job, get_user, get_users_by_ids
from api.services.job_counters import refresh_applications_count

logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 5.0

SORT_COLUMNS = {
    "applied_at": Application.applied_at,
    "created_at": Application.created_at,
    "score": Application.score,
    "ai_qualification_score": Application.ai_qualification_score,
}


# ==================== Loading ===================== #
def application_query():
    """Select an application with everything its response needs."""
    return (
        select(Application)
        .options(
            selectinload(Application.job),
            selectinload(Application.notes).selectinload(ApplicationNote.replies),
            selectinload(Application.interviews).selectinload(
                ApplicationInterview.feedback
            ),
        )
        .execution_options(populate_existing=True)
    )


async def load_application(db: AsyncSession, application_id: int) -> Application:
    """
    Load an application with its notes, interviews and job.

    Raises:
        NotFound: If the application does not exist
    """
    result = await db.execute(
        application_query().where(Application.id == application_id)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    return application


async def load_authorized_application(
    db: AsyncSession,
    user: User,
    application_id: int,
    permission: Permission,
) -> Application:
    """Load an application and check the user holds `permission` on it."""
    application = await load_application(db, application_id)
    check_application_permission(user, application, permission)
    return application


# ==================== Lifecycle ===================== #
async def create_application(
    db: AsyncSession,
    user: User,
    job_id: int,
    applicant_id: Optional[int] = None,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
    resume_filename: Optional[str] = None,
    applicant_name: Optional[str] = None,
    applicant_email: Optional[str] = None,
    applicant_phone: Optional[str] = None,
    applicant_linkedin: Optional[str] = None,
    ai_assessment: Optional[Dict[str, Any]] = None,
) -> Application:
    """
    Submit an application to a job.

    The applicant's contact details are snapshotted from their user record,
    with values supplied in the request taking precedence.

    Args:
        db: Database session
        user: Acting user
        job_id: Job applied to
        applicant_id: Applicant; defaults to the acting user
        cover_letter: Optional cover letter text
        resume_url: Location of the uploaded resume
        resume_filename: Original resume file name
        applicant_name: Snapshot override
        applicant_email: Snapshot override
        applicant_phone: Snapshot override
        applicant_linkedin: Snapshot override
        ai_assessment: Optional output of the scoring service

    Returns:
        The new application

    Raises:
        NotFound: If the job or applicant does not exist
        Forbidden: If the user may not apply for `applicant_id`
        Conflict: If the applicant already applied to this job
        ValidationError: If the cover letter is too long
    """
    actor_id = user.id
    applicant_id = applicant_id if applicant_id is not None else actor_id
    check_can_apply(user, applicant_id)

    if cover_letter and len(cover_letter) > settings.cover_letter_max_length:
        raise ValidationError(
            f"Cover letter exceeds {settings.cover_letter_max_length} characters"
        )

    await get_job(db, job_id)

    applicant = user if applicant_id == actor_id else await get_user(db, applicant_id)
    if applicant is None:
        raise NotFound(f"User {applicant_id} not found")

    existing = await db.execute(
        select(Application.id).where(
            Application.job_id == job_id,
            Application.applicant_id == applicant_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict("You have already applied for this job")

    application = Application(
        job_id=job_id,
        applicant_id=applicant_id,
        cover_letter=cover_letter,
        resume_url=resume_url,
        resume_filename=resume_filename,
        applicant_name=applicant_name or applicant.name,
        applicant_email=applicant_email or applicant.email,
        applicant_phone=applicant_phone or applicant.phone,
        applicant_linkedin=applicant_linkedin or applicant.linkedin,
        status=ApplicationStatus.PENDING,
        hiring_stage=HiringStage.IN_REVIEW,
        score=0,
        assigned_to=[],
    )
    if has_ai_assessment(ai_assessment):
        for field, value in normalize_ai_assessment(ai_assessment).items():
            setattr(application, field, value)

    db.add(application)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.info(
            f"Duplicate application for job {job_id} by applicant {applicant_id}"
        )
        raise Conflict("You have already applied for this job") from exc

    application_id = application.id
    logger.info(
        f"Application {application_id} created for job {job_id} "
        f"by applicant {applicant_id}"
    )
    log_audit_event(
        AuditAction.CREATE,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=actor_id,
        details={"job_id": job_id, "applicant_id": applicant_id},
    )

    await refresh_applications_count(db, job_id)
    return await load_application(db, application_id)


async def get_application(
    db: AsyncSession, user: User, application_id: int
) -> Application:
    """
    Get an application the user may read.

    Raises:
        NotFound: If the application does not exist
        Forbidden: If the user is not its applicant, job owner or an admin
    """
    return await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_READ
    )


async def update_status(
    db: AsyncSession,
    user: User,
    application_id: int,
    status: Optional[ApplicationStatus] = None,
    hiring_stage: Optional[HiringStage] = None,
) -> Application:
    """
    Set `status` and/or `hiring_stage` directly.

    The two fields are independent; no transition between values is
    rejected.

    Raises:
        ValidationError: If neither field is supplied
    """
    if status is None and hiring_stage is None:
        raise ValidationError("Either status or hiring_stage must be provided")

    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_UPDATE
    )

    values: Dict[str, Any] = {}
    if status is not None:
        values["status"] = status
    if hiring_stage is not None:
        values["hiring_stage"] = hiring_stage

    await db.execute(
        update(Application)
        .where(Application.id == application_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    changes = {field: value.value for field, value in values.items()}
    logger.info(f"Application {application_id} updated: {changes}")
    log_audit_event(
        AuditAction.UPDATE_STATUS,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=actor_id,
        details=changes,
    )
    return await load_application(db, application_id)


async def update_hiring_stage(
    db: AsyncSession,
    user: User,
    application_id: int,
    hiring_stage: HiringStage,
) -> Application:
    """Move an application to another hiring stage."""
    return await update_status(db, user, application_id, hiring_stage=hiring_stage)


async def update_score(
    db: AsyncSession, user: User, application_id: int, score: float
) -> Application:
    """
    Overwrite the employer's score.

    Raises:
        ValidationError: If score is not a number in [0, 5]
    """
    if (
        isinstance(score, bool)
        or not isinstance(score, (int, float))
        or not SCORE_MIN <= score <= SCORE_MAX
    ):
        raise ValidationError(
            f"Score must be between {SCORE_MIN:g} and {SCORE_MAX:g}"
        )

    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_UPDATE
    )

    await db.execute(
        update(Application)
        .where(Application.id == application_id)
        .values(score=score)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info(f"Application {application_id} scored {score}")
    log_audit_event(
        AuditAction.UPDATE_SCORE,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=actor_id,
        details={"score": score},
    )
    return await load_application(db, application_id)


async def delete_application(
    db: AsyncSession, user: User, application_id: int
) -> None:
    """
    Delete an application with its notes, interviews and feedback.

    Sub-rows are removed explicitly in the same transaction so the delete
    does not depend on the database honouring ON DELETE CASCADE.
    """
    actor_id = user.id
    application = await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_DELETE
    )
    job_id = application.job_id

    interview_ids = select(ApplicationInterview.id).where(
        ApplicationInterview.application_id == application_id
    )
    await db.execute(
        delete(InterviewFeedback)
        .where(InterviewFeedback.interview_id.in_(interview_ids))
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(ApplicationInterview)
        .where(ApplicationInterview.application_id == application_id)
        .execution_options(synchronize_session=False)
    )
    # Replies first so no row points at a deleted parent
    await db.execute(
        delete(ApplicationNote)
        .where(
            ApplicationNote.application_id == application_id,
            ApplicationNote.parent_note_id.is_not(None),
        )
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(ApplicationNote)
        .where(ApplicationNote.application_id == application_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Application)
        .where(Application.id == application_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    db.expunge(application)

    logger.info(f"Application {application_id} deleted from job {job_id}")
    log_audit_event(
        AuditAction.DELETE,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=actor_id,
        details={"job_id": job_id},
    )

    await refresh_applications_count(db, job_id)


# ==================== Team & AI ===================== #
async def assign_team_members(
    db: AsyncSession,
    user: User,
    application_id: int,
    team_member_ids: Any,
) -> Application:
    """
    Replace the team assigned to an application.

    Ids are resolved against the user directory; unknown ids are dropped and
    duplicates collapsed, keeping input order. Each assignee is stored as a
    name/avatar snapshot.

    Raises:
        ValidationError: If `team_member_ids` is not a list of integer ids
    """
    if not isinstance(team_member_ids, list) or not all(
        isinstance(member_id, int) and not isinstance(member_id, bool)
        for member_id in team_member_ids
    ):
        raise ValidationError("teamMemberIds must be a list of user ids")

    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_ASSIGN
    )

    members = await get_users_by_ids(db, team_member_ids)
    assigned_to = [
        {"user_id": member.id, "name": member.name, "avatar": member.avatar}
        for member in members
    ]

    await db.execute(
        update(Application)
        .where(Application.id == application_id)
        .values(assigned_to=assigned_to)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info(
        f"Application {application_id} assigned to "
        f"{[member['user_id'] for member in assigned_to]}"
    )
    log_audit_event(
        AuditAction.ASSIGN,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=actor_id,
        details={"team_member_ids": [member["user_id"] for member in assigned_to]},
    )
    return await load_application(db, application_id)


async def record_ai_assessment(
    db: AsyncSession,
    user: User,
    application_id: int,
    payload: Dict[str, Any],
) -> Application:
    """Overwrite the AI assessment fields of an existing application."""
    actor_id = user.id
    await load_authorized_application(
        db, user, application_id, Permission.APPLICATION_AI_ASSESSMENT
    )

    values = normalize_ai_assessment(payload)
    await db.execute(
        update(Application)
        .where(Application.id == application_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info(
        f"Application {application_id} AI assessment recorded "
        f"(score={values['ai_qualification_score']})"
    )
    log_audit_event(
        AuditAction.AI_ASSESSMENT,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=actor_id,
        details={"ai_qualification_score": values["ai_qualification_score"]},
    )
    return await load_application(db, application_id)


# ==================== Listings ===================== #
async def list_applications_by_applicant(
    db: AsyncSession, user: User, applicant_id: int
) -> List[Application]:
    """
    List an applicant's applications, newest first.

    Raises:
        Forbidden: Unless the user is the applicant or an admin
    """
    check_applicant_listing(user, applicant_id)
    result = await db.execute(
        application_query()
        .where(Application.applicant_id == applicant_id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
    )
    return list(result.scalars().all())


def _filter_conditions(
    status: Optional[ApplicationStatus] = None,
    hiring_stage: Optional[HiringStage] = None,
    search: Optional[str] = None,
    min_score: Optional[float] = None,
) -> list:
    conditions = []
    if status is not None:
        conditions.append(Application.status == status)
    if hiring_stage is not None:
        conditions.append(Application.hiring_stage == hiring_stage)
    if search and search.strip():
        conditions.append(Application.applicant_name.ilike(f"%{search.strip()}%"))
    if min_score is not None:
        conditions.append(Application.score >= min_score)
    return conditions


async def _paginate(
    db: AsyncSession,
    conditions: list,
    sort_by: str,
    sort_order: str,
    limit: int,
    offset: int,
) -> Tuple[List[Application], int]:
    count_query = select(func.count(Application.id)).where(*conditions)
    total = (await db.execute(count_query)).scalar() or 0

    sort_column = SORT_COLUMNS.get(sort_by, Application.applied_at)
    if sort_order == "asc":
        order = (sort_column.asc(), Application.id.asc())
    else:
        order = (sort_column.desc(), Application.id.desc())

    result = await db.execute(
        application_query()
        .where(*conditions)
        .order_by(*order)
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def list_applications_by_job(
    db: AsyncSession,
    user: User,
    job_id: int,
    status: Optional[ApplicationStatus] = None,
    hiring_stage: Optional[HiringStage] = None,
    search: Optional[str] = None,
    min_score: Optional[float] = None,
    sort_by: str = "applied_at",
    sort_order: str = "desc",
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Application], int]:
    """
    List the applications of one job.

    Args:
        db: Database session
        user: Acting user (job owner or admin)
        job_id: The job ID to list applications for
        status: Filter by status
        hiring_stage: Filter by hiring stage
        search: Case-insensitive match on the applicant's name
        min_score: Minimum employer score
        sort_by: applied_at, created_at, score or ai_qualification_score
        sort_order: Sort order (asc/desc)
        limit: Maximum number of results
        offset: Pagination offset

    Returns:
        The page of applications and the total matching count
    """
    job = await get_job(db, job_id)
    check_job_access(user, job)

    conditions = [Application.job_id == job_id] + _filter_conditions(
        status=status, hiring_stage=hiring_stage, search=search, min_score=min_score
    )
    return await _paginate(db, conditions, sort_by, sort_order, limit, offset)


async def list_employer_pipeline(
    db: AsyncSession,
    user: User,
    job_id: Optional[int] = None,
    status: Optional[ApplicationStatus] = None,
    hiring_stage: Optional[HiringStage] = None,
    search: Optional[str] = None,
    min_score: Optional[float] = None,
    sort_by: str = "applied_at",
    sort_order: str = "desc",
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Application], int]:
    """
    List applications across every job the employer owns.

    Admins see applications of all jobs.
    """
    if job_id is not None:
        return await list_applications_by_job(
            db,
            user,
            job_id,
            status=status,
            hiring_stage=hiring_stage,
            search=search,
            min_score=min_score,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            offset=offset,
        )

    check_pipeline_access(user)

    conditions = _filter_conditions(
        status=status, hiring_stage=hiring_stage, search=search, min_score=min_score
    )
    if user.user_type != UserType.ADMIN:
        owned_jobs = select(Job.id).where(Job.employer_id == user.id)
        conditions.append(Application.job_id.in_(owned_jobs))

    return await _paginate(db, conditions, sort_by, sort_order, limit, offset)
