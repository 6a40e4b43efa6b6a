"""Employer pipeline endpoints: listings, status, notes, interviews, team."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database.engine import get_db
from database.models.applications import ApplicationStatus, HiringStage
from database.models.users import User
from api.dependencies import get_pagination_params, require_active_user
from api.schemas.applications import (
    AIAssessmentRequest,
    ApplicationPage,
    ApplicationResponse,
    AssignTeamRequest,
    FeedbackCreateRequest,
    HiringStageUpdateRequest,
    InterviewScheduleRequest,
    InterviewUpdateRequest,
    NoteCreateRequest,
    ScoreUpdateRequest,
    SortField,
    SortOrder,
    StatusUpdateRequest,
)
from api.schemas.common import PaginationParams
from api.services import applications as application_service
from api.services import interviews as interview_service
from api.services import notes as note_service

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== Listings ===================== #
@router.get(
    "/jobs/{job_id}/applicants",
    response_model=ApplicationPage,
    summary="List a job's applicants",
)
async def list_job_applicants(
    job_id: int,
    status: Optional[ApplicationStatus] = Query(None),
    hiring_stage: Optional[HiringStage] = Query(None, alias="hiringStage"),
    search: Optional[str] = Query(None, max_length=200),
    min_score: Optional[float] = Query(None, alias="minScore", ge=0, le=5),
    sort_by: SortField = Query("applied_at", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationPage:
    """
    List applications of one job.

    - **status** / **hiringStage**: Exact filters
    - **search**: Case-insensitive match on the applicant's name
    - **minScore**: Minimum employer score
    - **sortBy** / **sortOrder**: Ordering
    """
    listing = await application_service.list_applications_by_job(
        db,
        current_user,
        job_id,
        status=status,
        hiring_stage=hiring_stage,
        search=search,
        min_score=min_score,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return ApplicationPage.from_listing(
        listing, pagination, ApplicationResponse.from_application
    )


@router.get(
    "/applicants",
    response_model=ApplicationPage,
    summary="List applicants across my jobs",
)
async def list_pipeline(
    job_id: Optional[int] = Query(None, alias="jobId"),
    status: Optional[ApplicationStatus] = Query(None),
    hiring_stage: Optional[HiringStage] = Query(None, alias="hiringStage"),
    search: Optional[str] = Query(None, max_length=200),
    min_score: Optional[float] = Query(None, alias="minScore", ge=0, le=5),
    sort_by: SortField = Query("applied_at", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationPage:
    listing = await application_service.list_employer_pipeline(
        db,
        current_user,
        job_id=job_id,
        status=status,
        hiring_stage=hiring_stage,
        search=search,
        min_score=min_score,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return ApplicationPage.from_listing(
        listing, pagination, ApplicationResponse.from_application
    )


# ==================== Status & score ===================== #
@router.patch(
    "/applicants/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update status and/or hiring stage",
)
async def update_status(
    application_id: int,
    request: StatusUpdateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.update_status(
        db,
        current_user,
        application_id,
        status=request.status,
        hiring_stage=request.hiring_stage,
    )
    return ApplicationResponse.from_application(application)


@router.put(
    "/applicants/{application_id}/stage",
    response_model=ApplicationResponse,
    summary="Move to a hiring stage",
)
async def update_hiring_stage(
    application_id: int,
    request: HiringStageUpdateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.update_hiring_stage(
        db, current_user, application_id, request.hiring_stage
    )
    return ApplicationResponse.from_application(application)


@router.put(
    "/applicants/{application_id}/score",
    response_model=ApplicationResponse,
    summary="Score an applicant (0 to 5)",
)
async def update_score(
    application_id: int,
    request: ScoreUpdateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.update_score(
        db, current_user, application_id, request.score
    )
    return ApplicationResponse.from_application(application)


# ==================== Notes ===================== #
@router.post(
    "/applicants/{application_id}/notes",
    response_model=ApplicationResponse,
    summary="Add a note or reply",
)
async def add_note(
    application_id: int,
    request: NoteCreateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Add a note to an application.

    - **text**: Note body
    - **replyToNoteId**: Optional top-level note to reply to
    """
    application = await note_service.add_note(
        db,
        current_user,
        application_id,
        request.text,
        reply_to_note_id=request.reply_to_note_id,
    )
    return ApplicationResponse.from_application(application)


# ==================== Interviews ===================== #
@router.post(
    "/applicants/{application_id}/interviews",
    response_model=ApplicationResponse,
    summary="Schedule an interview",
)
async def schedule_interview(
    application_id: int,
    request: InterviewScheduleRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await interview_service.schedule_interview(
        db,
        current_user,
        application_id,
        scheduled_at=request.scheduled_at,
        interview_type=request.type,
        duration=request.duration,
        location=request.location,
        notes=request.notes,
        interviewers=request.interviewers,
    )
    return ApplicationResponse.from_application(application)


@router.put(
    "/applicants/{application_id}/interviews/{interview_id}",
    response_model=ApplicationResponse,
    summary="Update an interview",
)
async def update_interview(
    application_id: int,
    interview_id: int,
    request: InterviewUpdateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Only the fields present in the body are changed."""
    application = await interview_service.update_interview(
        db,
        current_user,
        application_id,
        interview_id,
        request.model_dump(exclude_unset=True),
    )
    return ApplicationResponse.from_application(application)


@router.post(
    "/applicants/{application_id}/interviews/{interview_id}/feedback",
    response_model=ApplicationResponse,
    summary="Add interview feedback",
)
async def add_interview_feedback(
    application_id: int,
    interview_id: int,
    request: FeedbackCreateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await interview_service.add_interview_feedback(
        db,
        current_user,
        application_id,
        interview_id,
        rating=request.rating,
        comment=request.comment,
    )
    return ApplicationResponse.from_application(application)


# ==================== Team & AI ===================== #
@router.put(
    "/applicants/{application_id}/assign",
    response_model=ApplicationResponse,
    summary="Assign team members",
)
async def assign_team_members(
    application_id: int,
    request: AssignTeamRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Replace the assigned team with **teamMemberIds**."""
    application = await application_service.assign_team_members(
        db, current_user, application_id, request.team_member_ids
    )
    return ApplicationResponse.from_application(application)


@router.put(
    "/applicants/{application_id}/ai-assessment",
    response_model=ApplicationResponse,
    summary="Record an AI assessment",
)
async def record_ai_assessment(
    application_id: int,
    request: AIAssessmentRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.record_ai_assessment(
        db, current_user, application_id, request.model_dump()
    )
    return ApplicationResponse.from_application(application)
