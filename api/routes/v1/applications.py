"""Application endpoints for applicants (and admins acting for them)."""

import logging
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from database.engine import get_db
from database.models.users import User
from api.dependencies import require_active_user
from api.schemas.applications import ApplicationCreateRequest, ApplicationResponse
from api.services import applications as application_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to a job",
)
async def create_application(
    request: ApplicationCreateRequest,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Submit an application.

    - **job_id**: Job being applied to
    - **cover_letter**: Optional cover letter
    - **resume_url** / **resume_filename**: Uploaded resume
    - **applicant_***: Optional overrides for the profile snapshot
    - **ai_***: Optional assessment from the scoring service
    """
    application = await application_service.create_application(
        db,
        current_user,
        job_id=request.job_id,
        applicant_id=request.applicant_id,
        cover_letter=request.cover_letter,
        resume_url=request.resume_url,
        resume_filename=request.resume_filename,
        applicant_name=request.applicant_name,
        applicant_email=request.applicant_email,
        applicant_phone=request.applicant_phone,
        applicant_linkedin=request.applicant_linkedin,
        ai_assessment=request.ai_assessment(),
    )
    return ApplicationResponse.from_application(application)


@router.get(
    "/me",
    response_model=list[ApplicationResponse],
    summary="List my applications",
)
async def list_my_applications(
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationResponse]:
    applications = await application_service.list_applications_by_applicant(
        db, current_user, current_user.id
    )
    return [ApplicationResponse.from_application(app) for app in applications]


@router.get(
    "/applicant/{user_id}",
    response_model=list[ApplicationResponse],
    summary="List an applicant's applications",
)
async def list_applicant_applications(
    user_id: int,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationResponse]:
    """Applicants may list their own applications; admins anyone's."""
    applications = await application_service.list_applications_by_applicant(
        db, current_user, user_id
    )
    return [ApplicationResponse.from_application(app) for app in applications]


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get an application",
)
async def get_application(
    application_id: int,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.get_application(
        db, current_user, application_id
    )
    return ApplicationResponse.from_application(application)


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an application",
)
async def delete_application(
    application_id: int,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete an application with its notes and interviews (job owner or admin)."""
    await application_service.delete_application(db, current_user, application_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
