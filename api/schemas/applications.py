"""Application pipeline API schemas."""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from api.schemas.common import PaginatedResponse, TimestampMixin
from database.models.applications import (
    Application,
    ApplicationStatus,
    HiringStage,
    InterviewStatus,
    InterviewType,
)

SortField = Literal["applied_at", "created_at", "score", "ai_qualification_score"]
SortOrder = Literal["asc", "desc"]


# ==================== Requests ===================== #
class AIAssessmentRequest(BaseModel):
    """Output of the external scoring service, stored after light coercion."""

    ai_qualification_score: Optional[Any] = Field(None, description="Score from 0 to 100")
    ai_matched_skills: Optional[Any] = Field(None, description="Skills the applicant has")
    ai_missing_skills: Optional[Any] = Field(None, description="Required skills not found")
    ai_strengths: Optional[Any] = Field(None, description="Notable strengths")
    ai_assessment_summary: Optional[str] = Field(None, description="Free-text summary")
    ai_cover_letter: Optional[str] = Field(None, description="Generated cover letter")
    resume_parsed_data: Optional[dict[str, Any]] = Field(None, description="Parsed resume")


class ApplicationCreateRequest(AIAssessmentRequest):
    """Schema for submitting an application."""

    job_id: int = Field(..., description="Job being applied to")
    applicant_id: Optional[int] = Field(
        None, description="Applicant; defaults to the caller (admins may set it)"
    )
    cover_letter: Optional[str] = Field(None, description="Cover letter text")
    resume_url: Optional[str] = Field(None, max_length=1000, description="Uploaded resume location")
    resume_filename: Optional[str] = Field(None, max_length=255, description="Original file name")

    # Snapshot overrides; fall back to the applicant's profile
    applicant_name: Optional[str] = Field(None, max_length=200)
    applicant_email: Optional[EmailStr] = None
    applicant_phone: Optional[str] = Field(None, max_length=30)
    applicant_linkedin: Optional[str] = Field(None, max_length=500)

    @field_validator("applicant_name", "applicant_phone", "applicant_linkedin", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; blank values fall back to the profile."""
        if isinstance(v, str):
            return v.strip() or None
        return v

    def ai_assessment(self) -> dict[str, Any]:
        return self.model_dump(include=set(AIAssessmentRequest.model_fields))


class StatusUpdateRequest(BaseModel):
    """Set status and/or hiring stage."""

    status: Optional[ApplicationStatus] = None
    hiring_stage: Optional[HiringStage] = Field(None, alias="hiringStage")

    model_config = ConfigDict(populate_by_name=True)


class HiringStageUpdateRequest(BaseModel):
    hiring_stage: HiringStage = Field(..., alias="hiringStage")

    model_config = ConfigDict(populate_by_name=True)


class ScoreUpdateRequest(BaseModel):
    # Type and range checked by the service so violations surface as domain errors
    score: Any


class NoteCreateRequest(BaseModel):
    """Schema for adding a note or a reply."""

    text: str = Field(..., description="Note body")
    reply_to_note_id: Optional[int] = Field(
        None, alias="replyToNoteId", description="Top-level note being replied to"
    )

    model_config = ConfigDict(populate_by_name=True)


class InterviewScheduleRequest(BaseModel):
    """Schema for scheduling an interview round."""

    scheduled_at: datetime = Field(..., alias="scheduledAt")
    type: InterviewType
    duration: Optional[int] = Field(None, ge=1, description="Minutes")
    location: Optional[str] = Field(None, max_length=1000, description="URL or address")
    notes: Optional[str] = Field(None, description="Agenda or instructions")
    interviewers: Optional[list[int]] = Field(None, description="Interviewer user ids")

    model_config = ConfigDict(populate_by_name=True)


class InterviewUpdateRequest(BaseModel):
    """Partial update of an interview round; only supplied fields change."""

    scheduled_at: Optional[datetime] = Field(None, alias="scheduledAt")
    type: Optional[InterviewType] = None
    duration: Optional[int] = Field(None, ge=1)
    location: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = None
    status: Optional[InterviewStatus] = None
    interviewers: Optional[list[int]] = None

    model_config = ConfigDict(populate_by_name=True)


class FeedbackCreateRequest(BaseModel):
    # Range checked by the service so violations surface as domain errors
    rating: int
    comment: Optional[str] = None


class AssignTeamRequest(BaseModel):
    """Replacement team; validated by the service."""

    team_member_ids: Any = Field(..., alias="teamMemberIds")

    model_config = ConfigDict(populate_by_name=True)


# ==================== Responses ===================== #
class NoteReplyResponse(BaseModel):
    id: int
    text: str
    added_by: int
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    added_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteResponse(NoteReplyResponse):
    """Top-level note with its replies (replies never nest further)."""

    replies: list[NoteReplyResponse] = Field(default_factory=list)


class FeedbackResponse(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    submitted_by: int
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InterviewResponse(TimestampMixin):
    id: int
    scheduled_at: datetime
    duration: int
    type: InterviewType
    location: Optional[str] = None
    notes: Optional[str] = None
    status: InterviewStatus
    interviewers: list[int] = Field(default_factory=list)
    scheduled_by: Optional[int] = None
    feedback: list[FeedbackResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TeamMemberSnapshot(BaseModel):
    user_id: int
    name: Optional[str] = None
    avatar: Optional[str] = None


class ApplicantInfo(BaseModel):
    """Contact details as captured when the application was submitted."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin: Optional[str] = None


class ResumeInfo(BaseModel):
    url: Optional[str] = None
    filename: Optional[str] = None


class JobSummary(BaseModel):
    id: int
    title: str
    company: str
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AIAssessmentResponse(BaseModel):
    qualification_score: Optional[float] = None
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    cover_letter: Optional[str] = None
    resume_parsed_data: Optional[dict[str, Any]] = None


class ApplicationResponse(TimestampMixin):
    """Full application record as returned by every endpoint."""

    id: int
    job_id: int
    applicant_id: int
    job: Optional[JobSummary] = None
    applicant: ApplicantInfo
    cover_letter: Optional[str] = None
    resume: ResumeInfo
    status: ApplicationStatus
    hiring_stage: HiringStage
    score: float
    ai_assessment: AIAssessmentResponse
    assigned_to: list[TeamMemberSnapshot] = Field(default_factory=list)
    notes: list[NoteResponse] = Field(default_factory=list)
    interviews: list[InterviewResponse] = Field(default_factory=list)
    applied_at: datetime

    @classmethod
    def from_application(cls, application: Application) -> "ApplicationResponse":
        """Build the response from an application loaded with its relationships."""
        return cls(
            id=application.id,
            job_id=application.job_id,
            applicant_id=application.applicant_id,
            job=JobSummary.model_validate(application.job) if application.job else None,
            applicant=ApplicantInfo(
                name=application.applicant_name,
                email=application.applicant_email,
                phone=application.applicant_phone,
                linkedin=application.applicant_linkedin,
            ),
            cover_letter=application.cover_letter,
            resume=ResumeInfo(
                url=application.resume_url,
                filename=application.resume_filename,
            ),
            status=application.status,
            hiring_stage=application.hiring_stage,
            score=application.score,
            ai_assessment=AIAssessmentResponse(
                qualification_score=application.ai_qualification_score,
                matched_skills=application.ai_matched_skills or [],
                missing_skills=application.ai_missing_skills or [],
                strengths=application.ai_strengths or [],
                summary=application.ai_assessment_summary,
                cover_letter=application.ai_cover_letter,
                resume_parsed_data=application.resume_parsed_data,
            ),
            assigned_to=[
                TeamMemberSnapshot(**member) for member in application.assigned_to or []
            ],
            notes=[NoteResponse.model_validate(note) for note in application.notes],
            interviews=[
                InterviewResponse.model_validate(interview)
                for interview in application.interviews
            ],
            applied_at=application.applied_at,
            created_at=application.created_at,
            updated_at=application.updated_at,
        )


ApplicationPage = PaginatedResponse[ApplicationResponse]
