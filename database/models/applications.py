"""
Application Models

Job applications with their hiring-pipeline state, applicant snapshot,
AI assessment fields, threaded employer notes, interview rounds and
interview feedback.

Notes, interviews and feedback are owned rows addressed by ids scoped to
their application. They are only ever appended (INSERT), never rewritten,
so concurrent writers cannot lose each other's entries.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    JSON,
    Float,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK
from database.models.users import utcnow
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.jobs import Job


def _enum_column(enum_cls: type[PyEnum]) -> SQLEnum:
    """Store enum values ("In-Review") rather than member names."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=50,
        values_callable=lambda enum: [member.value for member in enum],
    )


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Applicant-facing application status."""

    PENDING = "Pending"
    REVIEWED = "Reviewed"
    SHORTLISTED = "Shortlisted"
    INTERVIEW = "Interview"
    OFFERED = "Offered"
    HIRED = "Hired"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"


class HiringStage(str, PyEnum):
    """Employer-facing pipeline position."""

    IN_REVIEW = "In-Review"
    SHORTLISTED = "Shortlisted"
    INTERVIEW = "Interview"
    HIRED = "Hired"
    DECLINED = "Declined"


class InterviewType(str, PyEnum):
    PHONE = "Phone"
    VIDEO = "Video"
    IN_PERSON = "In-Person"
    WRITTEN_TEST = "Written Test"
    SKILL_TEST = "Skill Test"


class InterviewStatus(str, PyEnum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    RESCHEDULED = "Rescheduled"


# ==================== Application Model ===================== #
class Application(Base):
    """
    Job application - a candidate applying to a specific job.
    One application per (job, applicant) pair, enforced by a unique constraint.
    """

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )

    # Identity (immutable after creation)
    job_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    applicant_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Content
    cover_letter: Mapped[str | None] = mapped_column(Text)
    resume_url: Mapped[str | None] = mapped_column(String(1000))
    resume_filename: Mapped[str | None] = mapped_column(String(255))

    # Applicant snapshot, captured once at submission and never re-synced
    applicant_name: Mapped[str | None] = mapped_column(String(200), index=True)
    applicant_email: Mapped[str | None] = mapped_column(String(255))
    applicant_phone: Mapped[str | None] = mapped_column(String(30))
    applicant_linkedin: Mapped[str | None] = mapped_column(String(500))

    # Pipeline state
    status: Mapped[ApplicationStatus] = mapped_column(
        _enum_column(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )
    hiring_stage: Mapped[HiringStage] = mapped_column(
        _enum_column(HiringStage),
        nullable=False,
        default=HiringStage.IN_REVIEW,
        index=True,
    )
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # AI assessment (external, stored verbatim)
    ai_qualification_score: Mapped[float | None] = mapped_column(Float)  # 0 to 100
    ai_matched_skills: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    ai_missing_skills: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    ai_strengths: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    ai_assessment_summary: Mapped[str | None] = mapped_column(Text)
    ai_cover_letter: Mapped[str | None] = mapped_column(Text)
    resume_parsed_data: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Team assignment: [{"user_id", "name", "avatar"}], replaced wholesale
    assigned_to: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    # Timestamps
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships (always loaded explicitly with selectinload)
    job: Mapped["Job"] = relationship("Job", lazy="raise")
    notes: Mapped[list["ApplicationNote"]] = relationship(
        "ApplicationNote",
        primaryjoin="and_(Application.id == ApplicationNote.application_id, "
        "ApplicationNote.parent_note_id.is_(None))",
        order_by="ApplicationNote.id",
        viewonly=True,
        lazy="raise",
    )
    interviews: Mapped[list["ApplicationInterview"]] = relationship(
        "ApplicationInterview",
        order_by="ApplicationInterview.id",
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_application_job_applicant"),
        Index("idx_application_job_stage", "job_id", "hiring_stage"),
        Index("idx_application_job_status", "job_id", "status"),
        Index("idx_application_applied_at", "applied_at"),
    )


# ==================== Application Note Model ===================== #
class ApplicationNote(Base):
    """
    Employer note on an application. Top-level notes have no parent;
    replies point at a top-level note of the same application.
    """

    __tablename__ = "application_notes"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_note_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("application_notes.id", ondelete="CASCADE")
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    # Author snapshot taken at write time
    added_by: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=False
    )
    author_name: Mapped[str | None] = mapped_column(String(200))
    author_avatar: Mapped[str | None] = mapped_column(String(1000))
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    replies: Mapped[list["ApplicationNote"]] = relationship(
        "ApplicationNote",
        order_by="ApplicationNote.id",
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_application_note_application", "application_id"),
        Index("idx_application_note_parent", "parent_note_id"),
    )


# ==================== Interview Models ===================== #
class ApplicationInterview(Base):
    """One interview round of an application."""

    __tablename__ = "application_interviews"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    application_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )

    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    type: Mapped[InterviewType] = mapped_column(
        _enum_column(InterviewType), nullable=False
    )
    location: Mapped[str | None] = mapped_column(String(1000))  # URL or address
    notes: Mapped[str | None] = mapped_column(Text)  # agenda / instructions
    status: Mapped[InterviewStatus] = mapped_column(
        _enum_column(InterviewStatus),
        nullable=False,
        default=InterviewStatus.SCHEDULED,
    )
    interviewers: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    scheduled_by: Mapped[int | None] = mapped_column(BigIntPK, ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    feedback: Mapped[list["InterviewFeedback"]] = relationship(
        "InterviewFeedback",
        order_by="InterviewFeedback.id",
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_interview_application", "application_id"),
        Index("idx_interview_scheduled_at", "scheduled_at"),
    )


class InterviewFeedback(Base):
    """Rating and comment left by an interviewer on a round."""

    __tablename__ = "interview_feedback"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    interview_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("application_interviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1 to 5
    comment: Mapped[str | None] = mapped_column(Text)
    submitted_by: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=False
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
