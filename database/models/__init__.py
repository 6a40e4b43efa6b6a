"""ORM models for the hiring pipeline."""

from database.models.users import User, UserType
from database.models.jobs import Job
from database.models.applications import (
    Application,
    ApplicationNote,
    ApplicationInterview,
    InterviewFeedback,
    ApplicationStatus,
    HiringStage,
    InterviewType,
    InterviewStatus,
)

__all__ = [
    "User",
    "UserType",
    "Job",
    "Application",
    "ApplicationNote",
    "ApplicationInterview",
    "InterviewFeedback",
    "ApplicationStatus",
    "HiringStage",
    "InterviewType",
    "InterviewStatus",
]
