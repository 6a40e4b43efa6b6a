"""
API Services Layer.

Database operations behind the hiring pipeline endpoints.
"""

from api.services.applications import (
    create_application,
    get_application,
    update_status,
    update_hiring_stage,
    update_score,
    delete_application,
    assign_team_members,
    record_ai_assessment,
    list_applications_by_applicant,
    list_applications_by_job,
    list_employer_pipeline,
)

from api.services.notes import add_note

from api.services.interviews import (
    schedule_interview,
    update_interview,
    add_interview_feedback,
    advance_to_interview_stage,
    complete_on_first_feedback,
)

from api.services.job_counters import refresh_applications_count

from api.services.ai_assessment import normalize_ai_assessment

from api.services.directory import get_job, get_user, get_users_by_ids

__all__ = [
    # Applications
    "create_application",
    "get_application",
    "update_status",
    "update_hiring_stage",
    "update_score",
    "delete_application",
    "assign_team_members",
    "record_ai_assessment",
    "list_applications_by_applicant",
    "list_applications_by_job",
    "list_employer_pipeline",
    # Notes
    "add_note",
    # Interviews
    "schedule_interview",
    "update_interview",
    "add_interview_feedback",
    "advance_to_interview_stage",
    "complete_on_first_feedback",
    # Consistency
    "refresh_applications_count",
    # AI assessment
    "normalize_ai_assessment",
    # Directory
    "get_job",
    "get_user",
    "get_users_by_ids",
]
