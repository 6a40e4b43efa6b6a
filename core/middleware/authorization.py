"""
Authorization guard for application records.

Implements:
1. Role-level permissions (jobseeker, employer, admin)
2. Ownership scoping: employers act only on applications to jobs they own
3. Self-access: applicants may read their own application
4. Access-denial logging
"""

import logging
from enum import Enum
from typing import Set

from core.exceptions import Forbidden
from database.models.users import User, UserType
from database.models.jobs import Job
from database.models.applications import Application

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Permissions on application records."""

    APPLICATION_CREATE = "application:create"
    APPLICATION_READ = "application:read"
    APPLICATION_UPDATE = "application:update"
    APPLICATION_NOTE = "application:note"
    APPLICATION_INTERVIEW = "application:interview"
    APPLICATION_ASSIGN = "application:assign"
    APPLICATION_DELETE = "application:delete"
    APPLICATION_AI_ASSESSMENT = "application:ai_assessment"


EMPLOYER_PERMISSIONS: Set[Permission] = {
    Permission.APPLICATION_READ,
    Permission.APPLICATION_UPDATE,
    Permission.APPLICATION_NOTE,
    Permission.APPLICATION_INTERVIEW,
    Permission.APPLICATION_ASSIGN,
    Permission.APPLICATION_DELETE,
    Permission.APPLICATION_AI_ASSESSMENT,
}

# Role to permission mapping
ROLE_PERMISSIONS: dict[UserType, Set[Permission]] = {
    UserType.ADMIN: set(Permission),
    UserType.EMPLOYER: EMPLOYER_PERMISSIONS,
    UserType.JOBSEEKER: {
        Permission.APPLICATION_CREATE,
        Permission.APPLICATION_READ,
    },
}


def get_user_permissions(user: User) -> Set[Permission]:
    """Permissions granted by the user's role, before ownership scoping."""
    if not user.is_active:
        return set()
    return ROLE_PERMISSIONS.get(user.user_type, set())


def _deny(
    user: User, permission: Permission, kind: str, resource_id: int | None = None
) -> Forbidden:
    target = f"{kind} {resource_id}" if resource_id is not None else kind
    logger.warning(
        f"User {user.id} ({user.user_type.value}) denied {permission.value} on {target}"
    )
    return Forbidden(f"Not authorized to perform {permission.value} on this {kind}")


def owns_job(user: User, job: Job) -> bool:
    return user.user_type == UserType.EMPLOYER and job.employer_id == user.id


def check_job_access(
    user: User,
    job: Job,
    permission: Permission = Permission.APPLICATION_READ,
) -> None:
    """
    Check that the user may work with applications of a job.

    Raises:
        Forbidden: If the user is neither an admin nor the job's employer
    """
    if permission not in get_user_permissions(user):
        raise _deny(user, permission, "job", job.id)

    if user.user_type == UserType.ADMIN or owns_job(user, job):
        return

    raise _deny(user, permission, "job", job.id)


def check_application_permission(
    user: User,
    application: Application,
    permission: Permission,
) -> None:
    """
    Check that the user holds a permission on a specific application.

    The application's `job` relationship must be loaded.

    Raises:
        Forbidden: If the user lacks the permission for this application
    """
    if permission not in get_user_permissions(user):
        raise _deny(user, permission, "application", application.id)

    if user.user_type == UserType.ADMIN:
        return

    if user.user_type == UserType.EMPLOYER and owns_job(user, application.job):
        return

    # Applicants only ever read their own record
    if (
        user.user_type == UserType.JOBSEEKER
        and permission == Permission.APPLICATION_READ
        and application.applicant_id == user.id
    ):
        return

    raise _deny(user, permission, "application", application.id)


def check_can_apply(user: User, applicant_id: int) -> None:
    """
    Check that the user may submit an application for `applicant_id`.

    Jobseekers apply for themselves; admins may apply on someone's behalf.
    """
    if Permission.APPLICATION_CREATE not in get_user_permissions(user):
        raise _deny(user, Permission.APPLICATION_CREATE, "application")

    if user.user_type == UserType.ADMIN or applicant_id == user.id:
        return

    raise _deny(user, Permission.APPLICATION_CREATE, "application")


def check_applicant_listing(user: User, applicant_id: int) -> None:
    """Applicants list their own applications; admins list anyone's."""
    if user.user_type == UserType.ADMIN and user.is_active:
        return
    if user.is_active and user.user_type == UserType.JOBSEEKER and user.id == applicant_id:
        return
    raise _deny(user, Permission.APPLICATION_READ, "applicant", applicant_id)


def check_pipeline_access(user: User) -> None:
    """Cross-job pipeline listings are for employers and admins."""
    if Permission.APPLICATION_UPDATE not in get_user_permissions(user):
        raise _deny(user, Permission.APPLICATION_READ, "pipeline")
