"""
Core middleware package.

- Error handling with sensitive data sanitization
- Structured request logging with PII masking
- Authorization guard for application records
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    StructuredFormatter,
    setup_logging,
)

from core.middleware.authorization import (
    Permission,
    get_user_permissions,
    check_application_permission,
    check_job_access,
    check_can_apply,
    check_applicant_listing,
    check_pipeline_access,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "StructuredFormatter",
    "setup_logging",
    # Authorization
    "Permission",
    "get_user_permissions",
    "check_application_permission",
    "check_job_access",
    "check_can_apply",
    "check_applicant_listing",
    "check_pipeline_access",
]
