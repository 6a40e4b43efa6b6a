"""
Security utilities: bearer token verification and audit logging.

Tokens are issued by the identity service; this module only verifies them
and extracts the acting user's id.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

import jwt

from core.config import settings

logger = logging.getLogger("security.audit")


class TokenError(Exception):
    """Raised when a bearer token cannot be verified."""
    pass


@dataclass
class JWTPayload:
    """Verified claims of an access token."""
    user_id: int
    expires_at: Optional[datetime] = None


def verify_jwt_token(token: str) -> JWTPayload:
    """
    Verify an access token and extract the user id from its `sub` claim.

    Raises:
        TokenError: If the token is expired, malformed or has no usable subject
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid token") from exc

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise TokenError("Invalid token subject") from exc

    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
    return JWTPayload(user_id=user_id, expires_at=expires_at)


class AuditAction(str, Enum):
    """Audit log action types."""
    CREATE = "CREATE"
    DELETE = "DELETE"
    UPDATE_STATUS = "UPDATE_STATUS"
    UPDATE_SCORE = "UPDATE_SCORE"
    ADD_NOTE = "ADD_NOTE"
    SCHEDULE_INTERVIEW = "SCHEDULE_INTERVIEW"
    UPDATE_INTERVIEW = "UPDATE_INTERVIEW"
    ADD_FEEDBACK = "ADD_FEEDBACK"
    ASSIGN = "ASSIGN"
    AI_ASSESSMENT = "AI_ASSESSMENT"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    APPLICATION = "APPLICATION"
    INTERVIEW = "INTERVIEW"
    NOTE = "NOTE"
    JOB = "JOB"


# PII fields that should be masked in audit details
PII_FIELDS: Set[str] = {
    "email", "phone", "name", "applicant_name", "applicant_email",
    "applicant_phone", "linkedin", "applicant_linkedin",
}


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    Args:
        data: Data to mask (dict, list, or primitive)
        depth: Current recursion depth (max 10)

    Returns:
        Data with PII fields masked
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in PII_FIELDS:
                if isinstance(value, str) and len(value) > 0:
                    # Partial masking: show first char and length indicator
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    elif isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]  # Limit list items
    else:
        return data


def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[int] = None,
    user_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    contains_pii: bool = False,
) -> Dict[str, Any]:
    """
    Log an audit event for a pipeline mutation.

    Emits one structured JSON line on the `security.audit` logger and
    returns the event for callers that want to inspect it.
    """
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id is not None else None,
        "user_id": user_id,
        "contains_pii": contains_pii,
        "details": mask_pii(details) if details and contains_pii else details,
    }

    logger.info(json.dumps(event, default=str))
    return event
