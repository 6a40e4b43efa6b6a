"""
Tests for core security utilities: bearer token verification and audit
logging.
"""

import json
import logging
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from core.config import settings
from core.security import (
    AuditAction,
    ResourceType,
    TokenError,
    log_audit_event,
    mask_pii,
    verify_jwt_token,
)


def encode(payload, key=None):
    return pyjwt.encode(
        payload, key or settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )


class TestVerifyJWTToken:
    """Token verification."""

    def test_valid_token(self):
        expires = datetime.now(timezone.utc) + timedelta(minutes=5)
        payload = verify_jwt_token(encode({"sub": "42", "exp": expires}))

        assert payload.user_id == 42
        assert payload.expires_at is not None
        assert abs((payload.expires_at - expires).total_seconds()) < 1

    def test_token_without_expiry(self):
        payload = verify_jwt_token(encode({"sub": "9"}))

        assert payload.user_id == 9
        assert payload.expires_at is None

    def test_expired_token(self):
        expired = datetime.now(timezone.utc) - timedelta(minutes=1)

        with pytest.raises(TokenError, match="expired"):
            verify_jwt_token(encode({"sub": "42", "exp": expired}))

    def test_wrong_key(self):
        token = encode({"sub": "42"}, key="not-the-server-key-at-all-0123456789")

        with pytest.raises(TokenError, match="Invalid token"):
            verify_jwt_token(token)

    def test_malformed_token(self):
        with pytest.raises(TokenError):
            verify_jwt_token("not.a.jwt")

    @pytest.mark.parametrize("claims", [{}, {"sub": "ada"}, {"sub": None}])
    def test_unusable_subject(self, claims):
        with pytest.raises(TokenError):
            verify_jwt_token(encode(claims))


class TestMaskPII:
    """Audit detail masking."""

    def test_partial_masking(self):
        masked = mask_pii({"applicant_email": "ada@example.test", "score": 4})

        assert masked == {"applicant_email": "a***[16]", "score": 4}

    def test_empty_value(self):
        assert mask_pii({"phone": None}) == {"phone": "[MASKED]"}

    def test_nested_and_truncated_lists(self):
        masked = mask_pii({"items": [{"name": "Ada"}] * 8})

        assert len(masked["items"]) == 5
        assert masked["items"][0] == {"name": "A***[3]"}

    def test_depth_limit(self):
        data = current = {}
        for _ in range(12):
            current["next"] = {}
            current = current["next"]

        masked = mask_pii(data)
        for _ in range(11):
            masked = masked["next"]
        assert masked == "[MAX_DEPTH]"


class TestAuditEvents:
    """Structured audit log lines."""

    def test_event_logged_as_json(self, caplog):
        caplog.set_level(logging.INFO, logger="security.audit")

        event = log_audit_event(
            AuditAction.UPDATE_STATUS,
            ResourceType.APPLICATION,
            resource_id=12,
            user_id=3,
            details={"status": "Shortlisted"},
        )

        assert event["action"] == "UPDATE_STATUS"
        assert event["resource_type"] == "APPLICATION"
        assert event["resource_id"] == "12"
        assert event["details"] == {"status": "Shortlisted"}

        logged = json.loads(caplog.records[-1].getMessage())
        assert logged["event_type"] == "AUDIT"
        assert logged["user_id"] == 3

    def test_pii_details_masked(self):
        event = log_audit_event(
            AuditAction.CREATE,
            ResourceType.APPLICATION,
            resource_id=1,
            user_id=2,
            details={"applicant_email": "ada@example.test", "job_id": 5},
            contains_pii=True,
        )

        assert event["details"] == {"applicant_email": "a***[16]", "job_id": 5}

    def test_missing_resource_id(self):
        event = log_audit_event(AuditAction.ASSIGN, ResourceType.APPLICATION)
        assert event["resource_id"] is None
