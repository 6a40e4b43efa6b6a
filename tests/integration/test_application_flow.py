"""
End-to-end tests of the hiring pipeline over HTTP.

The application runs in-process through httpx's ASGI transport with the
database dependency pointed at the per-test SQLite database.
"""

from datetime import timedelta

import httpx
import pytest
from sqlalchemy import select

from api.main import app
from database.engine import get_db
from database.models import Job
from tests.conftest import auth_headers, make_token

pytestmark = pytest.mark.integration

PREFIX = "/api/v1"


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


async def applications_count(session_factory, job_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(Job.applications_count).where(Job.id == job_id)
        )
        return result.scalar_one()


class TestApplicationLifecycle:
    """Apply, collaborate, interview and delete."""

    async def test_full_pipeline(self, client, session_factory, people, job):
        applicant = auth_headers(people.applicant.id)
        employer = auth_headers(people.employer.id)

        # Apply
        response = await client.post(
            f"{PREFIX}/applications",
            json={"job_id": job.id, "cover_letter": "I build reliable services."},
            headers=applicant,
        )
        assert response.status_code == 201
        record = response.json()
        application_id = record["id"]
        assert record["status"] == "Pending"
        assert record["hiring_stage"] == "In-Review"
        assert record["applicant"]["name"] == "Ada Applicant"
        assert record["job"]["title"] == "Backend Engineer"
        assert await applications_count(session_factory, job.id) == 1

        # Apply again
        response = await client.post(
            f"{PREFIX}/applications", json={"job_id": job.id}, headers=applicant
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
        assert await applications_count(session_factory, job.id) == 1

        # Note
        response = await client.post(
            f"{PREFIX}/employer/applicants/{application_id}/notes",
            json={"text": "Strong candidate"},
            headers=employer,
        )
        assert response.status_code == 200
        notes = response.json()["notes"]
        assert [note["text"] for note in notes] == ["Strong candidate"]
        assert notes[0]["author_name"] == "Erin Employer"

        # Interview
        response = await client.post(
            f"{PREFIX}/employer/applicants/{application_id}/interviews",
            json={"scheduledAt": "2026-11-03T14:30:00Z", "type": "Video"},
            headers=employer,
        )
        assert response.status_code == 200
        record = response.json()
        assert record["hiring_stage"] == "Interview"
        assert record["status"] == "Pending"
        interview = record["interviews"][0]
        assert interview["status"] == "Scheduled"
        assert interview["duration"] == 60

        # Feedback
        response = await client.post(
            f"{PREFIX}/employer/applicants/{application_id}"
            f"/interviews/{interview['id']}/feedback",
            json={"rating": 4, "comment": "Good fit"},
            headers=employer,
        )
        assert response.status_code == 200
        interview = response.json()["interviews"][0]
        assert interview["status"] == "Completed"
        assert interview["feedback"][0]["rating"] == 4
        assert interview["feedback"][0]["comment"] == "Good fit"

        # Applicant sees the same record
        response = await client.get(f"{PREFIX}/applications/me", headers=applicant)
        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [application_id]

        # Delete
        response = await client.delete(
            f"{PREFIX}/applications/{application_id}", headers=employer
        )
        assert response.status_code == 204
        assert await applications_count(session_factory, job.id) == 0

        response = await client.get(
            f"{PREFIX}/applications/{application_id}", headers=employer
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestEmployerEndpoints:
    """Pipeline management over HTTP."""

    @pytest.fixture
    async def application_id(self, client, people, job):
        response = await client.post(
            f"{PREFIX}/applications",
            json={"job_id": job.id},
            headers=auth_headers(people.applicant.id),
        )
        return response.json()["id"]

    async def test_status_stage_and_score(self, client, people, application_id):
        employer = auth_headers(people.employer.id)
        base = f"{PREFIX}/employer/applicants/{application_id}"

        response = await client.patch(
            f"{base}/status", json={"status": "Shortlisted"}, headers=employer
        )
        assert response.json()["status"] == "Shortlisted"
        assert response.json()["hiring_stage"] == "In-Review"

        response = await client.put(
            f"{base}/stage", json={"hiringStage": "Hired"}, headers=employer
        )
        assert response.json()["hiring_stage"] == "Hired"
        assert response.json()["status"] == "Shortlisted"

        response = await client.put(f"{base}/score", json={"score": 3.5}, headers=employer)
        assert response.json()["score"] == 3.5

    async def test_out_of_range_score(self, client, people, application_id):
        response = await client.put(
            f"{PREFIX}/employer/applicants/{application_id}/score",
            json={"score": 7},
            headers=auth_headers(people.employer.id),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("score", [True, "4"])
    async def test_non_numeric_score(self, client, people, application_id, score):
        employer = auth_headers(people.employer.id)
        base = f"{PREFIX}/employer/applicants/{application_id}"

        response = await client.put(f"{base}/score", json={"score": score}, headers=employer)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        response = await client.get(f"{PREFIX}/applications/{application_id}", headers=employer)
        assert response.json()["score"] == 0

    async def test_empty_status_update(self, client, people, application_id):
        response = await client.patch(
            f"{PREFIX}/employer/applicants/{application_id}/status",
            json={},
            headers=auth_headers(people.employer.id),
        )
        assert response.status_code == 400

    async def test_listing_with_filters(self, client, people, job, application_id):
        response = await client.get(
            f"{PREFIX}/employer/jobs/{job.id}/applicants",
            params={"hiringStage": "In-Review", "search": "ada", "page_size": 10},
            headers=auth_headers(people.employer.id),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["page_size"] == 10
        assert body["total_pages"] == 1
        assert body["items"][0]["id"] == application_id

    async def test_pipeline_listing(self, client, people, application_id):
        response = await client.get(
            f"{PREFIX}/employer/applicants", headers=auth_headers(people.employer.id)
        )
        assert response.json()["total"] == 1

        response = await client.get(
            f"{PREFIX}/employer/applicants", headers=auth_headers(people.other_employer.id)
        )
        assert response.json()["total"] == 0

    async def test_assign_and_ai_assessment(self, client, people, application_id):
        employer = auth_headers(people.employer.id)
        base = f"{PREFIX}/employer/applicants/{application_id}"

        response = await client.put(
            f"{base}/assign",
            json={"teamMemberIds": [people.recruiter.id]},
            headers=employer,
        )
        assert response.json()["assigned_to"][0]["name"] == "Rita Recruiter"

        response = await client.put(
            f"{base}/assign", json={"teamMemberIds": "oops"}, headers=employer
        )
        assert response.status_code == 400

        response = await client.put(
            f"{base}/ai-assessment",
            json={"ai_qualification_score": 140, "ai_matched_skills": "python"},
            headers=employer,
        )
        assessment = response.json()["ai_assessment"]
        assert assessment["qualification_score"] == 100
        assert assessment["matched_skills"] == ["python"]

    async def test_interview_update_and_bad_rating(self, client, people, application_id):
        employer = auth_headers(people.employer.id)
        base = f"{PREFIX}/employer/applicants/{application_id}"

        response = await client.post(
            f"{base}/interviews",
            json={"scheduledAt": "2026-11-03T14:30:00Z", "type": "Phone", "location": "Zoom"},
            headers=employer,
        )
        interview_id = response.json()["interviews"][0]["id"]

        response = await client.put(
            f"{base}/interviews/{interview_id}", json={"duration": 30}, headers=employer
        )
        interview = response.json()["interviews"][0]
        assert interview["duration"] == 30
        assert interview["location"] == "Zoom"

        response = await client.post(
            f"{base}/interviews/{interview_id}/feedback", json={"rating": 9}, headers=employer
        )
        assert response.status_code == 400

    async def test_reply_to_unknown_note(self, client, people, application_id):
        response = await client.post(
            f"{PREFIX}/employer/applicants/{application_id}/notes",
            json={"text": "hi", "replyToNoteId": 4242},
            headers=auth_headers(people.employer.id),
        )
        assert response.status_code == 404


class TestAccessControl:
    """Authentication and authorization at the HTTP surface."""

    async def test_missing_token(self, client, people):
        response = await client.get(f"{PREFIX}/applications/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"

    async def test_expired_token(self, client, people):
        token = make_token(people.applicant.id, expires_in=timedelta(minutes=-5))

        response = await client.get(
            f"{PREFIX}/applications/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_unknown_user(self, client, people):
        response = await client.get(
            f"{PREFIX}/applications/me", headers=auth_headers(999999)
        )
        assert response.status_code == 401

    async def test_other_employer_forbidden(self, client, people, job):
        response = await client.post(
            f"{PREFIX}/applications",
            json={"job_id": job.id},
            headers=auth_headers(people.applicant.id),
        )
        application_id = response.json()["id"]

        response = await client.get(
            f"{PREFIX}/applications/{application_id}",
            headers=auth_headers(people.other_employer.id),
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    async def test_invalid_payload(self, client, people):
        response = await client.post(
            f"{PREFIX}/applications",
            json={"cover_letter": "no job id"},
            headers=auth_headers(people.applicant.id),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json()["status"] == "healthy"

    async def test_ready(self, client):
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "ok"}
