"""
Tests for the application service: submission, reads, status/score updates,
deletion and the per-job applications counter.
"""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.applications import (
    create_application,
    delete_application,
    get_application,
    update_hiring_stage,
    update_score,
    update_status,
)
from api.services.interviews import add_interview_feedback, schedule_interview
from api.services.notes import add_note
from core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from database.models import (
    Application,
    ApplicationInterview,
    ApplicationNote,
    ApplicationStatus,
    HiringStage,
    InterviewFeedback,
    InterviewType,
    Job,
    User,
    UserType,
)
from datetime import datetime, timezone


async def stored_count(db, job_id: int) -> int:
    result = await db.execute(select(Job.applications_count).where(Job.id == job_id))
    return result.scalar_one()


async def row_count(db, model, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


class TestCreateApplication:
    """Submitting applications."""

    async def test_new_application_starts_pending_in_review(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)

        assert application.status == ApplicationStatus.PENDING
        assert application.hiring_stage == HiringStage.IN_REVIEW
        assert application.score == 0
        assert application.assigned_to == []
        assert application.notes == []
        assert application.interviews == []
        assert application.job.title == "Backend Engineer"

    async def test_snapshot_copies_applicant_profile(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)

        assert application.applicant_id == people.applicant.id
        assert application.applicant_name == "Ada Applicant"
        assert application.applicant_email == "ada@example.test"
        assert application.applicant_phone == "555-0100"
        assert application.applicant_linkedin == "https://linkedin.com/in/ada"

    async def test_request_values_override_profile(self, db, people, job):
        application = await create_application(
            db,
            people.applicant,
            job.id,
            applicant_name="Ada L.",
            applicant_phone="555-0199",
        )

        assert application.applicant_name == "Ada L."
        assert application.applicant_phone == "555-0199"
        assert application.applicant_email == "ada@example.test"

    async def test_snapshot_is_not_resynced(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)
        application_id = application.id

        people.applicant.name = "Ada Renamed"
        await db.commit()

        reloaded = await get_application(db, people.applicant, application_id)
        assert reloaded.applicant_name == "Ada Applicant"

    async def test_counter_refreshed_after_create(self, db, people, job):
        await create_application(db, people.applicant, job.id)
        await create_application(db, people.second_applicant, job.id)

        assert await stored_count(db, job.id) == 2

    async def test_duplicate_application_conflicts(self, db, people, job):
        await create_application(db, people.applicant, job.id)

        with pytest.raises(Conflict):
            await create_application(db, people.applicant, job.id)

        assert await row_count(db, Application, Application.job_id == job.id) == 1
        assert await stored_count(db, job.id) == 1

    async def test_same_applicant_may_apply_to_other_jobs(self, db, people, job, other_job):
        await create_application(db, people.applicant, job.id)
        await create_application(db, people.applicant, other_job.id)

        assert await stored_count(db, job.id) == 1
        assert await stored_count(db, other_job.id) == 1

    async def test_unique_constraint_enforced_by_database(self, session_factory, people, job):
        async with session_factory() as session:
            session.add(Application(job_id=job.id, applicant_id=people.applicant.id))
            session.add(Application(job_id=job.id, applicant_id=people.applicant.id))
            with pytest.raises(IntegrityError):
                await session.commit()

    async def test_concurrent_duplicates_yield_one_application(
        self, db, session_factory, people, job, monkeypatch
    ):
        # Both submissions pass the existence check before either commits
        gate = asyncio.Barrier(2)
        gated = set()
        commit = AsyncSession.commit

        async def commit_after_gate(session):
            if id(session) not in gated:
                gated.add(id(session))
                await gate.wait()
            await commit(session)

        monkeypatch.setattr(AsyncSession, "commit", commit_after_gate)

        async def submit():
            async with session_factory() as session:
                applicant = await session.get(User, people.applicant.id)
                return await create_application(session, applicant, job.id)

        results = await asyncio.gather(submit(), submit(), return_exceptions=True)

        assert sorted(type(result).__name__ for result in results) == [
            "Application",
            "Conflict",
        ]
        assert await row_count(db, Application, Application.job_id == job.id) == 1
        assert await stored_count(db, job.id) == 1

    async def test_unknown_job_is_not_found(self, db, people):
        with pytest.raises(NotFound):
            await create_application(db, people.applicant, 9999)

    async def test_employer_cannot_apply(self, db, people, job):
        with pytest.raises(Forbidden):
            await create_application(db, people.other_employer, job.id)

    async def test_applicant_cannot_apply_for_someone_else(self, db, people, job):
        with pytest.raises(Forbidden):
            await create_application(
                db, people.applicant, job.id, applicant_id=people.second_applicant.id
            )

    async def test_admin_may_apply_on_behalf(self, db, people, job):
        application = await create_application(
            db, people.admin, job.id, applicant_id=people.second_applicant.id
        )

        assert application.applicant_id == people.second_applicant.id
        assert application.applicant_name == "Ben Builder"

    async def test_cover_letter_length_limited(self, db, people, job):
        with pytest.raises(ValidationError):
            await create_application(db, people.applicant, job.id, cover_letter="x" * 2001)

        application = await create_application(
            db, people.applicant, job.id, cover_letter="x" * 2000
        )
        assert len(application.cover_letter) == 2000

    async def test_ai_assessment_ingested_on_create(self, db, people, job):
        application = await create_application(
            db,
            people.applicant,
            job.id,
            ai_assessment={
                "ai_qualification_score": 140,
                "ai_matched_skills": ["python", "sql"],
                "ai_assessment_summary": "Strong backend profile",
            },
        )

        assert application.ai_qualification_score == 100
        assert application.ai_matched_skills == ["python", "sql"]
        assert application.ai_missing_skills == []
        assert application.ai_assessment_summary == "Strong backend profile"

    async def test_without_ai_assessment_fields_are_empty(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)

        assert application.ai_qualification_score is None
        assert application.ai_strengths == []
        assert application.resume_parsed_data is None


class TestGetApplication:
    """Reading a single application."""

    @pytest.fixture
    async def application(self, db, people, job):
        return await create_application(db, people.applicant, job.id)

    @pytest.mark.parametrize("reader", ["employer", "admin", "applicant"])
    async def test_allowed_readers(self, db, people, application, reader):
        loaded = await get_application(db, getattr(people, reader), application.id)
        assert loaded.id == application.id

    @pytest.mark.parametrize("reader", ["other_employer", "second_applicant"])
    async def test_other_users_forbidden(self, db, people, application, reader):
        with pytest.raises(Forbidden):
            await get_application(db, getattr(people, reader), application.id)

    async def test_missing_application(self, db, people):
        with pytest.raises(NotFound):
            await get_application(db, people.admin, 424242)

    async def test_inactive_admin_has_no_access(self, db, people, application):
        people.admin.is_active = False
        await db.commit()

        with pytest.raises(Forbidden):
            await get_application(db, people.admin, application.id)


class TestStatusAndScore:
    """Direct status, stage and score updates."""

    @pytest.fixture
    async def application(self, db, people, job):
        return await create_application(db, people.applicant, job.id)

    async def test_status_only_leaves_stage(self, db, people, application):
        updated = await update_status(
            db, people.employer, application.id, status=ApplicationStatus.REVIEWED
        )

        assert updated.status == ApplicationStatus.REVIEWED
        assert updated.hiring_stage == HiringStage.IN_REVIEW

    async def test_stage_only_leaves_status(self, db, people, application):
        updated = await update_status(
            db, people.employer, application.id, hiring_stage=HiringStage.SHORTLISTED
        )

        assert updated.status == ApplicationStatus.PENDING
        assert updated.hiring_stage == HiringStage.SHORTLISTED

    async def test_both_fields_set_without_cross_validation(self, db, people, application):
        updated = await update_status(
            db,
            people.employer,
            application.id,
            status=ApplicationStatus.REJECTED,
            hiring_stage=HiringStage.HIRED,
        )

        assert updated.status == ApplicationStatus.REJECTED
        assert updated.hiring_stage == HiringStage.HIRED

    async def test_neither_field_is_a_validation_error(self, db, people, application):
        with pytest.raises(ValidationError):
            await update_status(db, people.employer, application.id)

    async def test_update_hiring_stage(self, db, people, application):
        updated = await update_hiring_stage(
            db, people.admin, application.id, HiringStage.DECLINED
        )
        assert updated.hiring_stage == HiringStage.DECLINED

    @pytest.mark.parametrize("score", [0, 3.5, 5])
    async def test_score_in_range(self, db, people, application, score):
        updated = await update_score(db, people.employer, application.id, score)
        assert updated.score == score

    @pytest.mark.parametrize("score", [-0.1, 5.1, 10])
    async def test_score_out_of_range(self, db, people, application, score):
        with pytest.raises(ValidationError):
            await update_score(db, people.employer, application.id, score)

    @pytest.mark.parametrize("score", [True, False, "3", None, float("nan")])
    async def test_score_must_be_a_number(self, db, people, application, score):
        with pytest.raises(ValidationError):
            await update_score(db, people.employer, application.id, score)

        reloaded = await get_application(db, people.employer, application.id)
        assert reloaded.score == 0

        reloaded = await get_application(db, people.employer, application.id)
        assert reloaded.score == 0

    async def test_score_overwrites(self, db, people, application):
        await update_score(db, people.employer, application.id, 2)
        updated = await update_score(db, people.employer, application.id, 4)
        assert updated.score == 4

    async def test_other_employer_cannot_update(self, db, people, application):
        with pytest.raises(Forbidden):
            await update_status(
                db, people.other_employer, application.id, status=ApplicationStatus.HIRED
            )
        with pytest.raises(Forbidden):
            await update_score(db, people.other_employer, application.id, 5)

    async def test_applicant_cannot_update_own_application(self, db, people, application):
        with pytest.raises(Forbidden):
            await update_status(
                db, people.applicant, application.id, status=ApplicationStatus.HIRED
            )

        reloaded = await get_application(db, people.applicant, application.id)
        assert reloaded.status == ApplicationStatus.PENDING


class TestDeleteApplication:
    """Deletion and counter recomputation."""

    async def test_delete_removes_record_and_sub_entities(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)
        application_id = application.id
        application = await add_note(db, people.employer, application_id, "Looks good")
        note_id = application.notes[0].id
        await add_note(db, people.employer, application_id, "Agreed", reply_to_note_id=note_id)
        application = await schedule_interview(
            db,
            people.employer,
            application_id,
            scheduled_at=datetime(2026, 11, 2, 15, tzinfo=timezone.utc),
            interview_type=InterviewType.VIDEO,
        )
        interview_id = application.interviews[0].id
        await add_interview_feedback(db, people.employer, application_id, interview_id, 4)

        await delete_application(db, people.employer, application_id)

        assert await row_count(db, Application, Application.id == application_id) == 0
        assert await row_count(
            db, ApplicationNote, ApplicationNote.application_id == application_id
        ) == 0
        assert await row_count(
            db, ApplicationInterview, ApplicationInterview.application_id == application_id
        ) == 0
        assert await row_count(
            db, InterviewFeedback, InterviewFeedback.interview_id == interview_id
        ) == 0
        with pytest.raises(NotFound):
            await get_application(db, people.employer, application_id)

    async def test_counter_converges_after_creates_and_deletes(self, db, people, job):
        extra_applicants = [
            User(name=f"Candidate {i}", email=f"candidate{i}@example.test",
                 user_type=UserType.JOBSEEKER)
            for i in range(3)
        ]
        db.add_all(extra_applicants)
        await db.commit()

        created = []
        for applicant in [people.applicant, people.second_applicant, *extra_applicants]:
            application = await create_application(db, applicant, job.id)
            created.append(application.id)

        for application_id in created[:2]:
            await delete_application(db, people.employer, application_id)

        assert await stored_count(db, job.id) == 3

    async def test_delete_application_leaves_other_jobs_alone(self, db, people, job, other_job):
        first = await create_application(db, people.applicant, job.id)
        await create_application(db, people.applicant, other_job.id)

        await delete_application(db, people.admin, first.id)

        assert await stored_count(db, job.id) == 0
        assert await stored_count(db, other_job.id) == 1

    async def test_other_employer_cannot_delete(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)

        with pytest.raises(Forbidden):
            await delete_application(db, people.other_employer, application.id)

        assert await stored_count(db, job.id) == 1

    async def test_applicant_cannot_delete(self, db, people, job):
        application = await create_application(db, people.applicant, job.id)

        with pytest.raises(Forbidden):
            await delete_application(db, people.applicant, application.id)

    async def test_delete_missing_application(self, db, people):
        with pytest.raises(NotFound):
            await delete_application(db, people.admin, 31337)
