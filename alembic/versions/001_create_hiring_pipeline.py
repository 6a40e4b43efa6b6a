"""Create hiring pipeline tables

Revision ID: 001_create_hiring_pipeline
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_hiring_pipeline'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create users, jobs, applications and their notes, interviews and feedback."""
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('avatar', sa.String(length=1000), nullable=True, server_default='default-avatar.png'),
        sa.Column('linkedin', sa.String(length=500), nullable=True),
        sa.Column('user_type', sa.String(length=50), nullable=False, server_default='jobseeker'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('idx_user_type', 'users', ['user_type'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('employer_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('company', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('applications_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['employer_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_job_employer', 'jobs', ['employer_id'])
    op.create_index('idx_job_created_at', 'jobs', ['created_at'])

    op.create_table(
        'applications',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('job_id', sa.BigInteger(), nullable=False),
        sa.Column('applicant_id', sa.BigInteger(), nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_url', sa.String(length=1000), nullable=True),
        sa.Column('resume_filename', sa.String(length=255), nullable=True),
        sa.Column('applicant_name', sa.String(length=200), nullable=True),
        sa.Column('applicant_email', sa.String(length=255), nullable=True),
        sa.Column('applicant_phone', sa.String(length=30), nullable=True),
        sa.Column('applicant_linkedin', sa.String(length=500), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Pending'),
        sa.Column('hiring_stage', sa.String(length=50), nullable=False, server_default='In-Review'),
        sa.Column('score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('ai_qualification_score', sa.Float(), nullable=True),
        sa.Column('ai_matched_skills', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('ai_missing_skills', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('ai_strengths', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('ai_assessment_summary', sa.Text(), nullable=True),
        sa.Column('ai_cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_parsed_data', sa.JSON(), nullable=True),
        sa.Column('assigned_to', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['applicant_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'applicant_id', name='uq_application_job_applicant'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_applicant_id', 'applications', ['applicant_id'])
    op.create_index('ix_applications_applicant_name', 'applications', ['applicant_name'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('ix_applications_hiring_stage', 'applications', ['hiring_stage'])
    op.create_index('idx_application_job_stage', 'applications', ['job_id', 'hiring_stage'])
    op.create_index('idx_application_job_status', 'applications', ['job_id', 'status'])
    op.create_index('idx_application_applied_at', 'applications', ['applied_at'])

    op.create_table(
        'application_notes',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('application_id', sa.BigInteger(), nullable=False),
        sa.Column('parent_note_id', sa.BigInteger(), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('added_by', sa.BigInteger(), nullable=False),
        sa.Column('author_name', sa.String(length=200), nullable=True),
        sa.Column('author_avatar', sa.String(length=1000), nullable=True),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_note_id'], ['application_notes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['added_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_application_note_application', 'application_notes', ['application_id'])
    op.create_index('idx_application_note_parent', 'application_notes', ['parent_note_id'])

    op.create_table(
        'application_interviews',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('application_id', sa.BigInteger(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('location', sa.String(length=1000), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Scheduled'),
        sa.Column('interviewers', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('scheduled_by', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['scheduled_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_interview_application', 'application_interviews', ['application_id'])
    op.create_index('idx_interview_scheduled_at', 'application_interviews', ['scheduled_at'])

    op.create_table(
        'interview_feedback',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('interview_id', sa.BigInteger(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('submitted_by', sa.BigInteger(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['interview_id'], ['application_interviews.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['submitted_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_interview_feedback_rating'),
    )
    op.create_index('ix_interview_feedback_interview_id', 'interview_feedback', ['interview_id'])


def downgrade() -> None:
    """Drop hiring pipeline tables."""
    op.drop_index('ix_interview_feedback_interview_id', table_name='interview_feedback')
    op.drop_table('interview_feedback')

    op.drop_index('idx_interview_scheduled_at', table_name='application_interviews')
    op.drop_index('idx_interview_application', table_name='application_interviews')
    op.drop_table('application_interviews')

    op.drop_index('idx_application_note_parent', table_name='application_notes')
    op.drop_index('idx_application_note_application', table_name='application_notes')
    op.drop_table('application_notes')

    op.drop_index('idx_application_applied_at', table_name='applications')
    op.drop_index('idx_application_job_status', table_name='applications')
    op.drop_index('idx_application_job_stage', table_name='applications')
    op.drop_index('ix_applications_hiring_stage', table_name='applications')
    op.drop_index('ix_applications_status', table_name='applications')
    op.drop_index('ix_applications_applicant_name', table_name='applications')
    op.drop_index('ix_applications_applicant_id', table_name='applications')
    op.drop_index('ix_applications_job_id', table_name='applications')
    op.drop_table('applications')

    op.drop_index('idx_job_created_at', table_name='jobs')
    op.drop_index('idx_job_employer', table_name='jobs')
    op.drop_table('jobs')

    op.drop_index('idx_user_type', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
