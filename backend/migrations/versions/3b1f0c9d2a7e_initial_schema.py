"""Initial schema

Revision ID: 3b1f0c9d2a7e
Revises:
Create Date: 2026-10-17 09:12:04.118230
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3b1f0c9d2a7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TS = sa.DateTime(timezone=True)
JSON = postgresql.JSONB()


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('display_name', sa.String()),
        sa.Column('avatar_url', sa.Text()),
        sa.Column('timezone', sa.String()),
        sa.Column('preferences', JSON),
        sa.Column('created_at', TS),
    )
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('admin_user_id', sa.String()),
        sa.Column('settings', JSON),
        sa.Column('wellness_score', sa.Float()),
        sa.Column('created_at', TS),
    )
    op.create_table(
        'employees',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('org_id', sa.String(), nullable=False),
        sa.Column('job_title', sa.String()),
        sa.Column('department', sa.String()),
        sa.Column('anonymized_id', sa.String(), nullable=False, unique=True),
        sa.Column('wellness_streak', sa.Integer()),
    )
    op.create_index('idx_employees_org', 'employees', ['org_id'])
    op.create_table(
        'journals',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('mood_score', sa.Integer()),
        sa.Column('content', sa.Text()),
        sa.Column('tags', JSON),
        sa.Column('is_private', sa.Boolean()),
        sa.Column('created_at', TS),
    )
    op.create_index('idx_journals_user_time', 'journals', ['user_id', 'created_at'])
    op.create_table(
        'anonymous_rants',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('anonymous_token', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sentiment_score', sa.Float()),
        sa.Column('support_count', sa.Integer()),
        sa.Column('created_at', TS),
    )
    op.create_table(
        'therapists',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('specialization', sa.String()),
        sa.Column('license_number', sa.String()),
        sa.Column('profile_url', sa.Text()),
        sa.Column('rating', sa.Float()),
        sa.Column('availability', JSON),
    )
    op.create_table(
        'appointments',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('therapist_id', sa.String()),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('start_time', TS),
        sa.Column('end_time', TS),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('notes', sa.Text()),
    )
    op.create_index('idx_appointments_user', 'appointments', ['user_id'])
    op.create_table(
        'courses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('duration_minutes', sa.Integer()),
        sa.Column('difficulty', sa.String()),
        sa.Column('thumbnail_url', sa.Text()),
        sa.Column('modules', JSON),
    )
    op.create_table(
        'course_progress',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('course_id', sa.String(), nullable=False),
        sa.Column('progress', sa.Integer()),
        sa.Column('updated_at', TS),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_course_progress_user_course'),
    )
    op.create_table(
        'mood_entries',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('mood_score', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', TS),
    )
    op.create_index('idx_mood_entries_user_time', 'mood_entries', ['user_id', 'created_at'])
    op.create_table(
        'refresh_tokens',
        sa.Column('token', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('expires_at', TS, nullable=False),
    )
    op.create_table(
        'buddy_matches',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_a_id', sa.String(), nullable=False),
        sa.Column('user_b_id', sa.String(), nullable=False),
        sa.Column('compatibility_score', sa.Float()),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('created_at', TS),
    )
    op.create_table(
        'wellness_assessments',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String()),
        sa.Column('assessment_type', sa.String()),
        sa.Column('title', sa.String()),
        sa.Column('questions', JSON),
        sa.Column('is_active', sa.Boolean()),
        sa.Column('created_at', TS),
    )
    op.create_table(
        'assessment_responses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('assessment_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('responses', JSON),
        sa.Column('total_score', sa.Float()),
        sa.Column('category_scores', JSON),
        sa.Column('recommendations', JSON),
        sa.Column('completed_at', TS),
    )


def downgrade() -> None:
    for table in (
        'assessment_responses', 'wellness_assessments', 'buddy_matches', 'refresh_tokens',
        'mood_entries', 'course_progress', 'courses', 'appointments', 'therapists',
        'anonymous_rants', 'journals', 'employees', 'organizations', 'users',
    ):
        op.drop_table(table)
