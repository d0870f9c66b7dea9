"""
Table layout shared by the SQL engines.

Both engines use the same table and column names; only the column types differ:
SQLite keeps JSON as text, flags as 0/1 integers and timestamps as epoch
milliseconds, Postgres uses JSONB, BOOLEAN and TIMESTAMPTZ.
"""
from __future__ import annotations

from sqlalchemy import (
    BigInteger, Boolean, Column, DateTime, Float, Index, Integer, MetaData,
    String, Table, Text, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB

POSTGRES = "postgresql"
SQLITE = "sqlite"


class Tables:
    def __init__(self, kind: str):
        if kind not in (POSTGRES, SQLITE):
            raise ValueError(f"unsupported table kind: {kind}")
        self.kind = kind
        self.metadata = MetaData()

        if kind == POSTGRES:
            json_type, ts_type, flag_type = JSONB, DateTime(timezone=True), Boolean
        else:
            json_type, ts_type, flag_type = Text, BigInteger, Integer

        self.users = Table(
            "users", self.metadata,
            Column("id", String, primary_key=True),
            Column("email", String, unique=True, nullable=False),
            Column("password", Text, nullable=False),
            Column("role", String, nullable=False, default="individual"),
            Column("display_name", String),
            Column("avatar_url", Text),
            Column("timezone", String),
            Column("preferences", json_type),
            Column("created_at", ts_type),
        )
        self.organizations = Table(
            "organizations", self.metadata,
            Column("id", String, primary_key=True),
            Column("name", String, nullable=False),
            Column("admin_user_id", String),
            Column("settings", json_type),
            Column("wellness_score", Float),
            Column("created_at", ts_type),
        )
        self.employees = Table(
            "employees", self.metadata,
            Column("id", String, primary_key=True),
            Column("user_id", String, nullable=False),
            Column("org_id", String, nullable=False),
            Column("job_title", String),
            Column("department", String),
            Column("anonymized_id", String, unique=True, nullable=False),
            Column("wellness_streak", Integer),
            Index("idx_employees_org", "org_id"),
        )
        self.journals = Table(
            "journals", self.metadata,
            Column("id", String, primary_key=True),
            Column("user_id", String, nullable=False),
            Column("mood_score", Integer),
            Column("content", Text),
            Column("tags", json_type),
            Column("is_private", flag_type),
            Column("created_at", ts_type),
            Index("idx_journals_user_time", "user_id", "created_at"),
        )
        self.anonymous_rants = Table(
            "anonymous_rants", self.metadata,
            Column("id", String, primary_key=True),
            Column("anonymous_token", String, nullable=False),
            Column("content", Text, nullable=False),
            Column("sentiment_score", Float),
            Column("support_count", Integer),
            Column("created_at", ts_type),
        )
        self.therapists = Table(
            "therapists", self.metadata,
            Column("id", String, primary_key=True),
            Column("name", String, nullable=False),
            Column("specialization", String),
            Column("license_number", String),
            Column("profile_url", Text),
            Column("rating", Float),
            Column("availability", json_type),
        )
        self.appointments = Table(
            "appointments", self.metadata,
            Column("id", String, primary_key=True),
            Column("therapist_id", String),
            Column("user_id", String, nullable=False),
            Column("start_time", ts_type),
            Column("end_time", ts_type),
            Column("status", String, nullable=False),
            Column("notes", Text),
            Index("idx_appointments_user", "user_id"),
        )
        self.courses = Table(
            "courses", self.metadata,
            Column("id", String, primary_key=True),
            Column("title", String, nullable=False),
            Column("description", Text),
            Column("duration_minutes", Integer),
            Column("difficulty", String),
            Column("thumbnail_url", Text),
            Column("modules", json_type),
        )
        self.course_progress = Table(
            "course_progress", self.metadata,
            Column("id", String, primary_key=True),
            Column("user_id", String, nullable=False),
            Column("course_id", String, nullable=False),
            Column("progress", Integer),
            Column("updated_at", ts_type),
            UniqueConstraint("user_id", "course_id", name="uq_course_progress_user_course"),
        )
        self.mood_entries = Table(
            "mood_entries", self.metadata,
            Column("id", String, primary_key=True),
            Column("user_id", String, nullable=False),
            Column("mood_score", Integer, nullable=False),
            Column("notes", Text),
            Column("created_at", ts_type),
            Index("idx_mood_entries_user_time", "user_id", "created_at"),
        )
        self.refresh_tokens = Table(
            "refresh_tokens", self.metadata,
            Column("token", String, primary_key=True),
            Column("user_id", String, nullable=False),
            Column("expires_at", ts_type, nullable=False),
        )
        self.buddy_matches = Table(
            "buddy_matches", self.metadata,
            Column("id", String, primary_key=True),
            Column("user_a_id", String, nullable=False),
            Column("user_b_id", String, nullable=False),
            Column("compatibility_score", Float),
            Column("status", String, nullable=False),
            Column("created_at", ts_type),
        )
        self.wellness_assessments = Table(
            "wellness_assessments", self.metadata,
            Column("id", String, primary_key=True),
            Column("user_id", String),
            Column("assessment_type", String),
            Column("title", String),
            Column("questions", json_type),
            Column("is_active", flag_type),
            Column("created_at", ts_type),
        )
        self.assessment_responses = Table(
            "assessment_responses", self.metadata,
            Column("id", String, primary_key=True),
            Column("assessment_id", String, nullable=False),
            Column("user_id", String, nullable=False),
            Column("responses", json_type),
            Column("total_score", Float),
            Column("category_scores", json_type),
            Column("recommendations", json_type),
            Column("completed_at", ts_type),
        )


postgres_tables = Tables(POSTGRES)
sqlite_tables = Tables(SQLITE)
