"""
Row <-> entity mapping shared by the SQL engines.

Column names are snake_case in both databases; the codec decides how JSON,
flag and timestamp columns are represented. Reads map every field explicitly.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from fym.models import (
    Appointment, AssessmentResponse, AnonymousRant, BuddyMatch, Course, CourseProgress,
    Employee, Journal, MoodEntry, Organization, Therapist, User, WellnessAssessment,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

JSON_FIELDS = frozenset({
    "preferences", "settings", "tags", "availability", "modules", "questions",
    "responses", "category_scores", "recommendations",
})
FLAG_FIELDS = frozenset({"is_private", "is_active"})
TIMESTAMP_FIELDS = frozenset({
    "created_at", "start_time", "end_time", "expires_at", "completed_at", "updated_at",
})
# entity attribute -> column, where they differ
COLUMN_NAMES = {"password_hash": "password"}


class SqliteCodec:
    name = "sqlite"

    def dump_json(self, value):
        return None if value is None else json.dumps(value)

    def load_json(self, value, default: Callable[[], Any]):
        if value is None or value == "":
            return default()
        if isinstance(value, (dict, list)):
            return value
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            logger.warning("[sqlite_storage] unparseable JSON column value, using default")
            return default()

    def dump_flag(self, value):
        return None if value is None else (1 if value else 0)

    def load_flag(self, value, default: bool = False) -> bool:
        return default if value is None else bool(value)

    def dump_ts(self, value: Optional[datetime]):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - EPOCH) // timedelta(milliseconds=1)

    def load_ts(self, value) -> Optional[datetime]:
        if value is None:
            return None
        return EPOCH + timedelta(milliseconds=int(value))


class PostgresCodec:
    name = "postgres"

    def dump_json(self, value):
        # the JSONB column type serializes
        return value

    def load_json(self, value, default: Callable[[], Any]):
        if value is None:
            return default()
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                logger.warning("[postgres_storage] unparseable JSON column value, using default")
                return default()
        return value

    def dump_flag(self, value):
        return value

    def load_flag(self, value, default: bool = False) -> bool:
        return default if value is None else bool(value)

    def dump_ts(self, value: Optional[datetime]):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def load_ts(self, value) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def encode_values(values: Mapping[str, Any], codec) -> Dict[str, Any]:
    """Entity attribute values -> column values (used for inserts and partial updates)."""
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key in JSON_FIELDS:
            value = codec.dump_json(value)
        elif key in FLAG_FIELDS:
            value = codec.dump_flag(value)
        elif key in TIMESTAMP_FIELDS:
            value = codec.dump_ts(value)
        out[COLUMN_NAMES.get(key, key)] = value
    return out


def user_to_row(user: User, codec) -> Dict[str, Any]:
    values = user.model_dump()
    values["password_hash"] = user.password_hash
    return encode_values(values, codec)


def entity_to_row(entity, codec) -> Dict[str, Any]:
    return encode_values(entity.model_dump(), codec)


# --- reads ----------------------------------------------------------------

def user_from_row(row, codec) -> User:
    m = row._mapping
    return User(
        id=m["id"],
        email=m["email"],
        password_hash=m["password"],
        role=m["role"] or "individual",
        display_name=m["display_name"] or "",
        avatar_url=m["avatar_url"],
        timezone=m["timezone"] or "UTC",
        preferences=codec.load_json(m["preferences"], dict),
        created_at=codec.load_ts(m["created_at"]),
    )


def organization_from_row(row, codec) -> Organization:
    m = row._mapping
    return Organization(
        id=m["id"],
        name=m["name"],
        admin_user_id=m["admin_user_id"],
        settings=codec.load_json(m["settings"], dict),
        wellness_score=m["wellness_score"] or 0.0,
        created_at=codec.load_ts(m["created_at"]),
    )


def employee_from_row(row, codec) -> Employee:
    m = row._mapping
    return Employee(
        id=m["id"],
        user_id=m["user_id"],
        org_id=m["org_id"],
        job_title=m["job_title"],
        department=m["department"],
        anonymized_id=m["anonymized_id"],
        wellness_streak=m["wellness_streak"] or 0,
    )


def journal_from_row(row, codec) -> Journal:
    m = row._mapping
    return Journal(
        id=m["id"],
        user_id=m["user_id"],
        mood_score=m["mood_score"],
        content=m["content"],
        tags=codec.load_json(m["tags"], list),
        is_private=codec.load_flag(m["is_private"], True),
        created_at=codec.load_ts(m["created_at"]),
    )


def mood_entry_from_row(row, codec) -> MoodEntry:
    m = row._mapping
    return MoodEntry(
        id=m["id"],
        user_id=m["user_id"],
        mood_score=m["mood_score"],
        notes=m["notes"],
        created_at=codec.load_ts(m["created_at"]),
    )


def rant_from_row(row, codec) -> AnonymousRant:
    m = row._mapping
    return AnonymousRant(
        id=m["id"],
        anonymous_token=m["anonymous_token"],
        content=m["content"],
        sentiment_score=m["sentiment_score"],
        support_count=m["support_count"] or 0,
        created_at=codec.load_ts(m["created_at"]),
    )


def therapist_from_row(row, codec) -> Therapist:
    m = row._mapping
    return Therapist(
        id=m["id"],
        name=m["name"],
        specialization=m["specialization"],
        license_number=m["license_number"],
        profile_url=m["profile_url"],
        rating=m["rating"],
        availability=codec.load_json(m["availability"], dict),
    )


def appointment_from_row(row, codec) -> Appointment:
    m = row._mapping
    return Appointment(
        id=m["id"],
        therapist_id=m["therapist_id"],
        user_id=m["user_id"],
        start_time=codec.load_ts(m["start_time"]),
        end_time=codec.load_ts(m["end_time"]),
        status=m["status"] or "pending",
        notes=m["notes"],
    )


def course_from_row(row, codec) -> Course:
    m = row._mapping
    return Course(
        id=m["id"],
        title=m["title"],
        description=m["description"],
        duration_minutes=m["duration_minutes"],
        difficulty=m["difficulty"],
        thumbnail_url=m["thumbnail_url"],
        modules=codec.load_json(m["modules"], dict),
    )


def course_progress_from_row(row, codec) -> CourseProgress:
    m = row._mapping
    return CourseProgress(
        id=m["id"],
        user_id=m["user_id"],
        course_id=m["course_id"],
        progress=m["progress"] or 0,
        updated_at=codec.load_ts(m["updated_at"]),
    )


def buddy_match_from_row(row, codec) -> BuddyMatch:
    m = row._mapping
    return BuddyMatch(
        id=m["id"],
        user_a_id=m["user_a_id"],
        user_b_id=m["user_b_id"],
        compatibility_score=m["compatibility_score"] or 0.0,
        status=m["status"],
        created_at=codec.load_ts(m["created_at"]),
    )


def assessment_from_row(row, codec) -> WellnessAssessment:
    m = row._mapping
    return WellnessAssessment(
        id=m["id"],
        user_id=m["user_id"],
        assessment_type=m["assessment_type"],
        title=m["title"],
        questions=codec.load_json(m["questions"], list),
        is_active=codec.load_flag(m["is_active"], True),
        created_at=codec.load_ts(m["created_at"]),
    )


def assessment_response_from_row(row, codec) -> AssessmentResponse:
    m = row._mapping
    return AssessmentResponse(
        id=m["id"],
        assessment_id=m["assessment_id"],
        user_id=m["user_id"],
        responses=codec.load_json(m["responses"], dict),
        total_score=m["total_score"] or 0.0,
        category_scores=codec.load_json(m["category_scores"], dict),
        recommendations=codec.load_json(m["recommendations"], list),
        completed_at=codec.load_ts(m["completed_at"]),
    )
