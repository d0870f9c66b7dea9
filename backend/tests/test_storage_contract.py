"""Behaviour every engine has to share (memory, SQLite, and Postgres when configured)."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import insert

from conftest import FIXED_NOW
from fym.errors import DuplicateEmailError
from fym.models import (
    Course, NewAnonymousRant, NewAppointment, NewAssessmentResponse, NewJournal, NewMoodEntry, NewUser,
    Therapist,
)
from fym.storage import serializers as rows
from fym.storage.memory import MemStorage

pytestmark = pytest.mark.anyio


def new_user(email="person@example.com", password="password123", **kw):
    return NewUser(email=email, password=password, display_name="Person", **kw)


async def test_create_user_materializes_entity(storage):
    user = await storage.create_user(new_user())
    assert user.id
    assert user.created_at is not None
    assert user.password_hash and user.password_hash != "password123"
    fetched = await storage.get_user(user.id)
    assert fetched.email == user.email
    assert fetched.preferences == {}


async def test_duplicate_email_is_rejected(storage):
    await storage.create_user(new_user("same@example.com"))
    with pytest.raises(DuplicateEmailError):
        await storage.create_user(new_user("same@example.com"))


async def test_verify_password(storage):
    user = await storage.create_user(new_user("pw@example.com", "correct-horse"))
    ok = await storage.verify_password("pw@example.com", "correct-horse")
    assert ok is not None and ok.id == user.id
    assert await storage.verify_password("pw@example.com", "wrong-horse") is None
    assert await storage.verify_password("nobody@example.com", "correct-horse") is None


async def test_missing_rows_are_none(storage):
    assert await storage.get_user("missing") is None
    assert await storage.get_journal("missing") is None
    assert await storage.get_appointment("missing") is None
    assert await storage.get_organization("missing") is None
    assert await storage.get_buddy_match("missing") is None
    assert await storage.get_wellness_assessment("missing") is None
    assert await storage.get_latest_assessment_response("missing") is None


async def test_refresh_token_rotation(storage):
    user = await storage.create_user(new_user())
    old = await storage.create_refresh_token(user.id)
    assert await storage.verify_refresh_token(old) == user.id

    assert await storage.delete_refresh_token(old) is True
    new = await storage.create_refresh_token(user.id)

    assert await storage.verify_refresh_token(old) is None
    assert await storage.verify_refresh_token(new) == user.id
    assert await storage.delete_refresh_token(old) is False


async def test_expired_refresh_token_is_removed(storage_factory):
    now = {"value": FIXED_NOW}
    storage = await storage_factory(clock=lambda: now["value"])
    user = await storage.create_user(new_user())
    token = await storage.create_refresh_token(user.id, expires_in_days=7)

    now["value"] = FIXED_NOW + timedelta(days=7, seconds=1)
    assert await storage.verify_refresh_token(token) is None
    # gone, not just rejected
    assert await storage.delete_refresh_token(token) is False


async def test_mood_window_boundary_is_inclusive(storage_factory):
    storage = await storage_factory(clock=lambda: FIXED_NOW)
    user = await storage.create_user(new_user())
    boundary = FIXED_NOW - timedelta(days=7)

    at_boundary = await storage.create_mood_entry(NewMoodEntry(user_id=user.id, mood_score=3, created_at=boundary))
    outside = await storage.create_mood_entry(
        NewMoodEntry(user_id=user.id, mood_score=2, created_at=boundary - timedelta(milliseconds=1))
    )
    recent = await storage.create_mood_entry(
        NewMoodEntry(user_id=user.id, mood_score=5, created_at=FIXED_NOW - timedelta(hours=1))
    )

    ids = [e.id for e in await storage.get_user_mood_entries(user.id, 7)]
    assert ids == [recent.id, at_boundary.id]
    assert outside.id not in ids


async def test_mood_window_zero_days(storage_factory):
    storage = await storage_factory(clock=lambda: FIXED_NOW)
    user = await storage.create_user(new_user())
    entry = await storage.create_mood_entry(
        NewMoodEntry(user_id=user.id, mood_score=4, created_at=FIXED_NOW - timedelta(seconds=1))
    )
    assert [e.id for e in await storage.get_user_mood_entries(user.id, 30)] == [entry.id]
    assert await storage.get_user_mood_entries(user.id, 0) == []


async def test_journals_newest_first_and_partial_update(storage_factory):
    storage = await storage_factory(clock=lambda: FIXED_NOW)
    user = await storage.create_user(new_user())
    older = await storage.create_journal(NewJournal(
        user_id=user.id, content="first", tags=["a"], created_at=FIXED_NOW - timedelta(days=2),
    ))
    newer = await storage.create_journal(NewJournal(user_id=user.id, content="second", mood_score=4))

    journals = await storage.get_user_journals(user.id)
    assert [j.id for j in journals] == [newer.id, older.id]

    updated = await storage.update_journal(older.id, {"content": "edited"})
    assert updated.content == "edited"
    assert updated.tags == ["a"]
    assert updated.is_private is True

    assert await storage.delete_journal(older.id) is True
    assert await storage.get_journal(older.id) is None
    assert await storage.delete_journal(older.id) is False


async def test_appointments_ordered_by_start_time(storage):
    user = await storage.create_user(new_user())
    later = await storage.create_appointment(NewAppointment(
        user_id=user.id, therapist_id="therapist-1",
        start_time=datetime(2030, 1, 2, 10, tzinfo=FIXED_NOW.tzinfo),
        end_time=datetime(2030, 1, 2, 11, tzinfo=FIXED_NOW.tzinfo),
    ))
    sooner = await storage.create_appointment(NewAppointment(
        user_id=user.id, therapist_id="therapist-1",
        start_time=datetime(2030, 1, 1, 10, tzinfo=FIXED_NOW.tzinfo),
        end_time=datetime(2030, 1, 1, 11, tzinfo=FIXED_NOW.tzinfo),
    ))
    assert [a.id for a in await storage.get_user_appointments(user.id)] == [sooner.id, later.id]

    confirmed = await storage.update_appointment(sooner.id, {"status": "confirmed"})
    assert confirmed.status == "confirmed"
    assert confirmed.start_time == sooner.start_time


async def test_rant_support_count(storage):
    rant = await storage.create_anonymous_rant(NewAnonymousRant(anonymous_token="anon_x", content="ugh"))
    assert await storage.support_anonymous_rant(rant.id) is True
    assert await storage.support_anonymous_rant(rant.id) is True
    assert await storage.support_anonymous_rant("missing") is False
    rants = {r.id: r for r in await storage.get_anonymous_rants()}
    assert rants[rant.id].support_count == 2


async def test_course_progress_upsert(storage):
    user = await storage.create_user(new_user())
    courses = await storage.get_courses()
    assert courses
    course_id = courses[0].id

    first = await storage.upsert_course_progress(user.id, course_id, 20)
    second = await storage.upsert_course_progress(user.id, course_id, 60)
    assert first.id == second.id

    progress = await storage.get_user_course_progress(user.id)
    assert len(progress) == 1
    assert progress[0].progress == 60


async def test_default_assessment_is_provisioned_once(storage):
    user = await storage.create_user(new_user())
    assessments = await storage.get_wellness_assessments(user.id)
    assert len(assessments) == 1
    assert len(assessments[0].questions) == 10

    again = await storage.ensure_default_assessment(user.id)
    assert again.id == assessments[0].id
    assert len(await storage.get_wellness_assessments(user.id)) == 1


async def test_buddy_suggestions_exclude_self(storage):
    user = await storage.create_user(new_user())
    suggestions = await storage.suggest_buddies(user.id, limit=2)
    assert 0 < len(suggestions) <= 2
    assert user.id not in [s.id for s in suggestions]


async def test_delete_user_cascades(storage):
    user = await storage.create_user(new_user("gone@example.com"))
    other = await storage.create_user(new_user("stays@example.com"))
    org = await storage.create_organization("Acme", other.id)

    await storage.create_journal(NewJournal(user_id=user.id, content="x"))
    await storage.create_mood_entry(NewMoodEntry(user_id=user.id, mood_score=3))
    await storage.create_appointment(NewAppointment(user_id=user.id, therapist_id="therapist-1"))
    await storage.add_employee_to_org(user.id, org.id, "Dev", "Eng")
    await storage.create_buddy_match(other.id, user.id, 0.5)
    token = await storage.create_refresh_token(user.id)
    courses = await storage.get_courses()
    await storage.upsert_course_progress(user.id, courses[0].id, 10)
    assessment = (await storage.get_wellness_assessments(user.id))[0]
    await storage.create_assessment_response(NewAssessmentResponse(assessment_id=assessment.id, user_id=user.id))

    assert await storage.delete_user(user.id) is True

    assert await storage.get_user(user.id) is None
    assert await storage.get_user_journals(user.id) == []
    assert await storage.get_user_mood_entries(user.id, 365) == []
    assert await storage.get_user_appointments(user.id) == []
    assert await storage.get_employees_by_org(org.id) == []
    assert await storage.get_buddy_matches(other.id) == []
    assert await storage.verify_refresh_token(token) is None
    assert await storage.get_user_course_progress(user.id) == []
    assert await storage.get_user_assessment_responses(user.id) == []
    assert await storage.get_wellness_assessment(assessment.id) is None
    assert await storage.get_user(other.id) is not None

    assert await storage.delete_user(user.id) is False


async def test_wellness_metrics_use_anonymized_ids_only(storage_factory):
    storage = await storage_factory(clock=lambda: FIXED_NOW)
    org = await storage.create_organization("Metrics Inc", None)
    happy = await storage.create_user(new_user("happy@example.com"))
    low = await storage.create_user(new_user("low@example.com"))
    await storage.add_employee_to_org(happy.id, org.id, department="Design")
    await storage.add_employee_to_org(low.id, org.id, department="Support")
    await storage.create_mood_entry(NewMoodEntry(user_id=happy.id, mood_score=5,
                                                 created_at=FIXED_NOW - timedelta(days=1)))
    await storage.create_mood_entry(NewMoodEntry(user_id=low.id, mood_score=1,
                                                 created_at=FIXED_NOW - timedelta(days=10)))

    metrics = await storage.get_organization_wellness_metrics(org.id)
    assert metrics.employee_count == 2
    assert metrics.team_wellness == 6.0
    assert metrics.at_risk_count == 1
    assert metrics.sessions_this_week == 1
    assert metrics.engagement == 0.5
    assert {d.name: d.status for d in metrics.departments} == {"Design": "good", "Support": "needs-attention"}

    dumped = metrics.model_dump_json()
    assert happy.id not in dumped and low.id not in dumped


async def _add_catalog_rows(storage, therapist, course):
    if isinstance(storage, MemStorage):
        storage.therapists[therapist.id] = therapist
        storage.courses[course.id] = course
        return
    async with storage.sessions.begin() as session:
        await session.execute(insert(storage.t.therapists).values(**rows.entity_to_row(therapist, storage.codec)))
        await session.execute(insert(storage.t.courses).values(**rows.entity_to_row(course, storage.codec)))


async def test_therapists_and_courses_sorted_by_name(storage):
    await _add_catalog_rows(
        storage,
        Therapist(id="therapist-late", name="Dr. Aaron Abbott"),
        Course(id="course-late", title="A Gentle Start"),
    )

    names = [t.name for t in await storage.get_therapists()]
    titles = [c.title for c in await storage.get_courses()]
    assert names == sorted(names) and names[0] == "Dr. Aaron Abbott"
    assert titles == sorted(titles) and titles[0] == "A Gentle Start"
