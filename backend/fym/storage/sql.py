"""
Storage shared by the SQLite and Postgres engines.

Both run the same Core statements over an async engine; the tables and the
row codec carry the per-database differences.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from fym import security
from fym.errors import DuplicateEmailError, StorageError
from fym.models import (
    Appointment, AssessmentResponse, AnonymousRant, BuddyMatch, BuddySuggestion, Course,
    CourseProgress, Employee, Journal, MoodEntry, NewAnonymousRant, NewAppointment,
    NewAssessmentResponse, NewJournal, NewMoodEntry, NewUser, Organization, Therapist, User,
    WellnessAssessment,
)
from fym.storage import serializers as rows
from fym.storage.base import (
    APPOINTMENT_UPDATABLE, JOURNAL_UPDATABLE, ORGANIZATION_UPDATABLE, USER_UPDATABLE,
    Storage, new_id, pick,
)
from fym.storage.seed import build_demo_data
from fym.storage.tables import Tables

logger = logging.getLogger(__name__)


def reads(default=None):
    """A failed read is logged and answered like a miss (`None` or `[]`)."""
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            try:
                return await fn(self, *args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("[%s] %s failed: %s", self.log_tag, fn.__name__, e)
                return default() if callable(default) else default
        return wrapper
    return decorator


def writes(fn):
    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except StorageError:
            raise
        except SQLAlchemyError as e:
            detail = str(getattr(e, "orig", None) or e)
            logger.error("[%s] %s failed: %s", self.log_tag, fn.__name__, detail)
            raise StorageError(f"{fn.__name__} failed", detail=detail) from e
    return wrapper


class SqlStorage(Storage):
    log_tag = "sql_storage"

    def __init__(self, engine: AsyncEngine, tables: Tables, codec, clock=None):
        super().__init__(clock)
        self.engine = engine
        self.t = tables
        self.codec = codec
        self.sessions = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def init(self) -> None:
        await self.create_schema()
        await self.seed_if_empty()

    async def create_schema(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        await self.engine.dispose()

    async def seed_if_empty(self) -> None:
        try:
            async with self.sessions.begin() as session:
                count = (await session.execute(select(func.count()).select_from(self.t.users))).scalar_one()
                if count:
                    return
                data = build_demo_data(self)
                await session.execute(insert(self.t.users), [rows.user_to_row(u, self.codec) for u in data.users])
                for table, items in (
                    (self.t.therapists, data.therapists),
                    (self.t.courses, data.courses),
                    (self.t.anonymous_rants, data.rants),
                    (self.t.organizations, data.organizations),
                    (self.t.employees, data.employees),
                    (self.t.mood_entries, data.mood_entries),
                    (self.t.journals, data.journals),
                    (self.t.wellness_assessments, data.assessments),
                ):
                    if items:
                        await session.execute(insert(table), [rows.entity_to_row(i, self.codec) for i in items])
            logger.info("[%s] seeded %d demo users", self.log_tag, len(data.users))
        except Exception as e:
            logger.warning("[%s] seeding skipped: %s", self.log_tag, e)

    # --- helpers ---------------------------------------------------------

    async def _one(self, stmt, mapper):
        async with self.sessions() as session:
            row = (await session.execute(stmt)).first()
        return mapper(row, self.codec) if row is not None else None

    async def _all(self, stmt, mapper) -> list:
        async with self.sessions() as session:
            result = await session.execute(stmt)
            return [mapper(row, self.codec) for row in result]

    async def _insert(self, table, values) -> None:
        async with self.sessions.begin() as session:
            await session.execute(insert(table).values(**values))

    async def _update(self, table, key_column, key, values) -> bool:
        async with self.sessions.begin() as session:
            result = await session.execute(update(table).where(key_column == key).values(**values))
        return result.rowcount > 0

    async def _delete(self, table, key_column, key) -> bool:
        async with self.sessions.begin() as session:
            result = await session.execute(delete(table).where(key_column == key))
        return result.rowcount > 0

    # --- users -----------------------------------------------------------

    @reads()
    async def get_user(self, user_id: str) -> Optional[User]:
        users = self.t.users
        return await self._one(select(users).where(users.c.id == user_id), rows.user_from_row)

    @reads()
    async def get_user_by_email(self, email: str) -> Optional[User]:
        users = self.t.users
        return await self._one(select(users).where(users.c.email == email), rows.user_from_row)

    @writes
    async def create_user(self, data: NewUser) -> User:
        user = self._build_user(data)
        assessment = self._build_default_assessment(user.id)
        # user and default assessment land together or not at all
        async with self.sessions.begin() as session:
            try:
                await session.execute(insert(self.t.users).values(**rows.user_to_row(user, self.codec)))
            except IntegrityError as e:
                raise DuplicateEmailError(data.email) from e
            await session.execute(
                insert(self.t.wellness_assessments).values(**rows.entity_to_row(assessment, self.codec))
            )
        return user

    @writes
    async def update_user(self, user_id: str, updates: Mapping[str, Any]) -> Optional[User]:
        changes = pick(updates, USER_UPDATABLE)
        if changes:
            users = self.t.users
            try:
                await self._update(users, users.c.id, user_id, rows.encode_values(changes, self.codec))
            except IntegrityError as e:
                raise DuplicateEmailError(changes.get("email", "")) from e
        return await self.get_user(user_id)

    @writes
    async def delete_user(self, user_id: str) -> bool:
        t = self.t
        async with self.sessions.begin() as session:
            found = (await session.execute(select(t.users.c.id).where(t.users.c.id == user_id))).first()
            if found is None:
                return False
            for table in (t.assessment_responses, t.course_progress, t.appointments,
                          t.mood_entries, t.journals):
                await session.execute(delete(table).where(table.c.user_id == user_id))
            await session.execute(delete(t.buddy_matches).where(
                or_(t.buddy_matches.c.user_a_id == user_id, t.buddy_matches.c.user_b_id == user_id)
            ))
            for table in (t.employees, t.refresh_tokens, t.wellness_assessments):
                await session.execute(delete(table).where(table.c.user_id == user_id))
            await session.execute(delete(t.users).where(t.users.c.id == user_id))
        return True

    # --- journals --------------------------------------------------------

    @writes
    async def create_journal(self, data: NewJournal) -> Journal:
        journal = self._build_journal(data)
        await self._insert(self.t.journals, rows.entity_to_row(journal, self.codec))
        return journal

    @reads(list)
    async def get_user_journals(self, user_id: str) -> List[Journal]:
        j = self.t.journals
        stmt = select(j).where(j.c.user_id == user_id).order_by(j.c.created_at.desc())
        return await self._all(stmt, rows.journal_from_row)

    @reads()
    async def get_journal(self, journal_id: str) -> Optional[Journal]:
        j = self.t.journals
        return await self._one(select(j).where(j.c.id == journal_id), rows.journal_from_row)

    @writes
    async def update_journal(self, journal_id: str, updates: Mapping[str, Any]) -> Optional[Journal]:
        changes = pick(updates, JOURNAL_UPDATABLE)
        if changes:
            j = self.t.journals
            await self._update(j, j.c.id, journal_id, rows.encode_values(changes, self.codec))
        return await self.get_journal(journal_id)

    @writes
    async def delete_journal(self, journal_id: str) -> bool:
        return await self._delete(self.t.journals, self.t.journals.c.id, journal_id)

    # --- anonymous rants -------------------------------------------------

    @writes
    async def create_anonymous_rant(self, data: NewAnonymousRant) -> AnonymousRant:
        rant = self._build_rant(data)
        await self._insert(self.t.anonymous_rants, rows.entity_to_row(rant, self.codec))
        return rant

    @reads(list)
    async def get_anonymous_rants(self) -> List[AnonymousRant]:
        r = self.t.anonymous_rants
        return await self._all(select(r).order_by(r.c.created_at.desc()), rows.rant_from_row)

    @writes
    async def support_anonymous_rant(self, rant_id: str) -> bool:
        r = self.t.anonymous_rants
        return await self._update(
            r, r.c.id, rant_id, {"support_count": func.coalesce(r.c.support_count, 0) + 1}
        )

    # --- mood ------------------------------------------------------------

    @writes
    async def create_mood_entry(self, data: NewMoodEntry) -> MoodEntry:
        entry = self._build_mood_entry(data)
        await self._insert(self.t.mood_entries, rows.entity_to_row(entry, self.codec))
        return entry

    @reads(list)
    async def get_user_mood_entries(self, user_id: str, days: int = 30) -> List[MoodEntry]:
        m = self.t.mood_entries
        cutoff = self.codec.dump_ts(self._mood_cutoff(days))
        stmt = (
            select(m)
            .where(m.c.user_id == user_id, m.c.created_at >= cutoff)
            .order_by(m.c.created_at.desc())
        )
        return await self._all(stmt, rows.mood_entry_from_row)

    # --- therapists & appointments ---------------------------------------

    @reads(list)
    async def get_therapists(self) -> List[Therapist]:
        th = self.t.therapists
        return await self._all(select(th).order_by(th.c.name), rows.therapist_from_row)

    @reads()
    async def get_therapist(self, therapist_id: str) -> Optional[Therapist]:
        th = self.t.therapists
        return await self._one(select(th).where(th.c.id == therapist_id), rows.therapist_from_row)

    @writes
    async def create_appointment(self, data: NewAppointment) -> Appointment:
        appointment = self._build_appointment(data)
        await self._insert(self.t.appointments, rows.entity_to_row(appointment, self.codec))
        return appointment

    @reads(list)
    async def get_user_appointments(self, user_id: str) -> List[Appointment]:
        a = self.t.appointments
        stmt = select(a).where(a.c.user_id == user_id).order_by(a.c.start_time.asc().nulls_last())
        return await self._all(stmt, rows.appointment_from_row)

    @reads()
    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        a = self.t.appointments
        return await self._one(select(a).where(a.c.id == appointment_id), rows.appointment_from_row)

    @writes
    async def update_appointment(self, appointment_id: str, updates: Mapping[str, Any]) -> Optional[Appointment]:
        changes = pick(updates, APPOINTMENT_UPDATABLE)
        if changes:
            a = self.t.appointments
            await self._update(a, a.c.id, appointment_id, rows.encode_values(changes, self.codec))
        return await self.get_appointment(appointment_id)

    @writes
    async def delete_appointment(self, appointment_id: str) -> bool:
        return await self._delete(self.t.appointments, self.t.appointments.c.id, appointment_id)

    # --- courses ---------------------------------------------------------

    @reads(list)
    async def get_courses(self) -> List[Course]:
        c = self.t.courses
        return await self._all(select(c).order_by(c.c.title), rows.course_from_row)

    @reads()
    async def get_course(self, course_id: str) -> Optional[Course]:
        c = self.t.courses
        return await self._one(select(c).where(c.c.id == course_id), rows.course_from_row)

    @writes
    async def upsert_course_progress(self, user_id: str, course_id: str, progress: int) -> CourseProgress:
        cp = self.t.course_progress
        now = self.now()
        async with self.sessions.begin() as session:
            existing = (await session.execute(
                select(cp.c.id).where(cp.c.user_id == user_id, cp.c.course_id == course_id)
            )).first()
            item = CourseProgress(
                id=existing.id if existing else new_id(),
                user_id=user_id,
                course_id=course_id,
                progress=progress,
                updated_at=now,
            )
            if existing:
                await session.execute(update(cp).where(cp.c.id == item.id).values(
                    progress=progress, updated_at=self.codec.dump_ts(now),
                ))
            else:
                await session.execute(insert(cp).values(**rows.entity_to_row(item, self.codec)))
        return item

    @reads(list)
    async def get_user_course_progress(self, user_id: str) -> List[CourseProgress]:
        cp = self.t.course_progress
        stmt = select(cp).where(cp.c.user_id == user_id).order_by(cp.c.updated_at.desc())
        return await self._all(stmt, rows.course_progress_from_row)

    # --- organizations ---------------------------------------------------

    @writes
    async def create_organization(self, name: str, admin_user_id: Optional[str]) -> Organization:
        org = self._build_organization(name, admin_user_id)
        await self._insert(self.t.organizations, rows.entity_to_row(org, self.codec))
        return org

    @reads()
    async def get_organization(self, org_id: str) -> Optional[Organization]:
        o = self.t.organizations
        return await self._one(select(o).where(o.c.id == org_id), rows.organization_from_row)

    @writes
    async def update_organization(self, org_id: str, updates: Mapping[str, Any]) -> Optional[Organization]:
        changes = pick(updates, ORGANIZATION_UPDATABLE)
        if changes:
            o = self.t.organizations
            await self._update(o, o.c.id, org_id, rows.encode_values(changes, self.codec))
        return await self.get_organization(org_id)

    @writes
    async def add_employee_to_org(self, user_id: str, org_id: str, job_title: Optional[str] = None,
                                  department: Optional[str] = None) -> Employee:
        employee = self._build_employee(user_id, org_id, job_title, department)
        await self._insert(self.t.employees, rows.entity_to_row(employee, self.codec))
        return employee

    @reads(list)
    async def get_employees_by_org(self, org_id: str) -> List[Employee]:
        e = self.t.employees
        return await self._all(select(e).where(e.c.org_id == org_id), rows.employee_from_row)

    # --- refresh tokens --------------------------------------------------

    @writes
    async def create_refresh_token(self, user_id: str, expires_in_days: int = 7) -> str:
        token = security.generate_refresh_token()
        await self._insert(self.t.refresh_tokens, {
            "token": token,
            "user_id": user_id,
            "expires_at": self.codec.dump_ts(self._refresh_expiry(expires_in_days)),
        })
        return token

    @reads()
    async def verify_refresh_token(self, token: str) -> Optional[str]:
        rt = self.t.refresh_tokens
        async with self.sessions.begin() as session:
            row = (await session.execute(select(rt).where(rt.c.token == token))).first()
            if row is None:
                return None
            if self.codec.load_ts(row.expires_at) <= self.now():
                await session.execute(delete(rt).where(rt.c.token == token))
                return None
            return row.user_id

    @writes
    async def delete_refresh_token(self, token: str) -> bool:
        return await self._delete(self.t.refresh_tokens, self.t.refresh_tokens.c.token, token)

    # --- buddies ---------------------------------------------------------

    @reads(list)
    async def suggest_buddies(self, user_id: str, limit: int = 5) -> List[BuddySuggestion]:
        u = self.t.users
        stmt = (
            select(u.c.id, u.c.display_name)
            .where(u.c.id != user_id)
            .order_by(func.random())
            .limit(limit)
        )
        async with self.sessions() as session:
            result = await session.execute(stmt)
            return [BuddySuggestion(id=r.id, display_name=r.display_name or "") for r in result]

    @writes
    async def create_buddy_match(self, user_a: str, user_b: str, score: float = 0.0) -> BuddyMatch:
        match = self._build_buddy_match(user_a, user_b, score)
        await self._insert(self.t.buddy_matches, rows.entity_to_row(match, self.codec))
        return match

    @reads()
    async def get_buddy_match(self, match_id: str) -> Optional[BuddyMatch]:
        b = self.t.buddy_matches
        return await self._one(select(b).where(b.c.id == match_id), rows.buddy_match_from_row)

    @writes
    async def update_buddy_match_status(self, match_id: str, status) -> bool:
        b = self.t.buddy_matches
        return await self._update(b, b.c.id, match_id, {"status": status})

    @reads(list)
    async def get_buddy_matches(self, user_id: str) -> List[BuddyMatch]:
        b = self.t.buddy_matches
        stmt = (
            select(b)
            .where(or_(b.c.user_a_id == user_id, b.c.user_b_id == user_id))
            .order_by(b.c.created_at.desc())
        )
        return await self._all(stmt, rows.buddy_match_from_row)

    # --- wellness assessments --------------------------------------------

    @writes
    async def ensure_default_assessment(self, user_id: str) -> WellnessAssessment:
        wa = self.t.wellness_assessments
        existing = await self._one(
            select(wa).where(wa.c.user_id == user_id).order_by(wa.c.created_at.desc()),
            rows.assessment_from_row,
        )
        if existing is not None:
            return existing
        assessment = self._build_default_assessment(user_id)
        await self._insert(wa, rows.entity_to_row(assessment, self.codec))
        return assessment

    @reads(list)
    async def get_wellness_assessments(self, user_id: str) -> List[WellnessAssessment]:
        wa = self.t.wellness_assessments
        stmt = (
            select(wa)
            .where(
                wa.c.is_active == self.codec.dump_flag(True),
                or_(wa.c.user_id == user_id, wa.c.user_id.is_(None)),
            )
            .order_by(wa.c.created_at.desc())
        )
        return await self._all(stmt, rows.assessment_from_row)

    @reads()
    async def get_wellness_assessment(self, assessment_id: str) -> Optional[WellnessAssessment]:
        wa = self.t.wellness_assessments
        return await self._one(select(wa).where(wa.c.id == assessment_id), rows.assessment_from_row)

    @writes
    async def create_assessment_response(self, data: NewAssessmentResponse) -> AssessmentResponse:
        response = self._build_assessment_response(data)
        await self._insert(self.t.assessment_responses, rows.entity_to_row(response, self.codec))
        return response

    @reads(list)
    async def get_user_assessment_responses(self, user_id: str) -> List[AssessmentResponse]:
        ar = self.t.assessment_responses
        stmt = select(ar).where(ar.c.user_id == user_id).order_by(ar.c.completed_at.desc())
        return await self._all(stmt, rows.assessment_response_from_row)

    @reads()
    async def get_latest_assessment_response(self, user_id: str) -> Optional[AssessmentResponse]:
        ar = self.t.assessment_responses
        stmt = (
            select(ar)
            .where(ar.c.user_id == user_id)
            .order_by(ar.c.completed_at.desc())
            .limit(1)
        )
        return await self._one(stmt, rows.assessment_response_from_row)
