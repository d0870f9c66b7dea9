"""
The storage contract every engine implements.

Reads return `None` / `[]` when nothing is found (or the engine could not read,
see DESIGN.md); writes raise `StorageError`. Lists are newest-first except
appointments, which are ordered by start time.
"""
from __future__ import annotations

import abc
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from fym.models import (
    Appointment, AssessmentResponse, AnonymousRant, BuddyMatch, BuddyStatus, BuddySuggestion,
    Course, CourseProgress, Employee, Journal, MoodEntry, NewAnonymousRant, NewAppointment,
    NewAssessmentResponse, NewJournal, NewMoodEntry, NewUser, Organization, Therapist, User,
    WellnessAssessment,
)
from fym import security
from fym.security import hash_password
from fym.services.assessment_service import (
    DEFAULT_ASSESSMENT_TITLE, DEFAULT_ASSESSMENT_TYPE, default_questions,
)
from fym.services.metrics_service import WINDOW_DAYS, WellnessMetrics, compute_wellness_metrics

DEFAULT_ORG_SETTINGS = {"allowAnonymousRants": True, "requireMoodCheckins": False}

USER_UPDATABLE = frozenset({"email", "display_name", "avatar_url", "timezone", "preferences", "password_hash"})
JOURNAL_UPDATABLE = frozenset({"mood_score", "content", "tags", "is_private"})
APPOINTMENT_UPDATABLE = frozenset({"start_time", "end_time", "status", "notes"})
ORGANIZATION_UPDATABLE = frozenset({"name", "settings", "wellness_score"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def pick(updates: Mapping[str, Any], allowed: frozenset) -> Dict[str, Any]:
    """Keep only the updatable fields that are actually present."""
    return {k: v for k, v in updates.items() if k in allowed}


class Storage(abc.ABC):
    name = "abstract"

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    async def init(self) -> None:
        """Prepare schema and demo data. Safe to call on every start."""

    async def close(self) -> None:
        pass

    # --- entity builders shared by the engines ---------------------------

    def _build_user(self, data: NewUser) -> User:
        return User(
            id=data.id or new_id(),
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
            display_name=data.display_name,
            avatar_url=data.avatar_url,
            timezone=data.timezone or "UTC",
            preferences=data.preferences or {},
            created_at=data.created_at or self.now(),
        )

    def _build_journal(self, data: NewJournal) -> Journal:
        return Journal(
            id=new_id(),
            user_id=data.user_id,
            mood_score=data.mood_score,
            content=data.content,
            tags=list(data.tags or []),
            is_private=data.is_private,
            created_at=data.created_at or self.now(),
        )

    def _build_mood_entry(self, data: NewMoodEntry) -> MoodEntry:
        return MoodEntry(
            id=new_id(),
            user_id=data.user_id,
            mood_score=data.mood_score,
            notes=data.notes,
            created_at=data.created_at or self.now(),
        )

    def _build_rant(self, data: NewAnonymousRant) -> AnonymousRant:
        return AnonymousRant(
            id=new_id(),
            anonymous_token=data.anonymous_token,
            content=data.content,
            sentiment_score=data.sentiment_score,
            support_count=data.support_count,
            created_at=data.created_at or self.now(),
        )

    def _build_appointment(self, data: NewAppointment) -> Appointment:
        return Appointment(
            id=new_id(),
            therapist_id=data.therapist_id,
            user_id=data.user_id,
            start_time=data.start_time,
            end_time=data.end_time,
            status=data.status,
            notes=data.notes,
        )

    def _build_organization(self, name: str, admin_user_id: Optional[str]) -> Organization:
        return Organization(
            id=new_id(),
            name=name,
            admin_user_id=admin_user_id,
            settings=dict(DEFAULT_ORG_SETTINGS),
            wellness_score=0.0,
            created_at=self.now(),
        )

    def _build_employee(self, user_id: str, org_id: str, job_title: Optional[str],
                        department: Optional[str]) -> Employee:
        return Employee(
            id=new_id(),
            user_id=user_id,
            org_id=org_id,
            job_title=job_title,
            department=department,
            anonymized_id=f"emp_{uuid.uuid4().hex[:12]}",
            wellness_streak=0,
        )

    def _build_buddy_match(self, user_a: str, user_b: str, score: float) -> BuddyMatch:
        return BuddyMatch(
            id=new_id(),
            user_a_id=user_a,
            user_b_id=user_b,
            compatibility_score=score,
            status="pending",
            created_at=self.now(),
        )

    def _build_default_assessment(self, user_id: Optional[str]) -> WellnessAssessment:
        return WellnessAssessment(
            id=new_id(),
            user_id=user_id,
            assessment_type=DEFAULT_ASSESSMENT_TYPE,
            title=DEFAULT_ASSESSMENT_TITLE,
            questions=default_questions(),
            is_active=True,
            created_at=self.now(),
        )

    def _build_assessment_response(self, data: NewAssessmentResponse) -> AssessmentResponse:
        return AssessmentResponse(
            id=new_id(),
            assessment_id=data.assessment_id,
            user_id=data.user_id,
            responses=dict(data.responses),
            total_score=data.total_score,
            category_scores=dict(data.category_scores),
            recommendations=list(data.recommendations),
            completed_at=data.completed_at or self.now(),
        )

    def _refresh_expiry(self, expires_in_days: int) -> datetime:
        return self.now() + timedelta(days=expires_in_days)

    def _mood_cutoff(self, days: int) -> datetime:
        return self.now() - timedelta(days=days)

    # --- users -----------------------------------------------------------

    @abc.abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def create_user(self, data: NewUser) -> User:
        """Raises DuplicateEmailError when the e-mail is taken."""

    @abc.abstractmethod
    async def update_user(self, user_id: str, updates: Mapping[str, Any]) -> Optional[User]: ...

    @abc.abstractmethod
    async def delete_user(self, user_id: str) -> bool: ...

    async def verify_password(self, email: str, password: str) -> Optional[User]:
        """Same `None` for an unknown e-mail and a wrong password."""
        user = await self.get_user_by_email(email)
        if user is None:
            security.dummy_verify()
            return None
        if not security.verify_password(password, user.password_hash):
            return None
        return user

    # --- journals --------------------------------------------------------

    @abc.abstractmethod
    async def create_journal(self, data: NewJournal) -> Journal: ...

    @abc.abstractmethod
    async def get_user_journals(self, user_id: str) -> List[Journal]: ...

    @abc.abstractmethod
    async def get_journal(self, journal_id: str) -> Optional[Journal]:
        """No ownership check here; callers enforce it."""

    @abc.abstractmethod
    async def update_journal(self, journal_id: str, updates: Mapping[str, Any]) -> Optional[Journal]: ...

    @abc.abstractmethod
    async def delete_journal(self, journal_id: str) -> bool: ...

    # --- anonymous rants -------------------------------------------------

    @abc.abstractmethod
    async def create_anonymous_rant(self, data: NewAnonymousRant) -> AnonymousRant: ...

    @abc.abstractmethod
    async def get_anonymous_rants(self) -> List[AnonymousRant]: ...

    @abc.abstractmethod
    async def support_anonymous_rant(self, rant_id: str) -> bool: ...

    # --- mood ------------------------------------------------------------

    @abc.abstractmethod
    async def create_mood_entry(self, data: NewMoodEntry) -> MoodEntry: ...

    @abc.abstractmethod
    async def get_user_mood_entries(self, user_id: str, days: int = 30) -> List[MoodEntry]:
        """Entries with created_at >= now - days, newest first."""

    # --- therapists & appointments ---------------------------------------

    @abc.abstractmethod
    async def get_therapists(self) -> List[Therapist]: ...

    @abc.abstractmethod
    async def get_therapist(self, therapist_id: str) -> Optional[Therapist]: ...

    @abc.abstractmethod
    async def create_appointment(self, data: NewAppointment) -> Appointment: ...

    @abc.abstractmethod
    async def get_user_appointments(self, user_id: str) -> List[Appointment]: ...

    @abc.abstractmethod
    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]: ...

    @abc.abstractmethod
    async def update_appointment(self, appointment_id: str, updates: Mapping[str, Any]) -> Optional[Appointment]: ...

    @abc.abstractmethod
    async def delete_appointment(self, appointment_id: str) -> bool: ...

    # --- courses ---------------------------------------------------------

    @abc.abstractmethod
    async def get_courses(self) -> List[Course]: ...

    @abc.abstractmethod
    async def get_course(self, course_id: str) -> Optional[Course]: ...

    @abc.abstractmethod
    async def upsert_course_progress(self, user_id: str, course_id: str, progress: int) -> CourseProgress: ...

    @abc.abstractmethod
    async def get_user_course_progress(self, user_id: str) -> List[CourseProgress]: ...

    # --- organizations ---------------------------------------------------

    @abc.abstractmethod
    async def create_organization(self, name: str, admin_user_id: Optional[str]) -> Organization: ...

    @abc.abstractmethod
    async def get_organization(self, org_id: str) -> Optional[Organization]: ...

    @abc.abstractmethod
    async def update_organization(self, org_id: str, updates: Mapping[str, Any]) -> Optional[Organization]: ...

    @abc.abstractmethod
    async def add_employee_to_org(self, user_id: str, org_id: str, job_title: Optional[str] = None,
                                  department: Optional[str] = None) -> Employee: ...

    @abc.abstractmethod
    async def get_employees_by_org(self, org_id: str) -> List[Employee]: ...

    async def get_organization_wellness_metrics(self, org_id: str) -> WellnessMetrics:
        employees = await self.get_employees_by_org(org_id)
        entries = {}
        for employee in employees:
            entries[employee.user_id] = await self.get_user_mood_entries(employee.user_id, WINDOW_DAYS)
        return compute_wellness_metrics(org_id, employees, entries, self.now())

    # --- refresh tokens --------------------------------------------------

    @abc.abstractmethod
    async def create_refresh_token(self, user_id: str, expires_in_days: int = 7) -> str: ...

    @abc.abstractmethod
    async def verify_refresh_token(self, token: str) -> Optional[str]:
        """Owner id for a live token; expired tokens are deleted and yield None."""

    @abc.abstractmethod
    async def delete_refresh_token(self, token: str) -> bool: ...

    # --- buddies ---------------------------------------------------------

    @abc.abstractmethod
    async def suggest_buddies(self, user_id: str, limit: int = 5) -> List[BuddySuggestion]: ...

    @abc.abstractmethod
    async def create_buddy_match(self, user_a: str, user_b: str, score: float = 0.0) -> BuddyMatch: ...

    @abc.abstractmethod
    async def get_buddy_match(self, match_id: str) -> Optional[BuddyMatch]: ...

    @abc.abstractmethod
    async def update_buddy_match_status(self, match_id: str, status: BuddyStatus) -> bool: ...

    @abc.abstractmethod
    async def get_buddy_matches(self, user_id: str) -> List[BuddyMatch]: ...

    # --- wellness assessments --------------------------------------------

    @abc.abstractmethod
    async def ensure_default_assessment(self, user_id: str) -> WellnessAssessment:
        """Provision the default assessment for a user if they have none."""

    @abc.abstractmethod
    async def get_wellness_assessments(self, user_id: str) -> List[WellnessAssessment]:
        """Active assessments owned by the user or org-wide. Never writes."""

    @abc.abstractmethod
    async def get_wellness_assessment(self, assessment_id: str) -> Optional[WellnessAssessment]: ...

    @abc.abstractmethod
    async def create_assessment_response(self, data: NewAssessmentResponse) -> AssessmentResponse: ...

    @abc.abstractmethod
    async def get_user_assessment_responses(self, user_id: str) -> List[AssessmentResponse]: ...

    @abc.abstractmethod
    async def get_latest_assessment_response(self, user_id: str) -> Optional[AssessmentResponse]: ...
