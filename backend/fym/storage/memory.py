"""In-process storage; data lives as long as the process does."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from fym import security
from fym.errors import DuplicateEmailError
from fym.models import (
    Appointment, AssessmentResponse, AnonymousRant, BuddyMatch, BuddySuggestion, Course,
    CourseProgress, Employee, Journal, MoodEntry, NewAnonymousRant, NewAppointment,
    NewAssessmentResponse, NewJournal, NewMoodEntry, NewUser, Organization, Therapist, User,
    WellnessAssessment,
)
from fym.storage.base import (
    APPOINTMENT_UPDATABLE, JOURNAL_UPDATABLE, ORGANIZATION_UPDATABLE, USER_UPDATABLE,
    Storage, new_id, pick,
)
from fym.storage.seed import build_demo_data

logger = logging.getLogger(__name__)


def _newest_first(items, attr="created_at"):
    return sorted(items, key=lambda x: getattr(x, attr), reverse=True)


class MemStorage(Storage):
    name = "memory"

    def __init__(self, clock=None, seed: bool = True):
        super().__init__(clock)
        self.users: Dict[str, User] = {}
        self.organizations: Dict[str, Organization] = {}
        self.employees: Dict[str, Employee] = {}
        self.journals: Dict[str, Journal] = {}
        self.rants: Dict[str, AnonymousRant] = {}
        self.therapists: Dict[str, Therapist] = {}
        self.appointments: Dict[str, Appointment] = {}
        self.courses: Dict[str, Course] = {}
        self.course_progress: Dict[str, CourseProgress] = {}
        self.mood_entries: Dict[str, MoodEntry] = {}
        self.refresh_tokens: Dict[str, tuple] = {}
        self.buddy_matches: Dict[str, BuddyMatch] = {}
        self.assessments: Dict[str, WellnessAssessment] = {}
        self.assessment_responses: Dict[str, AssessmentResponse] = {}
        if seed:
            self._seed()

    def _seed(self) -> None:
        try:
            data = build_demo_data(self)
        except Exception as e:
            logger.warning("[memory_storage] seeding failed: %s", e)
            return
        for group, target in (
            (data.users, self.users),
            (data.therapists, self.therapists),
            (data.courses, self.courses),
            (data.rants, self.rants),
            (data.organizations, self.organizations),
            (data.employees, self.employees),
            (data.mood_entries, self.mood_entries),
            (data.journals, self.journals),
            (data.assessments, self.assessments),
        ):
            for item in group:
                target[item.id] = item
        logger.info("[memory_storage] seeded %d demo users", len(data.users))

    # --- users -----------------------------------------------------------

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    async def create_user(self, data: NewUser) -> User:
        if await self.get_user_by_email(data.email):
            raise DuplicateEmailError(data.email)
        user = self._build_user(data)
        self.users[user.id] = user
        await self.ensure_default_assessment(user.id)
        return user

    async def update_user(self, user_id: str, updates: Mapping[str, Any]) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        changes = pick(updates, USER_UPDATABLE)
        email = changes.get("email")
        if email and email != user.email and await self.get_user_by_email(email):
            raise DuplicateEmailError(email)
        user = user.model_copy(update=changes)
        self.users[user_id] = user
        return user

    async def delete_user(self, user_id: str) -> bool:
        if user_id not in self.users:
            return False
        for store in (self.assessment_responses, self.course_progress, self.appointments,
                      self.mood_entries, self.journals, self.employees):
            for key in [k for k, v in store.items() if v.user_id == user_id]:
                del store[key]
        for key in [k for k, m in self.buddy_matches.items() if user_id in (m.user_a_id, m.user_b_id)]:
            del self.buddy_matches[key]
        for key in [k for k, (owner, _) in self.refresh_tokens.items() if owner == user_id]:
            del self.refresh_tokens[key]
        for key in [k for k, a in self.assessments.items() if a.user_id == user_id]:
            del self.assessments[key]
        del self.users[user_id]
        return True

    # --- journals --------------------------------------------------------

    async def create_journal(self, data: NewJournal) -> Journal:
        journal = self._build_journal(data)
        self.journals[journal.id] = journal
        return journal

    async def get_user_journals(self, user_id: str) -> List[Journal]:
        return _newest_first(j for j in self.journals.values() if j.user_id == user_id)

    async def get_journal(self, journal_id: str) -> Optional[Journal]:
        return self.journals.get(journal_id)

    async def update_journal(self, journal_id: str, updates: Mapping[str, Any]) -> Optional[Journal]:
        journal = self.journals.get(journal_id)
        if journal is None:
            return None
        journal = journal.model_copy(update=pick(updates, JOURNAL_UPDATABLE))
        self.journals[journal_id] = journal
        return journal

    async def delete_journal(self, journal_id: str) -> bool:
        return self.journals.pop(journal_id, None) is not None

    # --- anonymous rants -------------------------------------------------

    async def create_anonymous_rant(self, data: NewAnonymousRant) -> AnonymousRant:
        rant = self._build_rant(data)
        self.rants[rant.id] = rant
        return rant

    async def get_anonymous_rants(self) -> List[AnonymousRant]:
        return _newest_first(self.rants.values())

    async def support_anonymous_rant(self, rant_id: str) -> bool:
        rant = self.rants.get(rant_id)
        if rant is None:
            return False
        self.rants[rant_id] = rant.model_copy(update={"support_count": rant.support_count + 1})
        return True

    # --- mood ------------------------------------------------------------

    async def create_mood_entry(self, data: NewMoodEntry) -> MoodEntry:
        entry = self._build_mood_entry(data)
        self.mood_entries[entry.id] = entry
        return entry

    async def get_user_mood_entries(self, user_id: str, days: int = 30) -> List[MoodEntry]:
        cutoff = self._mood_cutoff(days)
        return _newest_first(
            e for e in self.mood_entries.values() if e.user_id == user_id and e.created_at >= cutoff
        )

    # --- therapists & appointments ---------------------------------------

    async def get_therapists(self) -> List[Therapist]:
        return sorted(self.therapists.values(), key=lambda t: t.name)

    async def get_therapist(self, therapist_id: str) -> Optional[Therapist]:
        return self.therapists.get(therapist_id)

    async def create_appointment(self, data: NewAppointment) -> Appointment:
        appointment = self._build_appointment(data)
        self.appointments[appointment.id] = appointment
        return appointment

    async def get_user_appointments(self, user_id: str) -> List[Appointment]:
        mine = [a for a in self.appointments.values() if a.user_id == user_id]
        return sorted(mine, key=lambda a: (a.start_time is None, a.start_time or self.now()))

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        return self.appointments.get(appointment_id)

    async def update_appointment(self, appointment_id: str, updates: Mapping[str, Any]) -> Optional[Appointment]:
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            return None
        appointment = appointment.model_copy(update=pick(updates, APPOINTMENT_UPDATABLE))
        self.appointments[appointment_id] = appointment
        return appointment

    async def delete_appointment(self, appointment_id: str) -> bool:
        return self.appointments.pop(appointment_id, None) is not None

    # --- courses ---------------------------------------------------------

    async def get_courses(self) -> List[Course]:
        return sorted(self.courses.values(), key=lambda c: c.title)

    async def get_course(self, course_id: str) -> Optional[Course]:
        return self.courses.get(course_id)

    async def upsert_course_progress(self, user_id: str, course_id: str, progress: int) -> CourseProgress:
        for key, item in self.course_progress.items():
            if item.user_id == user_id and item.course_id == course_id:
                item = item.model_copy(update={"progress": progress, "updated_at": self.now()})
                self.course_progress[key] = item
                return item
        item = CourseProgress(
            id=new_id(), user_id=user_id, course_id=course_id, progress=progress, updated_at=self.now(),
        )
        self.course_progress[item.id] = item
        return item

    async def get_user_course_progress(self, user_id: str) -> List[CourseProgress]:
        return _newest_first(
            (p for p in self.course_progress.values() if p.user_id == user_id), "updated_at"
        )

    # --- organizations ---------------------------------------------------

    async def create_organization(self, name: str, admin_user_id: Optional[str]) -> Organization:
        org = self._build_organization(name, admin_user_id)
        self.organizations[org.id] = org
        return org

    async def get_organization(self, org_id: str) -> Optional[Organization]:
        return self.organizations.get(org_id)

    async def update_organization(self, org_id: str, updates: Mapping[str, Any]) -> Optional[Organization]:
        org = self.organizations.get(org_id)
        if org is None:
            return None
        org = org.model_copy(update=pick(updates, ORGANIZATION_UPDATABLE))
        self.organizations[org_id] = org
        return org

    async def add_employee_to_org(self, user_id: str, org_id: str, job_title: Optional[str] = None,
                                  department: Optional[str] = None) -> Employee:
        employee = self._build_employee(user_id, org_id, job_title, department)
        self.employees[employee.id] = employee
        return employee

    async def get_employees_by_org(self, org_id: str) -> List[Employee]:
        return [e for e in self.employees.values() if e.org_id == org_id]

    # --- refresh tokens --------------------------------------------------

    async def create_refresh_token(self, user_id: str, expires_in_days: int = 7) -> str:
        token = security.generate_refresh_token()
        self.refresh_tokens[token] = (user_id, self._refresh_expiry(expires_in_days))
        return token

    async def verify_refresh_token(self, token: str) -> Optional[str]:
        record = self.refresh_tokens.get(token)
        if record is None:
            return None
        user_id, expires_at = record
        if expires_at <= self.now():
            del self.refresh_tokens[token]
            return None
        return user_id

    async def delete_refresh_token(self, token: str) -> bool:
        return self.refresh_tokens.pop(token, None) is not None

    # --- buddies ---------------------------------------------------------

    async def suggest_buddies(self, user_id: str, limit: int = 5) -> List[BuddySuggestion]:
        others = [u for u in self.users.values() if u.id != user_id]
        return [BuddySuggestion(id=u.id, display_name=u.display_name) for u in others[:limit]]

    async def create_buddy_match(self, user_a: str, user_b: str, score: float = 0.0) -> BuddyMatch:
        match = self._build_buddy_match(user_a, user_b, score)
        self.buddy_matches[match.id] = match
        return match

    async def get_buddy_match(self, match_id: str) -> Optional[BuddyMatch]:
        return self.buddy_matches.get(match_id)

    async def update_buddy_match_status(self, match_id: str, status) -> bool:
        match = self.buddy_matches.get(match_id)
        if match is None:
            return False
        self.buddy_matches[match_id] = match.model_copy(update={"status": status})
        return True

    async def get_buddy_matches(self, user_id: str) -> List[BuddyMatch]:
        return _newest_first(
            m for m in self.buddy_matches.values() if user_id in (m.user_a_id, m.user_b_id)
        )

    # --- wellness assessments --------------------------------------------

    async def ensure_default_assessment(self, user_id: str) -> WellnessAssessment:
        for assessment in self.assessments.values():
            if assessment.user_id == user_id:
                return assessment
        assessment = self._build_default_assessment(user_id)
        self.assessments[assessment.id] = assessment
        return assessment

    async def get_wellness_assessments(self, user_id: str) -> List[WellnessAssessment]:
        return _newest_first(
            a for a in self.assessments.values()
            if a.is_active and (a.user_id == user_id or a.user_id is None)
        )

    async def get_wellness_assessment(self, assessment_id: str) -> Optional[WellnessAssessment]:
        return self.assessments.get(assessment_id)

    async def create_assessment_response(self, data: NewAssessmentResponse) -> AssessmentResponse:
        response = self._build_assessment_response(data)
        self.assessment_responses[response.id] = response
        return response

    async def get_user_assessment_responses(self, user_id: str) -> List[AssessmentResponse]:
        return _newest_first(
            (r for r in self.assessment_responses.values() if r.user_id == user_id), "completed_at"
        )

    async def get_latest_assessment_response(self, user_id: str) -> Optional[AssessmentResponse]:
        responses = await self.get_user_assessment_responses(user_id)
        return responses[0] if responses else None
