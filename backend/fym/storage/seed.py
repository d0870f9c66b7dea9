"""
Demo data every engine starts with on an empty database.

Built as plain entities so each engine can insert them its own way.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from fym.models import (
    AnonymousRant, Course, Employee, Journal, MoodEntry, NewAnonymousRant, NewJournal,
    NewMoodEntry, NewUser, Organization, Therapist, User, WellnessAssessment,
)

DEMO_ORG_NAME = "Demo Wellness Co."

DEMO_USERS = [
    # (email, password, display name, role)
    ("admin@demo.foryourmind.app", "demo-admin-pass", "Avery Admin", "admin"),
    ("manager@demo.foryourmind.app", "demo-manager-pass", "Morgan Manager", "manager"),
    ("employee@demo.foryourmind.app", "demo-employee-pass", "Jordan Employee", "individual"),
]


@dataclass
class DemoData:
    users: List[User] = field(default_factory=list)
    therapists: List[Therapist] = field(default_factory=list)
    courses: List[Course] = field(default_factory=list)
    rants: List[AnonymousRant] = field(default_factory=list)
    organizations: List[Organization] = field(default_factory=list)
    employees: List[Employee] = field(default_factory=list)
    mood_entries: List[MoodEntry] = field(default_factory=list)
    journals: List[Journal] = field(default_factory=list)
    assessments: List[WellnessAssessment] = field(default_factory=list)


def build_demo_data(storage) -> DemoData:
    now = storage.now()
    data = DemoData()

    data.therapists = [
        Therapist(
            id="therapist-1",
            name="Dr. Priya Raman",
            specialization="Anxiety & Stress",
            license_number="LIC-20431",
            rating=4.8,
            availability={"monday": ["09:00", "13:00"], "wednesday": ["10:00", "15:00"]},
        ),
        Therapist(
            id="therapist-2",
            name="Dr. Samuel Okafor",
            specialization="Burnout & Work-Life Balance",
            license_number="LIC-31877",
            rating=4.6,
            availability={"tuesday": ["11:00", "16:00"], "thursday": ["09:30", "14:30"]},
        ),
    ]
    data.courses = [
        Course(
            id="course-1",
            title="Foundations of Mindful Breathing",
            description="Short daily exercises to calm the nervous system.",
            duration_minutes=45,
            difficulty="beginner",
            modules={"lessons": ["Box breathing", "4-7-8 breathing", "Body scan"]},
        ),
    ]
    data.rants = [
        storage._build_rant(NewAnonymousRant(
            anonymous_token="anon-demo-1",
            content="Deadlines stacked up this week and I barely slept.",
            sentiment_score=-0.4,
            support_count=3,
            created_at=now - timedelta(hours=2),
        )),
        storage._build_rant(NewAnonymousRant(
            anonymous_token="anon-demo-2",
            content="Finally took a proper lunch break today. Small win.",
            sentiment_score=0.6,
            support_count=5,
            created_at=now - timedelta(hours=4),
        )),
    ]

    for email, password, display_name, role in DEMO_USERS:
        data.users.append(storage._build_user(NewUser(
            email=email, password=password, display_name=display_name, role=role,
        )))
    admin, manager, employee = data.users

    org = storage._build_organization(DEMO_ORG_NAME, admin.id)
    data.organizations.append(org)
    data.employees = [
        storage._build_employee(manager.id, org.id, "Team Lead", "Engineering"),
        storage._build_employee(employee.id, org.id, "Software Engineer", "Engineering"),
    ]

    yesterday = now - timedelta(days=1)
    data.mood_entries.append(storage._build_mood_entry(NewMoodEntry(
        user_id=employee.id, mood_score=4, notes="Good focus day", created_at=yesterday,
    )))
    data.journals.append(storage._build_journal(NewJournal(
        user_id=employee.id,
        mood_score=4,
        content="Wrapped up the release and went for a walk afterwards.",
        tags=["work", "gratitude"],
        created_at=yesterday,
    )))
    data.assessments = [storage._build_default_assessment(user.id) for user in data.users]
    return data
