from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["individual", "manager", "admin"]
AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled"]
BuddyStatus = Literal["pending", "accepted", "declined"]

ROLES = ("individual", "manager", "admin")


class CamelModel(BaseModel):
    """Python attributes stay snake_case; JSON on the wire is camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- entities -------------------------------------------------------------

class User(CamelModel):
    id: str
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    role: Role = "individual"
    display_name: str
    avatar_url: Optional[str] = None
    timezone: str = "UTC"
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class Organization(CamelModel):
    id: str
    name: str
    admin_user_id: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    wellness_score: float = 0.0
    created_at: datetime


class Employee(CamelModel):
    id: str
    user_id: str
    org_id: str
    job_title: Optional[str] = None
    department: Optional[str] = None
    anonymized_id: str
    wellness_streak: int = 0


class Journal(CamelModel):
    id: str
    user_id: str
    mood_score: Optional[int] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_private: bool = True
    created_at: datetime


class MoodEntry(CamelModel):
    id: str
    user_id: str
    mood_score: int
    notes: Optional[str] = None
    created_at: datetime


class AnonymousRant(CamelModel):
    # no user reference, ever
    id: str
    anonymous_token: str
    content: str
    sentiment_score: Optional[float] = None
    support_count: int = 0
    created_at: datetime


class Therapist(CamelModel):
    id: str
    name: str
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    profile_url: Optional[str] = None
    rating: Optional[float] = None
    availability: Dict[str, Any] = Field(default_factory=dict)


class Appointment(CamelModel):
    id: str
    therapist_id: Optional[str] = None
    user_id: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: AppointmentStatus = "pending"
    notes: Optional[str] = None


class Course(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    duration_minutes: Optional[int] = None
    difficulty: Optional[str] = None
    thumbnail_url: Optional[str] = None
    modules: Dict[str, Any] = Field(default_factory=dict)


class CourseProgress(CamelModel):
    id: str
    user_id: str
    course_id: str
    progress: int = 0
    updated_at: datetime


class AssessmentQuestion(CamelModel):
    id: str
    question: str
    type: str = "scale"
    options: List[str] = Field(default_factory=list)
    category: str


class WellnessAssessment(CamelModel):
    id: str
    user_id: Optional[str] = None
    assessment_type: str
    title: str
    questions: List[AssessmentQuestion] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime


class AssessmentResponse(CamelModel):
    id: str
    assessment_id: str
    user_id: str
    responses: Dict[str, Any] = Field(default_factory=dict)
    total_score: float = 0.0
    category_scores: Dict[str, float] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)
    completed_at: datetime


class BuddyMatch(CamelModel):
    id: str
    user_a_id: str
    user_b_id: str
    compatibility_score: float = 0.0
    status: BuddyStatus = "pending"
    created_at: datetime


class BuddySuggestion(CamelModel):
    id: str
    display_name: str


# --- insert payloads ------------------------------------------------------
# created_at overrides exist for seeding and tests; the API never sets them.

class NewUser(BaseModel):
    email: str
    password: str
    display_name: str
    role: Role = "individual"
    avatar_url: Optional[str] = None
    timezone: str = "UTC"
    preferences: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None


class NewJournal(BaseModel):
    user_id: str
    mood_score: Optional[int] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_private: bool = True
    created_at: Optional[datetime] = None


class NewMoodEntry(BaseModel):
    user_id: str
    mood_score: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class NewAnonymousRant(BaseModel):
    anonymous_token: str
    content: str
    sentiment_score: Optional[float] = None
    support_count: int = 0
    created_at: Optional[datetime] = None


class NewAppointment(BaseModel):
    user_id: str
    therapist_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: AppointmentStatus = "pending"
    notes: Optional[str] = None


class NewAssessmentResponse(BaseModel):
    assessment_id: str
    user_id: str
    responses: Dict[str, Any] = Field(default_factory=dict)
    total_score: float = 0.0
    category_scores: Dict[str, float] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
