from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from fym.models import AppointmentStatus, BuddyStatus, CamelModel, Role


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- auth -----------------------------------------------------------------

class RegisterRequest(CamelModel):
    """
    POST /auth/register. Only individual and manager accounts can sign up;
    admin accounts are provisioned.
    """
    email: EmailStr
    password: str = Field(..., min_length=8)
    display_name: str = Field(..., min_length=1, max_length=100)
    role: Literal["individual", "manager"] = "individual"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    organization_code: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class UserPublic(CamelModel):
    """The user as clients see it. Never carries the password hash."""
    id: str
    email: str
    role: Role
    display_name: str
    avatar_url: Optional[str] = None
    timezone: str = "UTC"
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class AuthResponse(CamelModel):
    user: UserPublic
    token: str


class Message(CamelModel):
    message: str


# --- user -----------------------------------------------------------------

class ProfileUpdate(CamelModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = None
    timezone: Optional[str] = None


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class PasswordChanged(CamelModel):
    message: str
    requires_reauthentication: bool = True


class AccountDelete(CamelModel):
    password: str = Field(..., min_length=1)


class NotificationPreferences(CamelModel):
    email_reminders: bool = True
    mood_check_ins: bool = True
    weekly_report: bool = True
    buddy_requests: bool = True


# --- journals & mood ------------------------------------------------------

class JournalCreate(CamelModel):
    mood_score: Optional[int] = Field(None, ge=1, le=5)
    content: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    is_private: bool = True


class JournalUpdate(CamelModel):
    mood_score: Optional[int] = Field(None, ge=1, le=5)
    content: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[str]] = None
    is_private: Optional[bool] = None


class MoodCreate(CamelModel):
    mood_score: int = Field(..., ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=1000)


class MoodStats(CamelModel):
    average: Optional[float] = None
    trend: Literal["improving", "declining", "neutral"] = "neutral"
    best_mood: Optional[int] = None
    worst_mood: Optional[int] = None
    total_entries: int = 0
    days_tracked: int = 0


# --- rants ----------------------------------------------------------------

class RantCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)
    sentiment_score: Optional[float] = Field(None, ge=-1, le=1)


class RantPublic(CamelModel):
    # no token, no user reference
    id: str
    content: str
    sentiment_score: Optional[float] = None
    support_count: int = 0
    created_at: datetime


# --- appointments ---------------------------------------------------------

class AppointmentCreate(CamelModel):
    therapist_id: str
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value):
        return _as_utc(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class AppointmentUpdate(CamelModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value):
        return _as_utc(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


# --- courses --------------------------------------------------------------

class CourseProgressUpdate(CamelModel):
    progress: int = Field(..., ge=0, le=100)


# --- organizations --------------------------------------------------------

class OrganizationCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)


class OrganizationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    settings: Optional[Dict[str, Any]] = None
    wellness_score: Optional[float] = Field(None, ge=0, le=10)


class EmployeeCreate(CamelModel):
    user_id: str
    job_title: Optional[str] = None
    department: Optional[str] = None


# --- buddies --------------------------------------------------------------

class BuddyMatchCreate(CamelModel):
    buddy_id: str
    compatibility_score: float = Field(0.0, ge=0, le=1)


class BuddyStatusUpdate(CamelModel):
    status: BuddyStatus


# --- assessments ----------------------------------------------------------

class AssessmentSubmit(CamelModel):
    responses: Dict[str, Any] = Field(..., min_length=1)
