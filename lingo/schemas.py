from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from lingo.models import (
    AssignmentStatus,
    Attendee,
    InstructorStatus,
    MeetingPlatform,
    RatingScores,
    SessionQuality,
    SessionStatus,
    SessionType,
    TimeSlot,
)


def present_fields(payload: BaseModel) -> dict[str, Any]:
    """Fields the client actually sent, nested models left as model instances."""
    return {name: getattr(payload, name) for name in payload.model_fields_set}


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str


class PasswordResetRequest(BaseModel):
    email: str


class InstructorProfileCreateRequest(BaseModel):
    display_name: str
    email: str
    phone: str | None = None
    profile_image: str | None = None
    bio: str | None = None
    specialization: list[str] = Field(default_factory=list)
    experience: str = '1+ years'
    qualifications: list[str] = Field(default_factory=list)
    location: str | None = None
    status: InstructorStatus = 'available'
    max_classes: int = Field(default=5, ge=0)


class InstructorProfileUpdateRequest(BaseModel):
    display_name: str | None = None
    email: str | None = None
    phone: str | None = None
    profile_image: str | None = None
    bio: str | None = None
    specialization: list[str] | None = None
    experience: str | None = None
    qualifications: list[str] | None = None
    location: str | None = None
    status: InstructorStatus | None = None
    max_classes: int | None = Field(default=None, ge=0)
    current_assignments: list[str] | None = None
    is_active: bool | None = None


class ClassAssignmentCreateRequest(BaseModel):
    instructor_id: str
    instructor_name: str
    class_id: str
    school_id: str
    school_name: str = ''
    class_name: str = 'English Class'
    subject: str = 'English'
    grade: str = 'Intermediate'
    schedule: str = 'TBD'
    start_date: str
    end_date: str | None = None
    is_temporary: bool = False
    status: AssignmentStatus = 'pending'
    notes: str | None = None


class ClassAssignmentUpdateRequest(BaseModel):
    instructor_name: str | None = None
    school_name: str | None = None
    class_name: str | None = None
    subject: str | None = None
    grade: str | None = None
    schedule: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    is_temporary: bool | None = None
    status: AssignmentStatus | None = None
    notes: str | None = None


class ClassSessionCreateRequest(BaseModel):
    class_id: str
    school_id: str
    session_date: str
    start_time: str = Field(default='10:00', pattern=r'^\d{2}:\d{2}$')
    end_time: str = Field(default='11:00', pattern=r'^\d{2}:\d{2}$')
    session_type: SessionType = 'in-person'
    meeting_link: str | None = None
    total_students: int = Field(default=0, ge=0)
    lesson_topic: str = ''
    materials: list[str] = Field(default_factory=list)
    homework: str | None = None


class ClassSessionUpdateRequest(BaseModel):
    session_date: str | None = None
    start_time: str | None = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    end_time: str | None = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    session_type: SessionType | None = None
    meeting_link: str | None = None
    attendance_count: int | None = Field(default=None, ge=0)
    total_students: int | None = Field(default=None, ge=0)
    lesson_topic: str | None = None
    materials: list[str] | None = None
    homework: str | None = None
    session_notes: str | None = None
    cancellation_reason: str | None = None
    status: SessionStatus | None = None


class ClassSessionEndRequest(BaseModel):
    session_notes: str | None = None


class StudentRatingCreateRequest(BaseModel):
    student_id: str
    class_id: str
    session_id: str
    ratings: RatingScores
    comments: str = ''
    strengths: str | list[str] = ''
    areas_for_improvement: str | list[str] = ''
    recommendations: str = ''
    is_visible: bool = True


class StudentRatingUpdateRequest(BaseModel):
    date: str | None = None
    is_visible: bool | None = None
    ratings: RatingScores | None = None
    comments: str | None = None
    strengths: list[str] | None = None
    areas_for_improvement: list[str] | None = None
    recommendations: str | None = None


class OnlineSessionCreateRequest(BaseModel):
    meeting_platform: MeetingPlatform = 'custom'
    meeting_id: str
    meeting_password: str | None = None
    meeting_link: str
    recording_enabled: bool = False
    attendees: list[Attendee] = Field(default_factory=list)
    session_quality: SessionQuality | None = None
    technical_issues: list[str] = Field(default_factory=list)
    shared_files: list[str] = Field(default_factory=list)


class OnlineSessionUpdateRequest(BaseModel):
    meeting_platform: MeetingPlatform | None = None
    meeting_id: str | None = None
    meeting_link: str | None = None
    recording_enabled: bool | None = None
    meeting_password: str | None = None
    attendees: list[Attendee] | None = None
    session_quality: SessionQuality | None = None
    technical_issues: list[str] | None = None
    recording_url: str | None = None
    recording_duration: int | None = Field(default=None, ge=0)
    chat_log: str | None = None
    whiteboard_data: str | None = None
    shared_files: list[str] | None = None


class InstructorScheduleCreateRequest(BaseModel):
    date: str
    time_slots: list[TimeSlot] = Field(default_factory=list)
    total_classes_scheduled: int = Field(default=0, ge=0)
    total_teaching_hours: float = Field(default=0, ge=0)


class InstructorScheduleUpdateRequest(BaseModel):
    date: str | None = None
    time_slots: list[TimeSlot] | None = None
    total_classes_scheduled: int | None = Field(default=None, ge=0)
    total_teaching_hours: float | None = Field(default=None, ge=0)


class ClassSessionStartRequest(BaseModel):
    lesson_topic: str = ''
    attendance_count: int = Field(default=0, ge=0)
    online: bool = False
