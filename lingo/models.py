from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


InstructorStatus = Literal['available', 'assigned', 'unavailable', 'on-leave']
AssignmentStatus = Literal['active', 'pending', 'completed', 'cancelled']
SessionStatus = Literal['scheduled', 'ongoing', 'completed', 'cancelled']
SessionType = Literal['in-person', 'online', 'hybrid']
MeetingPlatform = Literal['zoom', 'teams', 'google-meet', 'custom']
SlotStatus = Literal['available', 'booked', 'break', 'unavailable']
Quality = Literal['good', 'fair', 'poor']

RATING_CATEGORIES = ('participation', 'comprehension', 'homework', 'speaking', 'listening')


class BlobModel(BaseModel):
    """Base for objects stored inside JSON blobs; keys are camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    def to_blob(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class InstructorProfile(BaseModel):
    id: str
    user_id: str = ''
    display_name: str = ''
    email: str = ''
    phone: str | None = None
    profile_image: str | None = None
    bio: str | None = None
    specialization: list[str] = Field(default_factory=list)
    experience: str = '1+ years'
    qualifications: list[str] = Field(default_factory=list)
    location: str | None = None
    status: InstructorStatus = 'available'
    max_classes: int = 0
    current_assignments: list[str] = Field(default_factory=list)
    rating: float = 0
    total_ratings: int = 0
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


class ClassAssignment(BaseModel):
    id: str
    instructor_id: str = ''
    instructor_name: str = ''
    class_id: str = ''
    school_id: str = ''
    school_name: str = ''
    class_name: str = 'English Class'
    subject: str = 'English'
    grade: str = 'Intermediate'
    schedule: str = 'TBD'
    start_date: str | None = None
    end_date: str | None = None
    is_temporary: bool = False
    assigned_by: str = ''
    status: AssignmentStatus = 'pending'
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ClassSession(BaseModel):
    id: str
    class_id: str = ''
    instructor_id: str = ''
    school_id: str = ''
    session_date: str = ''
    start_time: str = '10:00'
    end_time: str = '11:00'
    actual_start_time: str | None = None
    actual_end_time: str | None = None
    session_type: SessionType = 'in-person'
    meeting_link: str | None = None
    attendance_count: int = 0
    total_students: int = 0
    lesson_topic: str = ''
    materials: list[str] = Field(default_factory=list)
    homework: str | None = None
    status: SessionStatus = 'scheduled'
    cancellation_reason: str | None = None
    session_notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class RatingScores(BlobModel):
    participation: int = 0
    comprehension: int = 0
    homework: int = 0
    speaking: int = 0
    listening: int = 0
    overall: int = 0


class StudentRating(BaseModel):
    id: str
    instructor_id: str = ''
    student_id: str = ''
    class_id: str = ''
    session_id: str = ''
    date: str = ''
    ratings: RatingScores = Field(default_factory=RatingScores)
    comments: str = ''
    strengths: list[str] = Field(default_factory=list)
    areas_for_improvement: list[str] = Field(default_factory=list)
    recommendations: str = ''
    is_visible: bool = True
    created_at: str | None = None
    updated_at: str | None = None


class Attendee(BlobModel):
    student_id: str = Field(default='', alias='studentId')
    join_time: str | None = Field(default=None, alias='joinTime')
    leave_time: str | None = Field(default=None, alias='leaveTime')
    duration: int = 0


class SessionQuality(BlobModel):
    video_quality: Quality = Field(default='good', alias='videoQuality')
    audio_quality: Quality = Field(default='good', alias='audioQuality')
    connection_stability: Literal['stable', 'unstable'] = Field(default='stable', alias='connectionStability')


class OnlineSession(BaseModel):
    id: str
    session_id: str = ''
    meeting_platform: MeetingPlatform = 'custom'
    meeting_id: str = ''
    meeting_password: str | None = None
    meeting_link: str = ''
    recording_enabled: bool = False
    recording_url: str | None = None
    recording_duration: int | None = None
    attendees: list[Attendee] = Field(default_factory=list)
    chat_log: str | None = None
    whiteboard_data: str | None = None
    shared_files: list[str] = Field(default_factory=list)
    session_quality: SessionQuality | None = None
    technical_issues: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None


class TimeSlot(BlobModel):
    start_time: str = Field(default='', alias='startTime')
    end_time: str = Field(default='', alias='endTime')
    status: SlotStatus = 'available'
    class_id: str | None = Field(default=None, alias='classId')
    session_id: str | None = Field(default=None, alias='sessionId')
    location: str | None = None


class InstructorSchedule(BaseModel):
    id: str
    instructor_id: str = ''
    date: str = ''
    time_slots: list[TimeSlot] = Field(default_factory=list)
    total_classes_scheduled: int = 0
    total_teaching_hours: float = 0
    created_at: str | None = None
    updated_at: str | None = None


class InstructorAnalytics(BaseModel):
    total_sessions: int
    completed_sessions: int
    average_rating: float
    total_students_rated: int
    upcoming_sessions: int


class User(BaseModel):
    id: str
    name: str = ''
    email: str = ''


class UserProfile(BaseModel):
    id: str
    user_id: str = ''
    display_name: str = ''
    first_name: str = ''
    last_name: str = ''
    english_level: str = 'beginner'
    role: str = 'student'
    is_admin: bool = False
    is_instructor: bool = False
    status: str = 'active'
    last_active: str | None = None
