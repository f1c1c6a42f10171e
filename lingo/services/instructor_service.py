"""Data access for the instructor module.

Remote documents are flat; groups of related attributes are packed into JSON
string fields (see ``lingo.core.json_fields``). Each entity kind has a
``_to_*`` transform for the read path and member tables describing which
attributes live where on the write path.

Partial updates take a mapping of snake_case attribute names. Only the keys
present in that mapping are written, and a blob is rewritten as a whole as soon
as any one of its members is present.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping

from appwrite.id import ID
from appwrite.query import Query

from lingo.backend.client import AppwriteClient
from lingo.config import settings
from lingo.core.json_fields import (
    compact,
    copy_present,
    int_member,
    model_list_member,
    model_member,
    pack_blob,
    parse_json_field,
    string_list_member,
    stringify_json_field,
    text_member,
)
from lingo.core.time_provider import TimeProvider, default_time_provider
from lingo.models import (
    RATING_CATEGORIES,
    Attendee,
    ClassAssignment,
    ClassSession,
    InstructorAnalytics,
    InstructorProfile,
    InstructorSchedule,
    OnlineSession,
    RatingScores,
    SessionQuality,
    StudentRating,
    TimeSlot,
)


logger = logging.getLogger(__name__)

DEFAULT_START_TIME = '10:00'
DEFAULT_END_TIME = '11:00'

_PROFILE_FIELDS = {
    'display_name': 'displayName',
    'email': 'email',
    'phone': 'phone',
    'status': 'status',
    'max_classes': 'maxClasses',
    'rating': 'rating',
    'total_ratings': 'totalRatings',
    'is_active': 'isActive',
}
_PROFILE_DATA = {
    'profile_image': 'profileImage',
    'bio': 'bio',
    'specialization': 'specialization',
    'experience': 'experience',
    'qualifications': 'qualifications',
    'location': 'location',
}

_ASSIGNMENT_FIELDS = {
    'instructor_name': 'instructorName',
    'school_name': 'schoolName',
    'start_date': 'startDate',
    'end_date': 'endDate',
    'is_temporary': 'isTemporary',
    'assigned_by': 'assignedBy',
    'status': 'status',
    'notes': 'notes',
}
_CLASS_DETAILS = {
    'class_name': 'className',
    'subject': 'subject',
    'grade': 'grade',
    'schedule': 'schedule',
}

_SESSION_FIELDS = {
    'session_date': 'sessionDate',
    'session_type': 'sessionType',
    'meeting_link': 'meetingLink',
    'attendance_count': 'attendanceCount',
    'total_students': 'totalStudents',
    'lesson_topic': 'lessonTopic',
    'status': 'status',
}
_SESSION_TIMES = {
    'actual_start_time': 'actualStartTime',
    'actual_end_time': 'actualEndTime',
}
_SESSION_DATA = {
    'materials': 'materials',
    'homework': 'homework',
    'session_notes': 'sessionNotes',
    'cancellation_reason': 'cancellationReason',
}

_RATING_FIELDS = {
    'date': 'date',
    'is_visible': 'isVisible',
}
_FEEDBACK = {
    'comments': 'comments',
    'strengths': 'strengths',
    'areas_for_improvement': 'areasForImprovement',
    'recommendations': 'recommendations',
}

_ONLINE_FIELDS = {
    'meeting_platform': 'meetingPlatform',
    'meeting_id': 'meetingId',
    'meeting_link': 'meetingLink',
    'recording_enabled': 'recordingEnabled',
}
_MEETING_DATA = {
    'meeting_password': 'password',
    'attendees': 'attendees',
    'session_quality': 'quality',
    'technical_issues': 'issues',
}
_RECORDING_DATA = {
    'recording_url': 'url',
    'recording_duration': 'duration',
}
_SESSION_CONTENT = {
    'chat_log': 'chatLog',
    'whiteboard_data': 'whiteboardData',
    'shared_files': 'sharedFiles',
}

_SCHEDULE_FIELDS = {
    'date': 'date',
    'total_classes_scheduled': 'totalClassesScheduled',
    'total_teaching_hours': 'totalTeachingHours',
}


def _present(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _blob_value(value: Any) -> Any:
    if isinstance(value, list):
        return [_blob_value(item) for item in value]
    if hasattr(value, 'to_blob'):
        return value.to_blob()
    if hasattr(value, 'model_dump'):
        return value.model_dump(by_alias=True, exclude_none=True)
    return value


def _blob(updates: Mapping[str, Any], members: Mapping[str, str]) -> dict[str, Any] | None:
    packed = pack_blob(updates, members)
    if packed is None:
        return None
    return {key: _blob_value(value) for key, value in packed.items()}


def _db() -> str:
    return settings.appwrite_database_id


def split_time_slot(time_slot: str | None) -> tuple[str, str]:
    """Split ``'HH:MM-HH:MM'``; a missing half takes its default."""
    if not isinstance(time_slot, str) or not time_slot:
        return DEFAULT_START_TIME, DEFAULT_END_TIME
    if '-' not in time_slot:
        return time_slot, DEFAULT_END_TIME
    start, end = time_slot.split('-', 1)
    return start or DEFAULT_START_TIME, end or DEFAULT_END_TIME


def join_time_slot(start_time: str, end_time: str) -> str:
    return f'{start_time}-{end_time}'


# Transforms

def _to_instructor_profile(doc: Mapping[str, Any]) -> InstructorProfile:
    profile_data = parse_json_field(doc.get('profileData'), {})
    return InstructorProfile(
        **_present(
            id=doc.get('$id'),
            user_id=doc.get('userId'),
            display_name=doc.get('displayName'),
            email=doc.get('email'),
            phone=doc.get('phone'),
            profile_image=text_member(profile_data.get('profileImage')),
            bio=text_member(profile_data.get('bio')),
            specialization=string_list_member(profile_data.get('specialization')),
            experience=text_member(profile_data.get('experience')) or '1+ years',
            qualifications=string_list_member(profile_data.get('qualifications')),
            location=text_member(profile_data.get('location')),
            status=doc.get('status'),
            max_classes=doc.get('maxClasses'),
            current_assignments=string_list_member(parse_json_field(doc.get('currentAssignments'), [])),
            rating=doc.get('rating'),
            total_ratings=doc.get('totalRatings'),
            is_active=doc.get('isActive'),
            created_at=doc.get('createdAt'),
            updated_at=doc.get('updatedAt'),
        )
    )


def _to_class_assignment(doc: Mapping[str, Any]) -> ClassAssignment:
    details = parse_json_field(doc.get('classDetails'), {})
    return ClassAssignment(
        **_present(
            id=doc.get('$id'),
            instructor_id=doc.get('instructorId'),
            instructor_name=doc.get('instructorName'),
            class_id=doc.get('classId'),
            school_id=doc.get('schoolId'),
            school_name=doc.get('schoolName'),
            class_name=text_member(details.get('className')) or 'English Class',
            subject=text_member(details.get('subject')) or 'English',
            grade=text_member(details.get('grade')) or 'Intermediate',
            schedule=text_member(details.get('schedule')) or 'TBD',
            start_date=doc.get('startDate'),
            end_date=doc.get('endDate'),
            is_temporary=doc.get('isTemporary'),
            assigned_by=doc.get('assignedBy'),
            status=doc.get('status'),
            notes=doc.get('notes'),
            created_at=doc.get('createdAt'),
            updated_at=doc.get('updatedAt'),
        )
    )


def _to_class_session(doc: Mapping[str, Any]) -> ClassSession:
    session_times = parse_json_field(doc.get('sessionTimes'), {})
    session_data = parse_json_field(doc.get('sessionData'), {})
    start_time, end_time = split_time_slot(doc.get('timeSlot'))
    return ClassSession(
        **_present(
            id=doc.get('$id'),
            class_id=doc.get('classId'),
            instructor_id=doc.get('instructorId'),
            school_id=doc.get('schoolId'),
            session_date=doc.get('sessionDate'),
            start_time=start_time,
            end_time=end_time,
            actual_start_time=text_member(session_times.get('actualStartTime')),
            actual_end_time=text_member(session_times.get('actualEndTime')),
            session_type=doc.get('sessionType'),
            meeting_link=doc.get('meetingLink'),
            attendance_count=doc.get('attendanceCount'),
            total_students=doc.get('totalStudents'),
            lesson_topic=doc.get('lessonTopic'),
            materials=string_list_member(session_data.get('materials')),
            homework=text_member(session_data.get('homework')),
            status=doc.get('status'),
            cancellation_reason=text_member(session_data.get('cancellationReason')),
            session_notes=text_member(session_data.get('sessionNotes')),
            created_at=doc.get('createdAt'),
            updated_at=doc.get('updatedAt'),
        )
    )


def _to_rating_scores(ratings: Mapping[str, Any]) -> RatingScores:
    return RatingScores(**{name: int_member(ratings.get(name)) for name in (*RATING_CATEGORIES, 'overall')})


def _to_student_rating(doc: Mapping[str, Any]) -> StudentRating:
    ratings = parse_json_field(doc.get('ratings'), {})
    feedback = parse_json_field(doc.get('feedback'), {})
    return StudentRating(
        **_present(
            id=doc.get('$id'),
            instructor_id=doc.get('instructorId'),
            student_id=doc.get('studentId'),
            class_id=doc.get('classId'),
            session_id=doc.get('sessionId'),
            date=doc.get('date'),
            ratings=_to_rating_scores(ratings),
            comments=text_member(feedback.get('comments'), ''),
            strengths=string_list_member(feedback.get('strengths')),
            areas_for_improvement=string_list_member(feedback.get('areasForImprovement')),
            recommendations=text_member(feedback.get('recommendations'), ''),
            is_visible=doc.get('isVisible'),
            created_at=doc.get('createdAt'),
            updated_at=doc.get('updatedAt'),
        )
    )


def _to_online_session(doc: Mapping[str, Any]) -> OnlineSession:
    meeting_data = parse_json_field(doc.get('meetingData'), {})
    recording_data = parse_json_field(doc.get('recordingData'), {})
    content = parse_json_field(doc.get('sessionContent'), {})
    return OnlineSession(
        **_present(
            id=doc.get('$id'),
            session_id=doc.get('sessionId'),
            meeting_platform=doc.get('meetingPlatform'),
            meeting_id=doc.get('meetingId'),
            meeting_password=text_member(meeting_data.get('password')),
            meeting_link=doc.get('meetingLink'),
            recording_enabled=doc.get('recordingEnabled'),
            recording_url=text_member(recording_data.get('url')),
            recording_duration=int_member(recording_data.get('duration'), None),
            attendees=model_list_member(meeting_data.get('attendees'), Attendee),
            chat_log=text_member(content.get('chatLog')),
            whiteboard_data=text_member(content.get('whiteboardData')),
            shared_files=string_list_member(content.get('sharedFiles')),
            session_quality=model_member(meeting_data.get('quality'), SessionQuality),
            technical_issues=string_list_member(meeting_data.get('issues')),
            created_at=doc.get('createdAt'),
            updated_at=doc.get('updatedAt'),
        )
    )


def _to_instructor_schedule(doc: Mapping[str, Any]) -> InstructorSchedule:
    return InstructorSchedule(
        **_present(
            id=doc.get('$id'),
            instructor_id=doc.get('instructorId'),
            date=doc.get('date'),
            time_slots=model_list_member(parse_json_field(doc.get('timeSlots'), []), TimeSlot),
            total_classes_scheduled=doc.get('totalClassesScheduled'),
            total_teaching_hours=doc.get('totalTeachingHours'),
            created_at=doc.get('createdAt'),
            updated_at=doc.get('updatedAt'),
        )
    )


def _list(
    client: AppwriteClient,
    collection_id: str,
    queries: list[str],
    fetch_all: bool = False,
) -> list[dict[str, Any]]:
    if fetch_all:
        return client.list_all_documents(_db(), collection_id, queries)
    return client.list_documents(_db(), collection_id, queries)['documents']


def _stamped(data: dict[str, Any], time_provider: TimeProvider) -> dict[str, Any]:
    now = time_provider.now_iso()
    data['createdAt'] = now
    data['updatedAt'] = now
    return data


# Instructor profiles

def get_instructor_profile(client: AppwriteClient, user_id: str) -> InstructorProfile | None:
    try:
        rows = _list(client, settings.instructor_profiles_collection_id, [Query.equal('userId', user_id)])
        return _to_instructor_profile(rows[0]) if rows else None
    except Exception:
        logger.exception('instructor_profile_fetch_failed user_id=%s', user_id)
        raise


def create_instructor_profile(
    client: AppwriteClient,
    data: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> InstructorProfile:
    try:
        profile_data = compact({remote: _blob_value(data.get(name)) for name, remote in _PROFILE_DATA.items()})
        payload = {
            'userId': data.get('user_id'),
            'displayName': data.get('display_name'),
            'email': data.get('email'),
            'phone': data.get('phone'),
            'profileData': stringify_json_field(profile_data),
            'status': data.get('status', 'available'),
            'maxClasses': data.get('max_classes', 0),
            'currentAssignments': stringify_json_field(list(data.get('current_assignments') or [])),
            'rating': data.get('rating', 0),
            'totalRatings': data.get('total_ratings', 0),
            'isActive': data.get('is_active', True),
        }
        doc = client.create_document(
            _db(),
            settings.instructor_profiles_collection_id,
            ID.unique(),
            _stamped(payload, time_provider),
        )
        return _to_instructor_profile(doc)
    except Exception:
        logger.exception('instructor_profile_create_failed user_id=%s', data.get('user_id'))
        raise


def update_instructor_profile(
    client: AppwriteClient,
    profile_id: str,
    updates: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> InstructorProfile:
    try:
        payload = copy_present(updates, _PROFILE_FIELDS, {'updatedAt': time_provider.now_iso()})
        profile_data = _blob(updates, _PROFILE_DATA)
        if profile_data is not None:
            payload['profileData'] = stringify_json_field(profile_data)
        if 'current_assignments' in updates:
            payload['currentAssignments'] = stringify_json_field(list(updates['current_assignments'] or []))
        doc = client.update_document(_db(), settings.instructor_profiles_collection_id, profile_id, payload)
        return _to_instructor_profile(doc)
    except Exception:
        logger.exception('instructor_profile_update_failed profile_id=%s', profile_id)
        raise


# Class assignments

def get_instructor_assignments(client: AppwriteClient, instructor_id: str) -> list[ClassAssignment]:
    try:
        rows = _list(client, settings.class_assignments_collection_id, [Query.equal('instructorId', instructor_id)])
        return [_to_class_assignment(row) for row in rows]
    except Exception:
        logger.exception('class_assignments_fetch_failed instructor_id=%s', instructor_id)
        raise


def get_class_assignment(client: AppwriteClient, assignment_id: str) -> ClassAssignment:
    try:
        return _to_class_assignment(client.get_document(_db(), settings.class_assignments_collection_id, assignment_id))
    except Exception:
        logger.exception('class_assignment_fetch_failed assignment_id=%s', assignment_id)
        raise


def create_class_assignment(
    client: AppwriteClient,
    data: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassAssignment:
    try:
        class_details = compact({remote: data.get(name) for name, remote in _CLASS_DETAILS.items()})
        payload = {
            'instructorId': data.get('instructor_id'),
            'instructorName': data.get('instructor_name'),
            'classId': data.get('class_id'),
            'schoolId': data.get('school_id'),
            'schoolName': data.get('school_name'),
            'classDetails': stringify_json_field(class_details),
            'startDate': data.get('start_date'),
            'endDate': data.get('end_date'),
            'isTemporary': data.get('is_temporary', False),
            'assignedBy': data.get('assigned_by'),
            'status': data.get('status', 'pending'),
            'notes': data.get('notes'),
        }
        doc = client.create_document(
            _db(),
            settings.class_assignments_collection_id,
            ID.unique(),
            _stamped(payload, time_provider),
        )
        return _to_class_assignment(doc)
    except Exception:
        logger.exception('class_assignment_create_failed instructor_id=%s', data.get('instructor_id'))
        raise


def update_class_assignment(
    client: AppwriteClient,
    assignment_id: str,
    updates: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassAssignment:
    try:
        payload = copy_present(updates, _ASSIGNMENT_FIELDS, {'updatedAt': time_provider.now_iso()})
        class_details = _blob(updates, _CLASS_DETAILS)
        if class_details is not None:
            payload['classDetails'] = stringify_json_field(class_details)
        doc = client.update_document(_db(), settings.class_assignments_collection_id, assignment_id, payload)
        return _to_class_assignment(doc)
    except Exception:
        logger.exception('class_assignment_update_failed assignment_id=%s', assignment_id)
        raise


# Class sessions

def get_instructor_sessions(
    client: AppwriteClient,
    instructor_id: str,
    date: str | None = None,
    status: str | None = None,
    limit: int | None = None,
    fetch_all: bool = False,
) -> list[ClassSession]:
    try:
        queries = [Query.equal('instructorId', instructor_id)]
        if date:
            queries.append(Query.equal('sessionDate', date))
        if status:
            queries.append(Query.equal('status', status))
        if limit and not fetch_all:
            queries.append(Query.limit(limit))
        rows = _list(client, settings.class_sessions_collection_id, queries, fetch_all=fetch_all)
        return [_to_class_session(row) for row in rows]
    except Exception:
        logger.exception('class_sessions_fetch_failed instructor_id=%s', instructor_id)
        raise


def get_class_session(client: AppwriteClient, session_id: str) -> ClassSession:
    try:
        return _to_class_session(client.get_document(_db(), settings.class_sessions_collection_id, session_id))
    except Exception:
        logger.exception('class_session_fetch_failed session_id=%s', session_id)
        raise


def create_class_session(
    client: AppwriteClient,
    data: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassSession:
    try:
        session_times = compact({remote: data.get(name) for name, remote in _SESSION_TIMES.items()})
        session_data = compact({remote: data.get(name) for name, remote in _SESSION_DATA.items()})
        payload = {
            'classId': data.get('class_id'),
            'instructorId': data.get('instructor_id'),
            'schoolId': data.get('school_id'),
            'sessionDate': data.get('session_date'),
            'timeSlot': join_time_slot(
                data.get('start_time') or DEFAULT_START_TIME,
                data.get('end_time') or DEFAULT_END_TIME,
            ),
            'sessionTimes': stringify_json_field(session_times),
            'sessionType': data.get('session_type', 'in-person'),
            'meetingLink': data.get('meeting_link'),
            'attendanceCount': data.get('attendance_count', 0),
            'totalStudents': data.get('total_students', 0),
            'lessonTopic': data.get('lesson_topic', ''),
            'sessionData': stringify_json_field(session_data),
            'status': data.get('status', 'scheduled'),
        }
        doc = client.create_document(
            _db(),
            settings.class_sessions_collection_id,
            ID.unique(),
            _stamped(payload, time_provider),
        )
        return _to_class_session(doc)
    except Exception:
        logger.exception('class_session_create_failed instructor_id=%s', data.get('instructor_id'))
        raise


def update_class_session(
    client: AppwriteClient,
    session_id: str,
    updates: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassSession:
    try:
        payload = copy_present(updates, _SESSION_FIELDS, {'updatedAt': time_provider.now_iso()})
        if 'start_time' in updates or 'end_time' in updates:
            start_time = updates.get('start_time')
            end_time = updates.get('end_time')
            if start_time is None or end_time is None:
                # Only one half supplied; keep the stored other half.
                current = get_class_session(client, session_id)
                start_time = start_time if start_time is not None else current.start_time
                end_time = end_time if end_time is not None else current.end_time
            payload['timeSlot'] = join_time_slot(start_time, end_time)
        session_times = _blob(updates, _SESSION_TIMES)
        if session_times is not None:
            payload['sessionTimes'] = stringify_json_field(session_times)
        session_data = _blob(updates, _SESSION_DATA)
        if session_data is not None:
            payload['sessionData'] = stringify_json_field(session_data)
        doc = client.update_document(_db(), settings.class_sessions_collection_id, session_id, payload)
        return _to_class_session(doc)
    except Exception:
        logger.exception('class_session_update_failed session_id=%s', session_id)
        raise


def _stored_blobs(client: AppwriteClient, session_id: str) -> tuple[dict[str, Any], dict[str, Any]]:
    doc = client.get_document(_db(), settings.class_sessions_collection_id, session_id)
    return parse_json_field(doc.get('sessionTimes'), {}), parse_json_field(doc.get('sessionData'), {})


def start_session(
    client: AppwriteClient,
    session_id: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassSession:
    """Mark a session ongoing and stamp its actual start time.

    The current status is not checked; callers decide when starting is allowed.
    """
    try:
        session_times, _ = _stored_blobs(client, session_id)
        now = time_provider.now_iso()
        session_times['actualStartTime'] = now
        payload = {
            'status': 'ongoing',
            'sessionTimes': stringify_json_field(session_times),
            'updatedAt': now,
        }
        doc = client.update_document(_db(), settings.class_sessions_collection_id, session_id, payload)
        logger.info('class_session_started session_id=%s', session_id)
        return _to_class_session(doc)
    except Exception:
        logger.exception('class_session_start_failed session_id=%s', session_id)
        raise


def end_session(
    client: AppwriteClient,
    session_id: str,
    session_notes: str | None = None,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassSession:
    """Mark a session completed, stamp its actual end time and attach notes.

    The stored start time and session data are carried over.
    """
    try:
        session_times, session_data = _stored_blobs(client, session_id)
        now = time_provider.now_iso()
        session_times['actualEndTime'] = now
        if session_notes is not None:
            session_data['sessionNotes'] = session_notes
        payload = {
            'status': 'completed',
            'sessionTimes': stringify_json_field(session_times),
            'sessionData': stringify_json_field(session_data),
            'updatedAt': now,
        }
        doc = client.update_document(_db(), settings.class_sessions_collection_id, session_id, payload)
        logger.info('class_session_completed session_id=%s', session_id)
        return _to_class_session(doc)
    except Exception:
        logger.exception('class_session_end_failed session_id=%s', session_id)
        raise


# Student ratings

def create_student_rating(
    client: AppwriteClient,
    data: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> StudentRating:
    try:
        scores = RatingScores.model_validate(_blob_value(data.get('ratings') or {}))
        feedback = {
            'comments': data.get('comments', ''),
            'strengths': list(data.get('strengths') or []),
            'areasForImprovement': list(data.get('areas_for_improvement') or []),
            'recommendations': data.get('recommendations', ''),
        }
        payload = {
            'instructorId': data.get('instructor_id'),
            'studentId': data.get('student_id'),
            'classId': data.get('class_id'),
            'sessionId': data.get('session_id'),
            'date': data.get('date'),
            'ratings': stringify_json_field(scores.to_blob()),
            'feedback': stringify_json_field(feedback),
            'isVisible': data.get('is_visible', True),
        }
        doc = client.create_document(
            _db(),
            settings.student_ratings_collection_id,
            ID.unique(),
            _stamped(payload, time_provider),
        )
        return _to_student_rating(doc)
    except Exception:
        logger.exception('student_rating_create_failed student_id=%s', data.get('student_id'))
        raise


def get_student_ratings(
    client: AppwriteClient,
    student_id: str | None = None,
    instructor_id: str | None = None,
    class_id: str | None = None,
    session_id: str | None = None,
    fetch_all: bool = False,
) -> list[StudentRating]:
    try:
        queries = []
        if student_id:
            queries.append(Query.equal('studentId', student_id))
        if instructor_id:
            queries.append(Query.equal('instructorId', instructor_id))
        if class_id:
            queries.append(Query.equal('classId', class_id))
        if session_id:
            queries.append(Query.equal('sessionId', session_id))
        rows = _list(client, settings.student_ratings_collection_id, queries, fetch_all=fetch_all)
        return [_to_student_rating(row) for row in rows]
    except Exception:
        logger.exception('student_ratings_fetch_failed student_id=%s instructor_id=%s', student_id, instructor_id)
        raise


def get_student_rating(client: AppwriteClient, rating_id: str) -> StudentRating:
    try:
        return _to_student_rating(client.get_document(_db(), settings.student_ratings_collection_id, rating_id))
    except Exception:
        logger.exception('student_rating_fetch_failed rating_id=%s', rating_id)
        raise


def update_student_rating(
    client: AppwriteClient,
    rating_id: str,
    updates: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> StudentRating:
    try:
        payload = copy_present(updates, _RATING_FIELDS, {'updatedAt': time_provider.now_iso()})
        if updates.get('ratings') is not None:
            scores = RatingScores.model_validate(_blob_value(updates['ratings']))
            payload['ratings'] = stringify_json_field(scores.to_blob())
        feedback = _blob(updates, _FEEDBACK)
        if feedback is not None:
            payload['feedback'] = stringify_json_field(feedback)
        doc = client.update_document(_db(), settings.student_ratings_collection_id, rating_id, payload)
        return _to_student_rating(doc)
    except Exception:
        logger.exception('student_rating_update_failed rating_id=%s', rating_id)
        raise


# Online sessions

def create_online_session(
    client: AppwriteClient,
    data: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> OnlineSession:
    try:
        meeting_data = compact({remote: _blob_value(data.get(name)) for name, remote in _MEETING_DATA.items()})
        recording_data = compact({remote: data.get(name) for name, remote in _RECORDING_DATA.items()})
        content = compact({remote: data.get(name) for name, remote in _SESSION_CONTENT.items()})
        payload = {
            'sessionId': data.get('session_id'),
            'meetingPlatform': data.get('meeting_platform', 'custom'),
            'meetingId': data.get('meeting_id'),
            'meetingLink': data.get('meeting_link'),
            'recordingEnabled': data.get('recording_enabled', False),
            'meetingData': stringify_json_field(meeting_data),
            'recordingData': stringify_json_field(recording_data),
            'sessionContent': stringify_json_field(content),
        }
        doc = client.create_document(
            _db(),
            settings.online_sessions_collection_id,
            ID.unique(),
            _stamped(payload, time_provider),
        )
        return _to_online_session(doc)
    except Exception:
        logger.exception('online_session_create_failed session_id=%s', data.get('session_id'))
        raise


def get_online_session(client: AppwriteClient, session_id: str) -> OnlineSession | None:
    try:
        rows = _list(client, settings.online_sessions_collection_id, [Query.equal('sessionId', session_id)])
        return _to_online_session(rows[0]) if rows else None
    except Exception:
        logger.exception('online_session_fetch_failed session_id=%s', session_id)
        raise


def update_online_session(
    client: AppwriteClient,
    online_session_id: str,
    updates: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> OnlineSession:
    try:
        payload = copy_present(updates, _ONLINE_FIELDS, {'updatedAt': time_provider.now_iso()})
        for remote, members in (
            ('meetingData', _MEETING_DATA),
            ('recordingData', _RECORDING_DATA),
            ('sessionContent', _SESSION_CONTENT),
        ):
            blob = _blob(updates, members)
            if blob is not None:
                payload[remote] = stringify_json_field(blob)
        doc = client.update_document(_db(), settings.online_sessions_collection_id, online_session_id, payload)
        return _to_online_session(doc)
    except Exception:
        logger.exception('online_session_update_failed online_session_id=%s', online_session_id)
        raise


# Schedules

def get_instructor_schedule(
    client: AppwriteClient,
    instructor_id: str,
    date: str | None = None,
) -> list[InstructorSchedule]:
    try:
        queries = [Query.equal('instructorId', instructor_id)]
        if date:
            queries.append(Query.equal('date', date))
        rows = _list(client, settings.instructor_schedules_collection_id, queries)
        return [_to_instructor_schedule(row) for row in rows]
    except Exception:
        logger.exception('instructor_schedule_fetch_failed instructor_id=%s', instructor_id)
        raise


def get_schedule_entry(client: AppwriteClient, schedule_id: str) -> InstructorSchedule:
    try:
        return _to_instructor_schedule(client.get_document(_db(), settings.instructor_schedules_collection_id, schedule_id))
    except Exception:
        logger.exception('instructor_schedule_entry_fetch_failed schedule_id=%s', schedule_id)
        raise


def create_instructor_schedule(
    client: AppwriteClient,
    data: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> InstructorSchedule:
    try:
        payload = {
            'instructorId': data.get('instructor_id'),
            'date': data.get('date'),
            'timeSlots': stringify_json_field(_blob_value(list(data.get('time_slots') or []))),
            'totalClassesScheduled': data.get('total_classes_scheduled', 0),
            'totalTeachingHours': data.get('total_teaching_hours', 0),
        }
        doc = client.create_document(
            _db(),
            settings.instructor_schedules_collection_id,
            ID.unique(),
            _stamped(payload, time_provider),
        )
        return _to_instructor_schedule(doc)
    except Exception:
        logger.exception('instructor_schedule_create_failed instructor_id=%s', data.get('instructor_id'))
        raise


def update_instructor_schedule(
    client: AppwriteClient,
    schedule_id: str,
    updates: Mapping[str, Any],
    *,
    time_provider: TimeProvider = default_time_provider,
) -> InstructorSchedule:
    try:
        payload = copy_present(updates, _SCHEDULE_FIELDS, {'updatedAt': time_provider.now_iso()})
        if 'time_slots' in updates:
            payload['timeSlots'] = stringify_json_field(_blob_value(list(updates['time_slots'] or [])))
        doc = client.update_document(_db(), settings.instructor_schedules_collection_id, schedule_id, payload)
        return _to_instructor_schedule(doc)
    except Exception:
        logger.exception('instructor_schedule_update_failed schedule_id=%s', schedule_id)
        raise


# Analytics

def get_instructor_analytics(client: AppwriteClient, instructor_id: str) -> InstructorAnalytics:
    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            sessions_future = pool.submit(get_instructor_sessions, client, instructor_id, fetch_all=True)
            ratings_future = pool.submit(get_student_ratings, client, instructor_id=instructor_id, fetch_all=True)
            sessions = sessions_future.result()
            ratings = ratings_future.result()

        average_rating = 0.0
        if ratings:
            average_rating = sum(row.ratings.overall for row in ratings) / len(ratings)
        return InstructorAnalytics(
            total_sessions=len(sessions),
            completed_sessions=sum(1 for row in sessions if row.status == 'completed'),
            average_rating=average_rating,
            total_students_rated=len(ratings),
            upcoming_sessions=sum(1 for row in sessions if row.status == 'scheduled'),
        )
    except Exception:
        logger.exception('instructor_analytics_failed instructor_id=%s', instructor_id)
        raise
