import json
import unittest
from datetime import datetime, timezone

from appwrite.exception import AppwriteException

from lingo.config import settings
from lingo.core.time_provider import TimeProvider
from lingo.models import Attendee, SessionQuality, TimeSlot
from lingo.services.instructor_service import (
    create_class_assignment,
    create_class_session,
    create_instructor_profile,
    create_instructor_schedule,
    create_online_session,
    create_student_rating,
    end_session,
    get_instructor_analytics,
    get_instructor_assignments,
    get_instructor_profile,
    get_instructor_schedule,
    get_instructor_sessions,
    get_online_session,
    get_student_ratings,
    split_time_slot,
    start_session,
    update_class_assignment,
    update_class_session,
    update_instructor_profile,
    update_online_session,
    update_student_rating,
)
from tests.fake_appwrite import FakeAppwrite


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


PROFILES = settings.instructor_profiles_collection_id
ASSIGNMENTS = settings.class_assignments_collection_id
SESSIONS = settings.class_sessions_collection_id
RATINGS = settings.student_ratings_collection_id
ONLINE = settings.online_sessions_collection_id
SCHEDULES = settings.instructor_schedules_collection_id


class InstructorServiceTests(unittest.TestCase):
    def setUp(self):
        self.fake = FakeAppwrite()
        self.client = self.fake.client()
        self.clock = FixedTimeProvider(datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone.utc))

    def tearDown(self):
        self.client.close()

    def _session(self, **overrides):
        data = {
            'class_id': 'class1',
            'instructor_id': 'inst1',
            'school_id': 'school1',
            'session_date': '2026-10-19',
            'start_time': '09:30',
            'end_time': '10:45',
            'lesson_topic': 'Past tense',
            'materials': ['slides.pdf'],
            'status': 'scheduled',
        }
        data.update(overrides)
        return create_class_session(self.client, data, time_provider=self.clock)

    # Profiles

    def test_profile_create_packs_profile_data_and_stamps_times(self):
        profile = create_instructor_profile(
            self.client,
            {
                'user_id': 'inst1',
                'display_name': 'Ana Lima',
                'email': 'ana@example.com',
                'bio': 'Grammar nerd',
                'specialization': ['Grammar'],
                'current_assignments': ['class1'],
                'max_classes': 4,
            },
            time_provider=self.clock,
        )
        stored = self.fake.document(PROFILES, profile.id)
        self.assertEqual(json.loads(stored['profileData']), {'bio': 'Grammar nerd', 'specialization': ['Grammar']})
        self.assertEqual(json.loads(stored['currentAssignments']), ['class1'])
        self.assertEqual(stored['createdAt'], '2026-10-19T09:30:00.000Z')
        self.assertEqual(stored['updatedAt'], stored['createdAt'])
        self.assertEqual(profile.experience, '1+ years')
        self.assertEqual(profile.current_assignments, ['class1'])

    def test_get_profile_returns_none_when_missing(self):
        self.assertIsNone(get_instructor_profile(self.client, 'nobody'))

    def test_profile_read_tolerates_malformed_blobs(self):
        self.fake.seed(PROFILES, {'userId': 'inst1', 'displayName': 'Ana', 'profileData': '{broken', 'currentAssignments': 'nope'})
        profile = get_instructor_profile(self.client, 'inst1')
        self.assertEqual(profile.specialization, [])
        self.assertEqual(profile.qualifications, [])
        self.assertEqual(profile.current_assignments, [])
        self.assertIsNone(profile.bio)

    def test_profile_update_rewrites_whole_blob_with_supplied_members_only(self):
        doc = self.fake.seed(
            PROFILES,
            {'userId': 'inst1', 'profileData': json.dumps({'bio': 'Old', 'location': 'Lisbon', 'specialization': ['IELTS']})},
        )
        updated = update_instructor_profile(self.client, doc['$id'], {'bio': 'New bio'}, time_provider=self.clock)
        self.assertEqual(json.loads(self.fake.document(PROFILES, doc['$id'])['profileData']), {'bio': 'New bio'})
        self.assertEqual(updated.bio, 'New bio')
        self.assertIsNone(updated.location)

    def test_profile_update_can_clear_a_blob_member(self):
        doc = self.fake.seed(PROFILES, {'userId': 'inst1', 'profileData': json.dumps({'bio': 'Old'})})
        update_instructor_profile(self.client, doc['$id'], {'bio': ''}, time_provider=self.clock)
        self.assertEqual(json.loads(self.fake.document(PROFILES, doc['$id'])['profileData']), {'bio': ''})

    def test_profile_update_without_blob_members_keeps_blob(self):
        blob = json.dumps({'bio': 'Keep me'})
        doc = self.fake.seed(PROFILES, {'userId': 'inst1', 'profileData': blob, 'status': 'available'})
        update_instructor_profile(self.client, doc['$id'], {'status': 'on-leave'}, time_provider=self.clock)
        stored = self.fake.document(PROFILES, doc['$id'])
        self.assertEqual(stored['profileData'], blob)
        self.assertEqual(stored['status'], 'on-leave')
        self.assertEqual(stored['updatedAt'], '2026-10-19T09:30:00.000Z')

    # Assignments

    def test_assignment_defaults_when_class_details_missing(self):
        self.fake.seed(ASSIGNMENTS, {'instructorId': 'inst1', 'classId': 'c1', 'status': 'active'})
        rows = get_instructor_assignments(self.client, 'inst1')
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].class_name, 'English Class')
        self.assertEqual(rows[0].subject, 'English')
        self.assertEqual(rows[0].grade, 'Intermediate')
        self.assertEqual(rows[0].schedule, 'TBD')

    def test_assignment_create_and_update_class_details(self):
        created = create_class_assignment(
            self.client,
            {
                'instructor_id': 'inst1',
                'instructor_name': 'Ana',
                'class_id': 'c1',
                'school_id': 's1',
                'class_name': 'Beginners A',
                'subject': 'English',
                'grade': 'A1',
                'schedule': 'Mon, Wed - 10:00 AM',
                'is_temporary': True,
                'status': 'active',
            },
            time_provider=self.clock,
        )
        self.assertTrue(created.is_temporary)
        updated = update_class_assignment(self.client, created.id, {'grade': 'A2'}, time_provider=self.clock)
        self.assertEqual(json.loads(self.fake.document(ASSIGNMENTS, created.id)['classDetails']), {'grade': 'A2'})
        self.assertEqual(updated.grade, 'A2')
        self.assertEqual(updated.class_name, 'English Class')

    # Sessions

    def test_time_slot_written_joined_and_read_split(self):
        session = self._session()
        self.assertEqual(self.fake.document(SESSIONS, session.id)['timeSlot'], '09:30-10:45')
        self.assertEqual((session.start_time, session.end_time), ('09:30', '10:45'))

    def test_missing_time_slot_reads_default_window(self):
        self.fake.seed(SESSIONS, {'instructorId': 'inst1', 'status': 'scheduled'})
        session = get_instructor_sessions(self.client, 'inst1')[0]
        self.assertEqual((session.start_time, session.end_time), ('10:00', '11:00'))
        self.assertEqual(session.materials, [])

    def test_split_time_slot_fills_only_the_missing_half(self):
        self.assertEqual(split_time_slot('09:30-10:45'), ('09:30', '10:45'))
        self.assertEqual(split_time_slot('10:00'), ('10:00', '11:00'))
        self.assertEqual(split_time_slot('14:00-'), ('14:00', '11:00'))
        self.assertEqual(split_time_slot('-12:30'), ('10:00', '12:30'))
        self.assertEqual(split_time_slot(None), ('10:00', '11:00'))
        self.assertEqual(split_time_slot(''), ('10:00', '11:00'))

    def test_time_slot_without_end_keeps_stored_start(self):
        self.fake.seed(SESSIONS, {'instructorId': 'inst1', 'timeSlot': '14:00'})
        session = get_instructor_sessions(self.client, 'inst1')[0]
        self.assertEqual((session.start_time, session.end_time), ('14:00', '11:00'))

    def test_update_with_one_half_of_time_slot_keeps_other_half(self):
        session = self._session()
        updated = update_class_session(self.client, session.id, {'end_time': '11:15'}, time_provider=self.clock)
        self.assertEqual(self.fake.document(SESSIONS, session.id)['timeSlot'], '09:30-11:15')
        self.assertEqual(updated.end_time, '11:15')

    def test_session_filters(self):
        self._session(session_date='2026-10-19')
        self._session(session_date='2026-10-20', status='completed')
        self.assertEqual(len(get_instructor_sessions(self.client, 'inst1', date='2026-10-20')), 1)
        self.assertEqual(len(get_instructor_sessions(self.client, 'inst1', status='scheduled')), 1)
        self.assertEqual(len(get_instructor_sessions(self.client, 'inst1', limit=1)), 1)

    def test_start_then_end_completes_with_both_actual_times(self):
        session = self._session()
        started = start_session(self.client, session.id, time_provider=self.clock)
        self.assertEqual(started.status, 'ongoing')
        self.assertEqual(started.actual_start_time, '2026-10-19T09:30:00.000Z')

        later = FixedTimeProvider(datetime(2026, 10, 19, 10, 40, 0, tzinfo=timezone.utc))
        ended = end_session(self.client, session.id, 'Covered irregular verbs', time_provider=later)
        self.assertEqual(ended.status, 'completed')
        self.assertEqual(ended.actual_start_time, '2026-10-19T09:30:00.000Z')
        self.assertEqual(ended.actual_end_time, '2026-10-19T10:40:00.000Z')
        self.assertEqual(ended.session_notes, 'Covered irregular verbs')
        self.assertEqual(ended.materials, ['slides.pdf'])

    def test_start_does_not_guard_on_status(self):
        session = self._session(status='completed')
        self.assertEqual(start_session(self.client, session.id, time_provider=self.clock).status, 'ongoing')

    def test_failures_are_logged_and_reraised(self):
        self.fake.fail_collection(SESSIONS, status=503, message='Service unavailable')
        with self.assertLogs('lingo.services.instructor_service', level='ERROR') as logs:
            with self.assertRaises(AppwriteException) as ctx:
                get_instructor_sessions(self.client, 'inst1')
        self.assertEqual(ctx.exception.code, 503)
        self.assertIn('class_sessions_fetch_failed', logs.output[0])

    # Ratings

    def _rating(self, overall, student_id='stu1'):
        return create_student_rating(
            self.client,
            {
                'instructor_id': 'inst1',
                'student_id': student_id,
                'class_id': 'c1',
                'session_id': 's1',
                'date': '2026-10-19',
                'ratings': {'participation': overall, 'comprehension': overall, 'homework': overall,
                            'speaking': overall, 'listening': overall, 'overall': overall},
                'comments': 'Good work',
                'strengths': ['Pronunciation'],
            },
            time_provider=self.clock,
        )

    def test_rating_feedback_blob_round_trip(self):
        rating = self._rating(4)
        stored = self.fake.document(RATINGS, rating.id)
        self.assertEqual(json.loads(stored['feedback'])['strengths'], ['Pronunciation'])
        fetched = get_student_ratings(self.client, student_id='stu1')
        self.assertEqual(fetched[0].ratings.overall, 4)
        self.assertEqual(fetched[0].comments, 'Good work')
        self.assertEqual(fetched[0].areas_for_improvement, [])

    def test_rating_update_feedback_and_visibility(self):
        rating = self._rating(3)
        updated = update_student_rating(
            self.client,
            rating.id,
            {'recommendations': 'Read daily', 'is_visible': False},
            time_provider=self.clock,
        )
        self.assertFalse(updated.is_visible)
        self.assertEqual(json.loads(self.fake.document(RATINGS, rating.id)['feedback']), {'recommendations': 'Read daily'})
        self.assertEqual(updated.ratings.overall, 3)

    # Online sessions

    def test_online_session_blobs(self):
        created = create_online_session(
            self.client,
            {
                'session_id': 'sess1',
                'meeting_platform': 'zoom',
                'meeting_id': 'm-1',
                'meeting_link': 'https://zoom.example/m-1',
                'meeting_password': 'pw',
                'attendees': [Attendee(student_id='stu1', duration=30)],
                'session_quality': SessionQuality(audio_quality='fair'),
                'shared_files': ['notes.pdf'],
            },
            time_provider=self.clock,
        )
        meeting_data = json.loads(self.fake.document(ONLINE, created.id)['meetingData'])
        self.assertEqual(meeting_data['attendees'][0]['studentId'], 'stu1')
        self.assertEqual(meeting_data['quality']['audioQuality'], 'fair')

        fetched = get_online_session(self.client, 'sess1')
        self.assertEqual(fetched.meeting_password, 'pw')
        self.assertEqual(fetched.attendees[0].duration, 30)
        self.assertEqual(fetched.shared_files, ['notes.pdf'])
        self.assertIsNone(get_online_session(self.client, 'other'))

        updated = update_online_session(self.client, created.id, {'recording_url': 'https://rec/1'}, time_provider=self.clock)
        self.assertEqual(updated.recording_url, 'https://rec/1')
        self.assertEqual(updated.meeting_password, 'pw')

    # Schedules

    def test_schedule_time_slots(self):
        create_instructor_schedule(
            self.client,
            {
                'instructor_id': 'inst1',
                'date': '2026-10-19',
                'time_slots': [TimeSlot(start_time='09:00', end_time='10:00', status='booked', class_id='c1')],
                'total_classes_scheduled': 1,
            },
            time_provider=self.clock,
        )
        self.fake.seed(SCHEDULES, {'instructorId': 'inst1', 'date': '2026-10-20', 'timeSlots': 'not json'})
        rows = get_instructor_schedule(self.client, 'inst1', '2026-10-19')
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].time_slots[0].status, 'booked')
        self.assertEqual(rows[0].time_slots[0].class_id, 'c1')
        other = get_instructor_schedule(self.client, 'inst1', '2026-10-20')
        self.assertEqual(other[0].time_slots, [])

    # Documents whose blobs hold members of the wrong shape

    def test_profile_members_of_wrong_shape_read_as_defaults(self):
        self.fake.seed(
            PROFILES,
            {
                'userId': 'inst1',
                'profileData': '{"specialization":"Grammar","qualifications":[1,"CELTA"],"bio":42,"experience":5}',
                'currentAssignments': '[7,"a1"]',
            },
        )
        profile = get_instructor_profile(self.client, 'inst1')
        self.assertEqual(profile.specialization, [])
        self.assertEqual(profile.qualifications, ['CELTA'])
        self.assertIsNone(profile.bio)
        self.assertEqual(profile.experience, '1+ years')
        self.assertEqual(profile.current_assignments, ['a1'])

    def test_assignment_members_of_wrong_shape_read_as_defaults(self):
        self.fake.seed(ASSIGNMENTS, {'instructorId': 'inst1', 'classDetails': '{"className":["A"],"grade":2,"subject":"ESL"}'})
        assignment = get_instructor_assignments(self.client, 'inst1')[0]
        self.assertEqual(assignment.class_name, 'English Class')
        self.assertEqual(assignment.grade, 'Intermediate')
        self.assertEqual(assignment.subject, 'ESL')

    def test_session_members_of_wrong_shape_read_as_defaults(self):
        self.fake.seed(
            SESSIONS,
            {
                'instructorId': 'inst1',
                'timeSlot': '09:00-10:00',
                'sessionTimes': '{"actualStartTime":1700000000}',
                'sessionData': '{"materials":"slides.pdf","homework":{"page":3},"sessionNotes":"Fine"}',
            },
        )
        session = get_instructor_sessions(self.client, 'inst1')[0]
        self.assertIsNone(session.actual_start_time)
        self.assertEqual(session.materials, [])
        self.assertIsNone(session.homework)
        self.assertEqual(session.session_notes, 'Fine')

    def test_rating_members_of_wrong_shape_read_as_defaults(self):
        self.fake.seed(
            RATINGS,
            {
                'instructorId': 'inst1',
                'ratings': '{"participation":null,"overall":4,"speaking":"5","listening":"loud"}',
                'feedback': '{"strengths":"Reading","comments":null,"areasForImprovement":["Listening"]}',
            },
        )
        rating = get_student_ratings(self.client, instructor_id='inst1')[0]
        self.assertEqual(rating.ratings.participation, 0)
        self.assertEqual(rating.ratings.overall, 4)
        self.assertEqual(rating.ratings.speaking, 5)
        self.assertEqual(rating.ratings.listening, 0)
        self.assertEqual(rating.strengths, [])
        self.assertEqual(rating.comments, '')
        self.assertEqual(rating.areas_for_improvement, ['Listening'])

    def test_online_session_members_of_wrong_shape_read_as_defaults(self):
        meeting_data = {
            'attendees': ['stu1', {'studentId': 'stu2', 'duration': 'long'}, {'studentId': 'stu3', 'duration': 12}],
            'quality': 'good',
            'issues': 'none',
            'password': 1234,
        }
        self.fake.seed(
            ONLINE,
            {'sessionId': 'sess1', 'meetingData': json.dumps(meeting_data), 'recordingData': '{"duration":"n/a","url":5}'},
        )
        online = get_online_session(self.client, 'sess1')
        self.assertEqual([attendee.student_id for attendee in online.attendees], ['stu3'])
        self.assertIsNone(online.session_quality)
        self.assertEqual(online.technical_issues, [])
        self.assertIsNone(online.meeting_password)
        self.assertIsNone(online.recording_duration)
        self.assertIsNone(online.recording_url)

    def test_schedule_slots_of_wrong_shape_are_skipped(self):
        self.fake.seed(SCHEDULES, {'instructorId': 'inst1', 'date': '2026-10-19', 'timeSlots': '["10:00-11:00"]'})
        self.fake.seed(
            SCHEDULES,
            {
                'instructorId': 'inst1',
                'date': '2026-10-20',
                'timeSlots': '["10:00-11:00",{"startTime":"09:00","endTime":"10:00","status":"booked"}]',
            },
        )
        self.assertEqual(get_instructor_schedule(self.client, 'inst1', '2026-10-19')[0].time_slots, [])
        slots = get_instructor_schedule(self.client, 'inst1', '2026-10-20')[0].time_slots
        self.assertEqual([(slot.start_time, slot.status) for slot in slots], [('09:00', 'booked')])

    # Analytics

    def test_analytics_with_no_ratings(self):
        self._session(status='scheduled')
        analytics = get_instructor_analytics(self.client, 'inst1')
        self.assertEqual(analytics.average_rating, 0)
        self.assertEqual(analytics.total_students_rated, 0)
        self.assertEqual(analytics.upcoming_sessions, 1)

    def test_analytics_counts_and_mean(self):
        self._session(status='scheduled')
        self._session(status='completed')
        self._session(status='completed')
        self._rating(4, 'stu1')
        self._rating(5, 'stu2')
        analytics = get_instructor_analytics(self.client, 'inst1')
        self.assertEqual(analytics.total_sessions, 3)
        self.assertEqual(analytics.completed_sessions, 2)
        self.assertEqual(analytics.upcoming_sessions, 1)
        self.assertEqual(analytics.total_students_rated, 2)
        self.assertAlmostEqual(analytics.average_rating, 4.5)

    def test_analytics_counts_beyond_one_page(self):
        for idx in range(30):
            self.fake.seed(SESSIONS, {'instructorId': 'inst1', 'status': 'completed', 'sessionDate': f'2026-09-{idx % 28 + 1:02d}'})
        analytics = get_instructor_analytics(self.client, 'inst1')
        self.assertEqual(analytics.total_sessions, 30)
        self.assertEqual(analytics.completed_sessions, 30)


if __name__ == '__main__':
    unittest.main()
