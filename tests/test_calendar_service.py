import unittest
from datetime import date, datetime, timezone

from lingo.config import settings
from lingo.core.time_provider import TimeProvider
from lingo.models import ClassSession
from lingo.services.calendar_service import (
    build_calendar_days,
    format_time,
    load_calendar,
    sessions_for_date,
    shift_month,
)
from tests.fake_appwrite import FakeAppwrite


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


class CalendarServiceTests(unittest.TestCase):
    def test_grid_starts_on_sunday_before_the_first(self):
        days = build_calendar_days(date(2026, 10, 1), [], date(2026, 10, 19))
        self.assertEqual(len(days), 42)
        self.assertEqual(days[0].date, '2026-09-27')
        self.assertEqual(days[0].day_name, 'Sun')
        self.assertFalse(days[0].is_current_month)
        self.assertEqual(days[4].date, '2026-10-01')
        self.assertEqual(days[4].day_name, 'Thu')
        self.assertTrue(days[4].is_current_month)
        self.assertEqual(days[22].date, '2026-10-19')
        self.assertTrue(days[22].is_today)
        self.assertEqual(sum(1 for day in days if day.is_today), 1)
        self.assertEqual(days[-1].date, '2026-11-07')

    def test_grid_for_month_starting_on_sunday(self):
        days = build_calendar_days(date(2026, 11, 15), [], date(2026, 10, 19))
        self.assertEqual(days[0].date, '2026-11-01')
        self.assertFalse(any(day.is_today for day in days))

    def test_sessions_grouped_by_day(self):
        sessions = [
            ClassSession(id='a', session_date='2026-10-05'),
            ClassSession(id='b', session_date='2026-10-05'),
            ClassSession(id='c', session_date='2026-10-06'),
        ]
        days = build_calendar_days(date(2026, 10, 1), sessions, date(2026, 10, 19))
        by_date = {day.date: [row.id for row in day.sessions] for day in days}
        self.assertEqual(by_date['2026-10-05'], ['a', 'b'])
        self.assertEqual(by_date['2026-10-06'], ['c'])
        self.assertEqual(sessions_for_date(sessions, date(2026, 10, 7)), [])
        self.assertEqual([row.id for row in sessions_for_date(sessions, '2026-10-06')], ['c'])

    def test_shift_month(self):
        self.assertEqual(shift_month(date(2026, 1, 15), 'prev'), date(2025, 12, 1))
        self.assertEqual(shift_month(date(2026, 12, 31), 'next'), date(2027, 1, 1))
        self.assertEqual(shift_month(date(2026, 1, 31), 'next'), date(2026, 2, 1))
        with self.assertRaises(ValueError):
            shift_month(date(2026, 1, 1), 'sideways')

    def test_format_time(self):
        self.assertEqual(format_time('14:05'), '2:05 PM')
        self.assertEqual(format_time('00:30'), '12:30 AM')
        self.assertEqual(format_time('12:00'), '12:00 PM')
        self.assertEqual(format_time('09:15'), '9:15 AM')
        self.assertEqual(format_time('soon'), 'soon')

    def test_load_calendar_degrades_failed_parts_to_empty(self):
        fake = FakeAppwrite()
        fake.seed(settings.class_sessions_collection_id, {'instructorId': 'inst1', 'sessionDate': '2026-10-19', 'timeSlot': '14:00-15:00'})
        fake.seed(settings.class_assignments_collection_id, {'instructorId': 'inst1', 'classId': 'c1'})
        fake.fail_collection(settings.instructor_schedules_collection_id)
        client = fake.client()
        clock = FixedTimeProvider(datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc))
        try:
            with self.assertLogs('lingo.services.calendar_service', level='ERROR') as logs:
                view = load_calendar(client, 'inst1', date(2026, 10, 10), time_provider=clock)
        finally:
            client.close()
        self.assertIn('part=schedule', logs.output[0])
        self.assertEqual(view.month, '2026-10-01')
        self.assertEqual(view.schedule, [])
        self.assertEqual(len(view.sessions), 1)
        self.assertEqual(len(view.assignments), 1)
        today = next(day for day in view.days if day.is_today)
        self.assertEqual(today.date, '2026-10-19')
        self.assertEqual(today.sessions[0].start_time, '14:00')


if __name__ == '__main__':
    unittest.main()
