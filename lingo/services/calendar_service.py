from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any, Callable

from pydantic import BaseModel, Field

from lingo.backend.client import AppwriteClient
from lingo.config import settings
from lingo.core.time_provider import TimeProvider, default_time_provider
from lingo.models import ClassAssignment, ClassSession, InstructorSchedule
from lingo.services.instructor_service import get_instructor_assignments, get_instructor_schedule, get_instructor_sessions


logger = logging.getLogger(__name__)

DAY_NAMES = ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')
GRID_DAYS = 42


class CalendarDay(BaseModel):
    date: str
    day_name: str
    day_number: int
    is_today: bool
    is_current_month: bool
    sessions: list[ClassSession] = Field(default_factory=list)


class CalendarView(BaseModel):
    month: str
    days: list[CalendarDay]
    sessions: list[ClassSession]
    schedule: list[InstructorSchedule]
    assignments: list[ClassAssignment]


def _sunday_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def shift_month(month: date, direction: str) -> date:
    first = month.replace(day=1)
    if direction == 'prev':
        return (first - timedelta(days=1)).replace(day=1)
    if direction == 'next':
        return (first + timedelta(days=32)).replace(day=1)
    raise ValueError(f'Unknown direction: {direction}')


def sessions_for_date(sessions: list[ClassSession], day: date | str) -> list[ClassSession]:
    key = day.isoformat() if isinstance(day, date) else day
    return [row for row in sessions if row.session_date == key]


def format_time(value: str) -> str:
    try:
        hours, minutes = value.split(':', 1)
        hour = int(hours)
    except (AttributeError, ValueError):
        return value
    suffix = 'PM' if hour >= 12 else 'AM'
    display_hour = hour % 12 or 12
    return f'{display_hour}:{minutes} {suffix}'


def build_calendar_days(month: date, sessions: list[ClassSession], today: date) -> list[CalendarDay]:
    first = month.replace(day=1)
    grid_start = first - timedelta(days=_sunday_index(first))
    days = []
    for offset in range(GRID_DAYS):
        current = grid_start + timedelta(days=offset)
        days.append(
            CalendarDay(
                date=current.isoformat(),
                day_name=DAY_NAMES[_sunday_index(current)],
                day_number=current.day,
                is_today=current == today,
                is_current_month=current.month == first.month,
                sessions=sessions_for_date(sessions, current),
            )
        )
    return days


def _or_empty(label: str, instructor_id: str, fetch: Callable[[], list[Any]]) -> list[Any]:
    try:
        return fetch()
    except Exception:
        logger.exception('calendar_fetch_failed part=%s instructor_id=%s', label, instructor_id)
        return []


def load_calendar(
    client: AppwriteClient,
    instructor_id: str,
    month: date,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> CalendarView:
    """Fetch everything the calendar needs; any part that fails comes back empty."""
    fetches = {
        'sessions': lambda: get_instructor_sessions(client, instructor_id),
        'schedule': lambda: get_instructor_schedule(client, instructor_id),
        'assignments': lambda: get_instructor_assignments(client, instructor_id),
    }
    with ThreadPoolExecutor(max_workers=max(1, settings.calendar_fetch_workers)) as pool:
        futures = {
            label: pool.submit(_or_empty, label, instructor_id, fetch)
            for label, fetch in fetches.items()
        }
        results = {label: future.result() for label, future in futures.items()}

    sessions = results['sessions']
    return CalendarView(
        month=month.replace(day=1).isoformat(),
        days=build_calendar_days(month, sessions, time_provider.today()),
        sessions=sessions,
        schedule=results['schedule'],
        assignments=results['assignments'],
    )
