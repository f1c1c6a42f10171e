"""The start/end flows an instructor runs from the class session view."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from lingo.backend.client import AppwriteClient
from lingo.config import settings
from lingo.core.time_provider import TimeProvider, default_time_provider
from lingo.models import ClassSession, OnlineSession, SessionQuality
from lingo.services.instructor_service import create_online_session, start_session, update_class_session


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnlineStart:
    session: ClassSession
    online_session: OnlineSession


def _require_topic(lesson_topic: str | None) -> str:
    topic = (lesson_topic or '').strip()
    if not topic:
        raise ValueError('Please enter a lesson topic before starting the session')
    return topic


def begin_session(
    client: AppwriteClient,
    session_id: str,
    lesson_topic: str,
    attendance_count: int = 0,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> ClassSession:
    topic = _require_topic(lesson_topic)
    update_class_session(
        client,
        session_id,
        {'lesson_topic': topic, 'attendance_count': attendance_count},
        time_provider=time_provider,
    )
    return start_session(client, session_id, time_provider=time_provider)


def begin_online_session(
    client: AppwriteClient,
    session_id: str,
    lesson_topic: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> OnlineStart:
    topic = _require_topic(lesson_topic)
    meeting_id = f'meeting-{int(time_provider.now().timestamp() * 1000)}'
    meeting_link = f"{settings.meeting_base_url.rstrip('/')}/{meeting_id}"
    online = create_online_session(
        client,
        {
            'session_id': session_id,
            'meeting_platform': 'custom',
            'meeting_id': meeting_id,
            'meeting_link': meeting_link,
            'recording_enabled': True,
            'attendees': [],
            'shared_files': [],
            'session_quality': SessionQuality(),
        },
        time_provider=time_provider,
    )
    update_class_session(
        client,
        session_id,
        {'session_type': 'online', 'meeting_link': meeting_link, 'lesson_topic': topic},
        time_provider=time_provider,
    )
    started = start_session(client, session_id, time_provider=time_provider)
    logger.info('online_session_started session_id=%s meeting_id=%s', session_id, meeting_id)
    return OnlineStart(session=started, online_session=online)
