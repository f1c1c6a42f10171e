from __future__ import annotations

from datetime import date

from appwrite.exception import AppwriteException
from fastapi import APIRouter, Depends, HTTPException, Query

from lingo.backend.client import AppwriteClient
from lingo.core.time_provider import default_time_provider
from lingo.deps import get_backend, http_error, require_current_user
from lingo.models import User
from lingo.schemas import InstructorScheduleCreateRequest, InstructorScheduleUpdateRequest, present_fields
from lingo.services.calendar_service import load_calendar
from lingo.services.instructor_service import (
    create_instructor_schedule,
    get_instructor_schedule,
    get_schedule_entry,
    update_instructor_schedule,
)


router = APIRouter(prefix='/instructor', tags=['Instructor Calendar'])


def _owned_schedule(client: AppwriteClient, schedule_id: str, user: User):
    entry = get_schedule_entry(client, schedule_id)
    if entry.instructor_id and entry.instructor_id != user.id:
        raise HTTPException(status_code=403, detail='Forbidden')
    return entry


@router.get('/calendar')
def calendar(
    month: date | None = Query(default=None),
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    return load_calendar(client, user.id, month or default_time_provider.today())


@router.get('/schedule')
def schedule(
    day: str | None = Query(default=None, alias='date'),
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        return get_instructor_schedule(client, user.id, day)
    except AppwriteException as exc:
        raise http_error(exc)


@router.post('/schedule')
def create_schedule(
    payload: InstructorScheduleCreateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    data = {**present_fields(payload), 'instructor_id': user.id, 'time_slots': payload.time_slots}
    try:
        return create_instructor_schedule(client, data)
    except AppwriteException as exc:
        raise http_error(exc)


@router.patch('/schedule/{schedule_id}')
def edit_schedule(
    schedule_id: str,
    payload: InstructorScheduleUpdateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        _owned_schedule(client, schedule_id, user)
        return update_instructor_schedule(client, schedule_id, present_fields(payload))
    except AppwriteException as exc:
        raise http_error(exc)
