from __future__ import annotations

from appwrite.exception import AppwriteException
from fastapi import APIRouter, Depends, HTTPException, Query

from lingo.backend.client import AppwriteClient
from lingo.deps import get_backend, http_error, require_current_user
from lingo.models import User
from lingo.schemas import (
    ClassSessionCreateRequest,
    ClassSessionEndRequest,
    ClassSessionStartRequest,
    ClassSessionUpdateRequest,
    OnlineSessionCreateRequest,
    OnlineSessionUpdateRequest,
    present_fields,
)
from lingo.services.instructor_service import (
    create_class_session,
    create_online_session,
    end_session,
    get_class_session,
    get_instructor_sessions,
    get_online_session,
    update_class_session,
    update_online_session,
)
from lingo.services.session_lifecycle_service import begin_online_session, begin_session


router = APIRouter(prefix='/class-sessions', tags=['Class Sessions'])


def _owned_session(client: AppwriteClient, session_id: str, user: User):
    session = get_class_session(client, session_id)
    if session.instructor_id and session.instructor_id != user.id:
        raise HTTPException(status_code=403, detail='Forbidden')
    return session


@router.get('')
def list_sessions(
    day: str | None = Query(default=None, alias='date'),
    status: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        return get_instructor_sessions(client, user.id, date=day, status=status, limit=limit)
    except AppwriteException as exc:
        raise http_error(exc)


@router.post('')
def create(
    payload: ClassSessionCreateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        return create_class_session(client, {**payload.model_dump(), 'instructor_id': user.id, 'status': 'scheduled'})
    except AppwriteException as exc:
        raise http_error(exc)


@router.get('/{session_id}')
def get_one(session_id: str, user: User = Depends(require_current_user), client: AppwriteClient = Depends(get_backend)):
    try:
        return _owned_session(client, session_id, user)
    except AppwriteException as exc:
        raise http_error(exc)


@router.patch('/{session_id}')
def edit(
    session_id: str,
    payload: ClassSessionUpdateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        _owned_session(client, session_id, user)
        return update_class_session(client, session_id, present_fields(payload))
    except AppwriteException as exc:
        raise http_error(exc)


@router.post('/{session_id}/start')
def start(
    session_id: str,
    payload: ClassSessionStartRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        session = _owned_session(client, session_id, user)
        if session.status != 'scheduled':
            raise HTTPException(status_code=409, detail=f'Session is {session.status}')
        if payload.online:
            started = begin_online_session(client, session_id, payload.lesson_topic)
            return {'session': started.session, 'online_session': started.online_session}
        return {'session': begin_session(client, session_id, payload.lesson_topic, payload.attendance_count)}
    except AppwriteException as exc:
        raise http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post('/{session_id}/end')
def end(
    session_id: str,
    payload: ClassSessionEndRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        session = _owned_session(client, session_id, user)
        if session.status != 'ongoing':
            raise HTTPException(status_code=409, detail=f'Session is {session.status}')
        return {'session': end_session(client, session_id, payload.session_notes)}
    except AppwriteException as exc:
        raise http_error(exc)


@router.get('/{session_id}/online')
def read_online(session_id: str, user: User = Depends(require_current_user), client: AppwriteClient = Depends(get_backend)):
    try:
        _owned_session(client, session_id, user)
        online = get_online_session(client, session_id)
    except AppwriteException as exc:
        raise http_error(exc)
    if online is None:
        raise HTTPException(status_code=404, detail='Online session not found')
    return online


@router.post('/{session_id}/online')
def create_online(
    session_id: str,
    payload: OnlineSessionCreateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        _owned_session(client, session_id, user)
        data = {name: getattr(payload, name) for name in type(payload).model_fields}
        return create_online_session(client, {**data, 'session_id': session_id})
    except AppwriteException as exc:
        raise http_error(exc)


@router.patch('/{session_id}/online')
def edit_online(
    session_id: str,
    payload: OnlineSessionUpdateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        _owned_session(client, session_id, user)
        online = get_online_session(client, session_id)
        if online is None:
            raise HTTPException(status_code=404, detail='Online session not found')
        return update_online_session(client, online.id, present_fields(payload))
    except AppwriteException as exc:
        raise http_error(exc)
