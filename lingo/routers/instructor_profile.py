from appwrite.exception import AppwriteException
from fastapi import APIRouter, Depends, HTTPException

from lingo.backend.client import AppwriteClient
from lingo.deps import get_backend, http_error, require_current_user
from lingo.models import User
from lingo.schemas import (
    ClassAssignmentCreateRequest,
    ClassAssignmentUpdateRequest,
    InstructorProfileCreateRequest,
    InstructorProfileUpdateRequest,
    present_fields,
)
from lingo.services.instructor_service import (
    create_class_assignment,
    create_instructor_profile,
    get_instructor_analytics,
    get_instructor_assignments,
    get_class_assignment,
    get_instructor_profile,
    update_class_assignment,
    update_instructor_profile,
)


router = APIRouter(prefix='/instructor', tags=['Instructor'])


def _owned_assignment(client: AppwriteClient, assignment_id: str, user: User):
    # The assigned instructor and whoever made the assignment may both edit it.
    assignment = get_class_assignment(client, assignment_id)
    owners = {assignment.instructor_id, assignment.assigned_by} - {''}
    if owners and user.id not in owners:
        raise HTTPException(status_code=403, detail='Forbidden')
    return assignment


@router.get('/profile')
def read_profile(user: User = Depends(require_current_user), client: AppwriteClient = Depends(get_backend)):
    try:
        profile = get_instructor_profile(client, user.id)
    except AppwriteException as exc:
        raise http_error(exc)
    if profile is None:
        raise HTTPException(status_code=404, detail='Instructor profile not found')
    return profile


@router.post('/profile')
def create_profile(
    payload: InstructorProfileCreateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        if get_instructor_profile(client, user.id) is not None:
            raise HTTPException(status_code=409, detail='Instructor profile already exists')
        return create_instructor_profile(client, {**payload.model_dump(), 'user_id': user.id})
    except AppwriteException as exc:
        raise http_error(exc)


@router.patch('/profile')
def edit_profile(
    payload: InstructorProfileUpdateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    updates = present_fields(payload)
    if 'display_name' in updates and not (updates['display_name'] or '').strip():
        raise HTTPException(status_code=400, detail='Display name is required')
    try:
        profile = get_instructor_profile(client, user.id)
        if profile is None:
            raise HTTPException(status_code=404, detail='Instructor profile not found')
        return update_instructor_profile(client, profile.id, updates)
    except AppwriteException as exc:
        raise http_error(exc)


@router.get('/assignments')
def list_assignments(user: User = Depends(require_current_user), client: AppwriteClient = Depends(get_backend)):
    try:
        return get_instructor_assignments(client, user.id)
    except AppwriteException as exc:
        raise http_error(exc)


@router.post('/assignments')
def create_assignment(
    payload: ClassAssignmentCreateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        return create_class_assignment(client, {**payload.model_dump(), 'assigned_by': user.id})
    except AppwriteException as exc:
        raise http_error(exc)


@router.patch('/assignments/{assignment_id}')
def edit_assignment(
    assignment_id: str,
    payload: ClassAssignmentUpdateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        _owned_assignment(client, assignment_id, user)
        return update_class_assignment(client, assignment_id, present_fields(payload))
    except AppwriteException as exc:
        raise http_error(exc)


@router.get('/analytics')
def analytics(user: User = Depends(require_current_user), client: AppwriteClient = Depends(get_backend)):
    try:
        return get_instructor_analytics(client, user.id)
    except AppwriteException as exc:
        raise http_error(exc)
