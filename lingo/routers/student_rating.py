from __future__ import annotations

from appwrite.exception import AppwriteException
from fastapi import APIRouter, Depends, HTTPException, Query

from lingo.backend.client import AppwriteClient
from lingo.deps import get_backend, http_error, require_current_user
from lingo.models import User
from lingo.schemas import StudentRatingCreateRequest, StudentRatingUpdateRequest, present_fields
from lingo.services.instructor_service import get_student_rating, get_student_ratings, update_student_rating
from lingo.services.rating_service import submit_rating, with_overall


router = APIRouter(prefix='/student-ratings', tags=['Student Ratings'])


def _owned_rating(client: AppwriteClient, rating_id: str, user: User):
    rating = get_student_rating(client, rating_id)
    if rating.instructor_id and rating.instructor_id != user.id:
        raise HTTPException(status_code=403, detail='Forbidden')
    return rating


@router.post('')
def create(
    payload: StudentRatingCreateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        return submit_rating(
            client,
            instructor_id=user.id,
            student_id=payload.student_id,
            class_id=payload.class_id,
            session_id=payload.session_id,
            scores=payload.ratings,
            comments=payload.comments,
            strengths=payload.strengths,
            areas_for_improvement=payload.areas_for_improvement,
            recommendations=payload.recommendations,
            is_visible=payload.is_visible,
        )
    except AppwriteException as exc:
        raise http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get('')
def list_ratings(
    student_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    session_id: str | None = Query(default=None),
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    try:
        return get_student_ratings(
            client,
            student_id=student_id,
            instructor_id=user.id,
            class_id=class_id,
            session_id=session_id,
        )
    except AppwriteException as exc:
        raise http_error(exc)


@router.patch('/{rating_id}')
def edit(
    rating_id: str,
    payload: StudentRatingUpdateRequest,
    user: User = Depends(require_current_user),
    client: AppwriteClient = Depends(get_backend),
):
    updates = present_fields(payload)
    if updates.get('ratings') is not None:
        updates['ratings'] = with_overall(updates['ratings'])
    try:
        _owned_rating(client, rating_id, user)
        return update_student_rating(client, rating_id, updates)
    except AppwriteException as exc:
        raise http_error(exc)
