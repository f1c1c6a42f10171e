from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from lingo.backend.client import AppwriteClient
from lingo.core.time_provider import TimeProvider, default_time_provider
from lingo.models import RATING_CATEGORIES, RatingScores, StudentRating
from lingo.services.instructor_service import create_student_rating


logger = logging.getLogger(__name__)


def compute_overall(scores: RatingScores | Mapping[str, Any]) -> int:
    """Rounded mean of the five category scores (half rounds up)."""
    if isinstance(scores, RatingScores):
        values = [getattr(scores, name) for name in RATING_CATEGORIES]
    else:
        values = [int(scores.get(name) or 0) for name in RATING_CATEGORIES]
    return int(math.floor(sum(values) / len(RATING_CATEGORIES) + 0.5))


def with_overall(scores: RatingScores | Mapping[str, Any]) -> RatingScores:
    base = scores if isinstance(scores, RatingScores) else RatingScores.model_validate(dict(scores))
    return base.model_copy(update={'overall': compute_overall(base)})


def split_list(value: str | Iterable[str] | None) -> list[str]:
    if value is None:
        return []
    items = value.split(',') if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def build_rating(
    *,
    instructor_id: str,
    student_id: str,
    class_id: str,
    session_id: str,
    scores: RatingScores | Mapping[str, Any],
    comments: str,
    strengths: str | Iterable[str] | None = None,
    areas_for_improvement: str | Iterable[str] | None = None,
    recommendations: str = '',
    is_visible: bool = True,
    time_provider: TimeProvider = default_time_provider,
) -> dict[str, Any]:
    if not instructor_id:
        raise ValueError('You must be logged in to submit ratings')
    ratings = with_overall(scores)
    if ratings.overall == 0:
        raise ValueError('Please provide ratings for all categories')
    if not (comments or '').strip():
        raise ValueError('Please provide comments about the student')
    return {
        'instructor_id': instructor_id,
        'student_id': student_id,
        'class_id': class_id,
        'session_id': session_id,
        'date': time_provider.today_iso(),
        'ratings': ratings,
        'comments': comments.strip(),
        'strengths': split_list(strengths),
        'areas_for_improvement': split_list(areas_for_improvement),
        'recommendations': (recommendations or '').strip(),
        'is_visible': is_visible,
    }


def submit_rating(
    client: AppwriteClient,
    *,
    time_provider: TimeProvider = default_time_provider,
    **form: Any,
) -> StudentRating:
    data = build_rating(time_provider=time_provider, **form)
    rating = create_student_rating(client, data, time_provider=time_provider)
    logger.info(
        'student_rating_submitted rating_id=%s student_id=%s overall=%s',
        rating.id,
        rating.student_id,
        rating.ratings.overall,
    )
    return rating
