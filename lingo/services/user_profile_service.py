from __future__ import annotations

import logging
from typing import Any, Mapping

from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.permission import Permission
from appwrite.query import Query
from appwrite.role import Role

from lingo.backend.client import AppwriteClient
from lingo.config import settings
from lingo.core.time_provider import TimeProvider, default_time_provider
from lingo.models import UserProfile


logger = logging.getLogger(__name__)


def _to_user_profile(doc: Mapping[str, Any]) -> UserProfile:
    values = {
        'id': doc.get('$id'),
        'user_id': doc.get('userId'),
        'display_name': doc.get('displayName'),
        'first_name': doc.get('firstName'),
        'last_name': doc.get('lastName'),
        'english_level': doc.get('englishLevel'),
        'role': doc.get('role'),
        'is_admin': doc.get('isAdmin'),
        'is_instructor': doc.get('isInstructor'),
        'status': doc.get('status'),
        'last_active': doc.get('lastActive'),
    }
    return UserProfile(**{key: value for key, value in values.items() if value is not None})


def split_display_name(name: str) -> tuple[str, str]:
    parts = (name or '').split()
    if not parts:
        return '', ''
    return parts[0], ' '.join(parts[1:])


def get_user_profile(client: AppwriteClient, user_id: str) -> UserProfile | None:
    # Profiles created by signup use the account id as document id; older ones
    # carry a generated id and are found by their userId attribute.
    try:
        return _to_user_profile(client.get_document(settings.appwrite_database_id, settings.users_collection_id, user_id))
    except AppwriteException as exc:
        if exc.code != 404:
            logger.exception('user_profile_fetch_failed user_id=%s', user_id)
            raise
    try:
        page = client.list_documents(
            settings.appwrite_database_id,
            settings.users_collection_id,
            [Query.equal('userId', user_id), Query.limit(1)],
        )
    except Exception:
        logger.exception('user_profile_fetch_failed user_id=%s', user_id)
        raise
    rows = page['documents']
    return _to_user_profile(rows[0]) if rows else None


def create_user_profile(
    client: AppwriteClient,
    user_id: str,
    display_name: str,
    *,
    role: str = 'student',
    is_admin: bool = False,
    english_level: str = 'beginner',
    time_provider: TimeProvider = default_time_provider,
) -> UserProfile:
    first_name, last_name = split_display_name(display_name)
    data = {
        'userId': user_id,
        'displayName': display_name or '',
        'firstName': first_name,
        'lastName': last_name,
        'languagePreference': 'English',
        'englishLevel': english_level,
        'experienceLevel': 'beginner',
        'isAdmin': is_admin,
        'role': role,
        'isInstructor': role == 'instructor',
        'status': 'active',
        'lastActive': time_provider.now_iso(),
    }
    permissions = [
        Permission.read(Role.user(user_id)),
        Permission.update(Role.user(user_id)),
        Permission.delete(Role.user(user_id)),
        Permission.read(Role.users()),
    ]
    try:
        doc = client.create_document(
            settings.appwrite_database_id,
            settings.users_collection_id,
            ID.custom(user_id),
            data,
            permissions=permissions,
        )
    except Exception:
        logger.exception('user_profile_create_failed user_id=%s', user_id)
        raise
    logger.info('user_profile_created user_id=%s role=%s', user_id, role)
    return _to_user_profile(doc)


def ensure_user_profile(
    client: AppwriteClient,
    user_id: str,
    display_name: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> UserProfile:
    existing = get_user_profile(client, user_id)
    if existing:
        return existing
    logger.info('user_profile_missing_creating user_id=%s', user_id)
    return create_user_profile(client, user_id, display_name, time_provider=time_provider)


def update_last_active(
    client: AppwriteClient,
    profile_id: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> None:
    client.update_document(
        settings.appwrite_database_id,
        settings.users_collection_id,
        profile_id,
        {'lastActive': time_provider.now_iso()},
    )


def is_admin(client: AppwriteClient, user_id: str) -> bool:
    profile = get_user_profile(client, user_id)
    return bool(profile and profile.is_admin)
