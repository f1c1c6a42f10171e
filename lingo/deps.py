from __future__ import annotations

from functools import lru_cache

from appwrite.exception import AppwriteException
from fastapi import Depends, HTTPException

from lingo.backend.client import AppwriteClient, get_backend_client
from lingo.models import User
from lingo.services.auth_service import AuthContext


def get_backend() -> AppwriteClient:
    return get_backend_client()


@lru_cache(maxsize=1)
def _process_auth_context() -> AuthContext:
    return AuthContext(get_backend_client())


def get_auth_context() -> AuthContext:
    return _process_auth_context()


def require_current_user(auth: AuthContext = Depends(get_auth_context)) -> User:
    if not auth.is_authenticated or auth.user is None:
        raise HTTPException(status_code=401, detail='Unauthorized')
    return auth.user


def http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, AppwriteException):
        if exc.code == 404:
            return HTTPException(status_code=404, detail=exc.message or 'Not found')
        if exc.code in (401, 403):
            return HTTPException(status_code=exc.code, detail=exc.message or 'Unauthorized')
        return HTTPException(status_code=502, detail=exc.message or 'Backend request failed')
    return HTTPException(status_code=400, detail=str(exc))
