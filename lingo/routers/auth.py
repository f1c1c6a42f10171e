from appwrite.exception import AppwriteException
from fastapi import APIRouter, Depends, HTTPException

from lingo.deps import get_auth_context, http_error
from lingo.schemas import LoginRequest, PasswordResetRequest, SignupRequest
from lingo.services.auth_service import AuthContext


router = APIRouter(prefix='/auth', tags=['Auth'])


def _alert_detail(auth: AuthContext, fallback: str) -> str:
    return auth.last_alert.message if auth.last_alert else fallback


@router.post('/login')
def login(payload: LoginRequest, auth: AuthContext = Depends(get_auth_context)):
    try:
        result = auth.login(payload.email.strip(), payload.password)
    except (AppwriteException, ValueError):
        raise HTTPException(status_code=401, detail=_alert_detail(auth, 'Login failed'))
    return {'ok': True, 'user': result.user, 'destination': result.destination}


@router.post('/signup')
def signup(payload: SignupRequest, auth: AuthContext = Depends(get_auth_context)):
    if not auth.signup(payload.email.strip(), payload.password, payload.name.strip()):
        raise HTTPException(status_code=400, detail=_alert_detail(auth, 'Signup failed'))
    return {'ok': True, 'user': auth.user}


@router.post('/logout')
def logout(auth: AuthContext = Depends(get_auth_context)):
    try:
        auth.logout()
    except AppwriteException as exc:
        raise http_error(exc)
    return {'ok': True}


@router.post('/reset-password')
def reset_password(payload: PasswordResetRequest, auth: AuthContext = Depends(get_auth_context)):
    try:
        auth.reset_password(payload.email.strip())
    except AppwriteException:
        raise HTTPException(status_code=400, detail=_alert_detail(auth, 'Password reset failed'))
    return {'ok': True}


@router.get('/me')
def me(auth: AuthContext = Depends(get_auth_context)):
    if not auth.is_authenticated:
        auth.check_user_status()
    return {'authenticated': auth.is_authenticated, 'user': auth.user}
