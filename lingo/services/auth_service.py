"""Process-wide sign-in state over the Appwrite account API.

One ``AuthContext`` per process tracks the signed-in user, mirrors the
session held in the backend client's cookie jar and is the only place that
mutates that state.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from appwrite.id import ID

from lingo.backend.client import AppwriteClient
from lingo.backend.errors import is_guest_error
from lingo.config import settings
from lingo.core.time_provider import TimeProvider, default_time_provider
from lingo.models import User
from lingo.services.user_profile_service import ensure_user_profile, get_user_profile, update_last_active


logger = logging.getLogger(__name__)

DESTINATION_ADMIN = 'admin'
DESTINATION_APP = 'app'

DEFAULT_LOGIN_ERROR = 'Invalid email or password. Please try again.'
DEFAULT_SIGNUP_ERROR = 'An error occurred during signup. Please try again.'
DEFAULT_LOGOUT_ERROR = 'An error occurred while logging out. Please try again.'
DEFAULT_RESET_ERROR = 'An error occurred while sending the password reset email. Please try again.'


class AuthError(ValueError):
    """Raised when the backend accepted a call but no usable user came back."""


@dataclass(frozen=True)
class Alert:
    title: str
    message: str


@dataclass(frozen=True)
class LoginResult:
    user: User
    destination: str


def _to_user(account: dict) -> User:
    return User(id=account.get('$id') or '', name=account.get('name') or '', email=account.get('email') or '')


def friendly_signup_message(exc: BaseException) -> str:
    # Appwrite has no stable code for these in the client flow, so match on text.
    message = str(exc) or ''
    if not message:
        return DEFAULT_SIGNUP_ERROR
    if 'already exists' in message:
        return 'An account with this email already exists. Please try logging in instead.'
    if 'password' in message:
        return 'Password must meet the security requirements. Please use a stronger password.'
    return message


class AuthContext:
    def __init__(
        self,
        client: AppwriteClient,
        *,
        time_provider: TimeProvider = default_time_provider,
        on_alert: Callable[[Alert], None] | None = None,
    ) -> None:
        self._client = client
        self._time_provider = time_provider
        self._on_alert = on_alert
        self._lock = threading.RLock()
        self.user: User | None = None
        self.is_loading = False
        self.is_authenticated = False
        self.last_alert: Alert | None = None

    def _set_user(self, user: User | None) -> None:
        self.user = user
        self.is_authenticated = user is not None

    def _alert(self, title: str, message: str) -> None:
        alert = Alert(title=title, message=message)
        self.last_alert = alert
        logger.warning('auth_alert title=%s message=%s', title, message)
        if self._on_alert:
            self._on_alert(alert)

    def is_logged_in(self) -> bool:
        try:
            return bool(self._client.get_session('current'))
        except Exception as exc:
            if is_guest_error(exc):
                return False
            raise

    def get_current_user(self) -> User | None:
        try:
            if not self._client.get_session('current'):
                return None
            return _to_user(self._client.get_account())
        except Exception as exc:
            if is_guest_error(exc):
                logger.info('auth_guest_state')
                return None
            raise

    def check_user_status(self) -> User | None:
        with self._lock:
            self.is_loading = True
            try:
                self._set_user(self.get_current_user())
            except Exception:
                logger.exception('auth_status_check_failed')
                self._set_user(None)
            finally:
                self.is_loading = False
            return self.user

    def _destination_for(self, user: User) -> str:
        try:
            profile = get_user_profile(self._client, user.id)
        except Exception:
            logger.exception('auth_profile_fetch_failed user_id=%s', user.id)
            return DESTINATION_APP
        if profile is not None and profile.is_admin:
            logger.info('auth_admin_login user_id=%s', user.id)
            return DESTINATION_ADMIN
        return DESTINATION_APP

    def _touch_last_active(self, user_id: str) -> None:
        try:
            update_last_active(self._client, user_id, time_provider=self._time_provider)
        except Exception as exc:
            logger.warning('auth_last_active_update_failed user_id=%s error=%s', user_id, exc)

    def login(self, email: str, password: str) -> LoginResult:
        with self._lock:
            self.is_loading = True
            self.last_alert = None
            try:
                if not self.is_logged_in():
                    self._client.create_email_password_session(email, password)
                user = self.get_current_user()
                if user is None:
                    raise AuthError('Could not retrieve user details')
                self._set_user(user)
                self._touch_last_active(user.id)
                logger.info('auth_login_succeeded user_id=%s', user.id)
                return LoginResult(user=user, destination=self._destination_for(user))
            except Exception as exc:
                logger.exception('auth_login_failed')
                self._alert('Login Failed', str(exc) or DEFAULT_LOGIN_ERROR)
                raise
            finally:
                self.is_loading = False

    def signup(self, email: str, password: str, name: str) -> bool:
        with self._lock:
            self.is_loading = True
            self.last_alert = None
            try:
                self._client.create_account(ID.unique(), email, password, name)
                self._client.create_email_password_session(email, password)
                user = self.get_current_user()
                if user is None:
                    raise AuthError('Failed to retrieve user after signup')
                ensure_user_profile(self._client, user.id, name, time_provider=self._time_provider)
                self._set_user(user)
                logger.info('auth_signup_succeeded user_id=%s', user.id)
                return True
            except Exception as exc:
                logger.exception('auth_signup_failed')
                self._alert('Signup Failed', friendly_signup_message(exc))
                return False
            finally:
                self.is_loading = False

    def logout(self) -> None:
        with self._lock:
            self.is_loading = True
            self.last_alert = None
            user_id = self.user.id if self.user else None
            self._set_user(None)
            try:
                self._client.delete_session('current')
                logger.info('auth_logout_succeeded user_id=%s', user_id)
            except Exception:
                logger.exception('auth_logout_failed user_id=%s', user_id)
                self._alert('Logout Failed', DEFAULT_LOGOUT_ERROR)
                raise
            finally:
                self.is_loading = False

    def reset_password(self, email: str) -> None:
        with self._lock:
            self.is_loading = True
            self.last_alert = None
            try:
                self._client.create_recovery(email, settings.password_recovery_url)
            except Exception as exc:
                logger.exception('auth_password_reset_failed')
                self._alert('Password Reset Failed', str(exc) or DEFAULT_RESET_ERROR)
                raise
            finally:
                self.is_loading = False
