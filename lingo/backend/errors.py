from __future__ import annotations

from appwrite.exception import AppwriteException


def is_guest_error(exc: BaseException) -> bool:
    # Appwrite answers 401 / "User (role: guests) missing scope" when nobody is signed in.
    if isinstance(exc, AppwriteException) and exc.code == 401:
        return True
    message = str(exc) or ''
    return 'guests' in message or 'missing scope' in message
