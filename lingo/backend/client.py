from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Callable

from appwrite.client import Client
from appwrite.query import Query
from appwrite.services.account import Account
from appwrite.services.databases import Databases

from lingo.config import settings


logger = logging.getLogger(__name__)
_slow_logger = logging.getLogger('lingo.backend.slow_call')


def _as_dict(result: Any) -> dict[str, Any]:
    # 204 answers come back as an empty body.
    if not result:
        return {}
    if isinstance(result, dict):
        return result
    if hasattr(result, 'to_dict'):
        return result.to_dict()
    if hasattr(result, 'model_dump'):
        return result.model_dump(by_alias=True)
    return dict(result)


class AppwriteClient:
    """Account and databases access over the Appwrite SDK for one signed-in user.

    The SDK does not keep cookies, so the session secret returned at login is set
    on the session client and sent with every later call. Accounts and sessions
    are created through the admin client (API key) when one is configured, which
    is what makes Appwrite return that secret.
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str = '',
        *,
        slow_ms: int | None = None,
        sdk_client_factory: Callable[[], Client] = Client,
    ) -> None:
        self.endpoint = endpoint.rstrip('/')
        self.project_id = project_id
        self.slow_ms = settings.backend_slow_ms if slow_ms is None else slow_ms
        self._session_client = sdk_client_factory().set_endpoint(self.endpoint).set_project(project_id)
        self._admin_client = self._session_client
        if api_key:
            self._admin_client = sdk_client_factory().set_endpoint(self.endpoint).set_project(project_id).set_key(api_key)
        self._account = Account(self._session_client)
        self._admin_account = Account(self._admin_client)
        self._databases = Databases(self._session_client)

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> dict[str, Any]:
        started = time.perf_counter()
        try:
            return _as_dict(fn(**kwargs))
        finally:
            duration_ms = (time.perf_counter() - started) * 1000.0
            if duration_ms >= self.slow_ms:
                _slow_logger.warning('backend_slow_call duration_ms=%.2f operation=%s', duration_ms, operation)

    def close(self) -> None:
        """Forget the session secret held for this process."""
        self._session_client.set_session('')

    # Account

    def create_account(self, user_id: str, email: str, password: str, name: str = '') -> dict[str, Any]:
        return self._call(
            'account.create',
            self._admin_account.create,
            user_id=user_id,
            email=email,
            password=password,
            name=name or None,
        )

    def create_email_password_session(self, email: str, password: str) -> dict[str, Any]:
        session = self._call(
            'account.create_email_password_session',
            self._admin_account.create_email_password_session,
            email=email,
            password=password,
        )
        if session.get('secret'):
            self._session_client.set_session(session['secret'])
        return session

    def get_account(self) -> dict[str, Any]:
        return self._call('account.get', self._account.get)

    def get_session(self, session_id: str = 'current') -> dict[str, Any]:
        return self._call('account.get_session', self._account.get_session, session_id=session_id)

    def delete_session(self, session_id: str = 'current') -> dict[str, Any]:
        result = self._call('account.delete_session', self._account.delete_session, session_id=session_id)
        if session_id == 'current':
            self._session_client.set_session('')
        return result

    def create_recovery(self, email: str, url: str) -> dict[str, Any]:
        return self._call('account.create_recovery', self._account.create_recovery, email=email, url=url)

    # Databases

    def list_documents(
        self,
        database_id: str,
        collection_id: str,
        queries: list[str] | None = None,
    ) -> dict[str, Any]:
        body = self._call(
            'databases.list_documents',
            self._databases.list_documents,
            database_id=database_id,
            collection_id=collection_id,
            queries=list(queries) if queries else None,
        )
        return {'total': int(body.get('total') or 0), 'documents': list(body.get('documents') or [])}

    def list_all_documents(
        self,
        database_id: str,
        collection_id: str,
        queries: list[str] | None = None,
        page_size: int | None = None,
    ) -> list[dict[str, Any]]:
        size = page_size or settings.list_page_size
        base = list(queries or [])
        documents: list[dict[str, Any]] = []
        while True:
            page = self.list_documents(
                database_id,
                collection_id,
                base + [Query.limit(size), Query.offset(len(documents))],
            )
            rows = page['documents']
            documents.extend(rows)
            if not rows or len(rows) < size or len(documents) >= page['total']:
                return documents

    def get_document(self, database_id: str, collection_id: str, document_id: str) -> dict[str, Any]:
        return self._call(
            'databases.get_document',
            self._databases.get_document,
            database_id=database_id,
            collection_id=collection_id,
            document_id=document_id,
        )

    def create_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: dict[str, Any],
        permissions: list[str] | None = None,
    ) -> dict[str, Any]:
        return self._call(
            'databases.create_document',
            self._databases.create_document,
            database_id=database_id,
            collection_id=collection_id,
            document_id=document_id,
            data=data,
            permissions=permissions,
        )

    def update_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        return self._call(
            'databases.update_document',
            self._databases.update_document,
            database_id=database_id,
            collection_id=collection_id,
            document_id=document_id,
            data=data,
        )


@lru_cache(maxsize=1)
def get_backend_client() -> AppwriteClient:
    logger.info('backend_client_created endpoint=%s project=%s', settings.appwrite_endpoint, settings.appwrite_project_id)
    return AppwriteClient(
        settings.appwrite_endpoint,
        settings.appwrite_project_id,
        api_key=settings.appwrite_api_key,
    )
