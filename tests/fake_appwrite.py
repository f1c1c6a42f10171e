"""In-memory stand-in for an Appwrite project, plugged in under the SDK's ``Client.call``."""
from __future__ import annotations

import itertools
import json
import re
from collections import defaultdict
from typing import Any

from appwrite.client import Client
from appwrite.exception import AppwriteException

from lingo.backend.client import AppwriteClient


DOCUMENTS_RE = re.compile(r'^/databases/(?P<db>[^/]+)/collections/(?P<col>[^/]+)/documents(?:/(?P<doc>[^/]+))?$')
DEFAULT_LIMIT = 25


def _error(status: int, message: str, type_: str) -> AppwriteException:
    return AppwriteException(message, status, type_, {'message': message, 'code': status, 'type': type_})


class FakeSdkClient(Client):
    """SDK client whose transport is the in-memory project."""

    def __init__(self, backend: FakeAppwrite) -> None:
        super().__init__()
        self.backend = backend
        self.api_key = ''
        self.session_secret = ''

    def set_key(self, value):
        self.api_key = value
        return super().set_key(value)

    def set_session(self, value):
        self.session_secret = value
        return super().set_session(value)

    def call(self, method, path='', headers=None, params=None, response_type='json'):
        return self.backend.handle(self, method.upper(), path, dict(params or {}))


class FakeAppwrite:
    def __init__(self, project_id: str = 'test-project') -> None:
        self.project_id = project_id
        self.collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.accounts: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, str] = {}
        self.recoveries: list[dict[str, Any]] = []
        self.requests: list[tuple[str, str]] = []
        self.failing: dict[str, tuple[int, str]] = {}
        self.sdk_clients: list[FakeSdkClient] = []
        self._ids = itertools.count(1)

    def sdk_client(self) -> FakeSdkClient:
        sdk = FakeSdkClient(self)
        self.sdk_clients.append(sdk)
        return sdk

    def client(self) -> AppwriteClient:
        return AppwriteClient(
            'https://appwrite.test/v1',
            self.project_id,
            api_key='test-key',
            slow_ms=60_000,
            sdk_client_factory=self.sdk_client,
        )

    def new_id(self, prefix: str = 'doc') -> str:
        return f'{prefix}{next(self._ids)}'

    def seed(self, collection_id: str, doc: dict[str, Any]) -> dict[str, Any]:
        stored = dict(doc)
        stored.setdefault('$id', self.new_id())
        self.collections[collection_id][stored['$id']] = stored
        return stored

    def add_account(self, email: str, password: str, name: str = '') -> dict[str, Any]:
        user = {'$id': self.new_id('user'), 'email': email, 'name': name, 'password': password}
        self.accounts[email] = user
        return user

    def sign_in(self, email: str) -> str:
        """Open a session for ``email`` and hand its secret to every keyless client."""
        secret = self._open_session(self.accounts[email]['$id'])
        for sdk in self.sdk_clients:
            if not sdk.api_key:
                sdk.set_session(secret)
        return secret

    def fail_collection(self, collection_id: str, status: int = 500, message: str = 'Server error') -> None:
        self.failing[collection_id] = (status, message)

    def document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        return self.collections[collection_id][document_id]

    def request_count(self, method: str, path_part: str) -> int:
        return sum(1 for verb, path in self.requests if verb == method and path_part in path)

    def _open_session(self, user_id: str) -> str:
        secret = self.new_id('secret')
        self.sessions[secret] = user_id
        return secret

    # Routing

    def handle(self, sdk: FakeSdkClient, method: str, path: str, params: dict[str, Any]) -> Any:
        self.requests.append((method, path))
        if path.startswith('/account'):
            return self._account(sdk, method, path, params)
        match = DOCUMENTS_RE.match(path)
        if match:
            return self._documents(method, match.group('col'), match.group('doc'), params)
        raise _error(404, 'The requested route was not found.', 'general_route_not_found')

    def _user_by_id(self, user_id: str | None) -> dict[str, Any] | None:
        for user in self.accounts.values():
            if user['$id'] == user_id:
                return user
        return None

    def _public(self, user: dict[str, Any]) -> dict[str, Any]:
        return {'$id': user['$id'], 'email': user['email'], 'name': user['name']}

    def _account(self, sdk: FakeSdkClient, method: str, path: str, params: dict[str, Any]) -> Any:
        if method == 'POST' and path == '/account':
            if params['email'] in self.accounts:
                raise _error(409, 'A user with the same id, email, or phone already exists in this project.', 'user_already_exists')
            if len(params.get('password') or '') < 8:
                raise _error(
                    400,
                    'Invalid `password` param: Password must be between 8 and 265 characters long.',
                    'general_argument_invalid',
                )
            user = {
                '$id': params['userId'],
                'email': params['email'],
                'name': params.get('name') or '',
                'password': params['password'],
            }
            self.accounts[params['email']] = user
            return self._public(user)

        if method == 'POST' and path == '/account/sessions/email':
            if sdk.session_secret in self.sessions:
                raise _error(401, 'Creation of a session is prohibited when a session is active.', 'user_session_already_exists')
            user = self.accounts.get(params.get('email'))
            if not user or user['password'] != params.get('password'):
                raise _error(401, 'Invalid credentials. Please check the email and password.', 'user_invalid_credentials')
            secret = self._open_session(user['$id'])
            # Appwrite only reveals the secret to callers holding an API key.
            return {'$id': f'session-{secret}', 'userId': user['$id'], 'secret': secret if sdk.api_key else ''}

        if method == 'POST' and path == '/account/recovery':
            if params.get('email') not in self.accounts:
                raise _error(404, 'User with the requested ID could not be found.', 'user_not_found')
            self.recoveries.append({'email': params['email'], 'url': params['url']})
            return {'$id': 'token1'}

        user = self._user_by_id(self.sessions.get(sdk.session_secret))
        if user is None:
            raise _error(401, 'User (role: guests) missing scope (account)', 'general_unauthorized_scope')
        if method == 'GET' and path == '/account':
            return self._public(user)
        if method == 'GET' and path == '/account/sessions/current':
            return {'$id': f'session-{sdk.session_secret}', 'userId': user['$id']}
        if method == 'DELETE' and path == '/account/sessions/current':
            del self.sessions[sdk.session_secret]
            return {}
        raise _error(404, 'The requested route was not found.', 'general_route_not_found')

    def _documents(self, method: str, collection_id: str, document_id: str | None, params: dict[str, Any]) -> Any:
        if collection_id in self.failing:
            status, message = self.failing[collection_id]
            raise _error(status, message, 'general_server_error')
        store = self.collections[collection_id]

        if document_id is None and method == 'GET':
            queries = [json.loads(raw) for raw in params.get('queries') or []]
            return self._list(store, queries)

        if document_id is None and method == 'POST':
            new_id = params['documentId']
            if new_id in store:
                raise _error(409, 'Document with the requested ID already exists.', 'document_already_exists')
            doc = {**params['data'], '$id': new_id, '$collectionId': collection_id}
            if params.get('permissions') is not None:
                doc['$permissions'] = list(params['permissions'])
            store[new_id] = doc
            return dict(doc)

        doc = store.get(document_id)
        if doc is None:
            raise _error(404, 'Document with the requested ID could not be found.', 'document_not_found')
        if method == 'GET':
            return dict(doc)
        if method == 'PATCH':
            doc.update(params.get('data') or {})
            return dict(doc)
        raise _error(405, 'Method not allowed', 'general_route_not_found')

    def _list(self, store: dict[str, dict[str, Any]], queries: list[dict[str, Any]]) -> dict[str, Any]:
        rows = list(store.values())
        limit, offset = DEFAULT_LIMIT, 0
        for query in queries:
            method = query['method']
            if method == 'equal':
                rows = [row for row in rows if row.get(query['attribute']) in query['values']]
            elif method == 'limit':
                limit = int(query['values'][0])
            elif method == 'offset':
                offset = int(query['values'][0])
        return {'total': len(rows), 'documents': [dict(row) for row in rows[offset:offset + limit]]}
