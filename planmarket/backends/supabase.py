"""
Hosted backend adapter (Supabase-style REST service).

Tables are queried through the PostgREST endpoint (``/rest/v1``), accounts
through the GoTrue endpoint (``/auth/v1``) and the verification email is
sent by invoking the ``send-verification-email`` edge function
(``/functions/v1``). All calls are blocking ``requests`` calls with a
timeout and come back as :class:`Result` values.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import requests

from planmarket.backends.base import AuthSession, Backend, EmailDispatcher, Predicate, Result

logger = logging.getLogger(__name__)

VERIFICATION_FUNCTION = 'send-verification-email'


def _format_value(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _quote_list_item(value: Any) -> str:
    text = _format_value(value)
    if any(char in text for char in ',()" '):
        text = '"' + text.replace('"', '\\"') + '"'
    return text


def encode_predicates(predicates: Iterable[Predicate]) -> List[Tuple[str, str]]:
    """Translate predicates to PostgREST query parameters.

    >>> encode_predicates([Predicate('bedrooms', 'gte', 3)])
    [('bedrooms', 'gte.3')]
    """
    params: List[Tuple[str, str]] = []
    orderings: List[str] = []
    for predicate in predicates:
        if predicate.op == 'order':
            orderings.append(f'{predicate.field}.{predicate.value or "asc"}')
        elif predicate.op == 'in':
            items = ','.join(_quote_list_item(item) for item in predicate.value)
            params.append((predicate.field, f'in.({items})'))
        elif predicate.op == 'eq' and predicate.value is None:
            params.append((predicate.field, 'is.null'))
        else:
            params.append((predicate.field, f'{predicate.op}.{_format_value(predicate.value)}'))
    if orderings:
        params.append(('order', ','.join(orderings)))
    return params


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ('message', 'msg', 'error_description', 'error'):
            if body.get(key):
                return str(body[key])
    return f'HTTP {response.status_code}'


def _session_from_payload(payload: Mapping[str, Any]) -> Optional[AuthSession]:
    user = payload.get('user') or {}
    token = payload.get('access_token')
    if not token or not user.get('id'):
        return None
    return AuthSession(
        user_id=str(user['id']),
        email=user.get('email') or '',
        access_token=token,
        refresh_token=payload.get('refresh_token'),
        user_metadata=dict(user.get('user_metadata') or {}),
    )


class SupabaseClient:
    """Thin HTTP client shared by the backend and the email dispatcher."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        if not base_url or not api_key:
            raise ValueError('SUPABASE_URL and SUPABASE_ANON_KEY are required for the supabase backend')
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self.http = session or requests.Session()

    def headers(self, auth: Optional[AuthSession] = None, **extra) -> Dict[str, str]:
        token = auth.access_token if auth is not None else self.api_key
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json',
        }
        headers.update(extra)
        return headers

    def call(
        self,
        method: str,
        path: str,
        *,
        auth: Optional[AuthSession] = None,
        params=None,
        json=None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[Optional[requests.Response], Optional[str]]:
        url = f'{self.base_url}{path}'
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers={**self.headers(auth), **(headers or {})},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error('%s %s failed: %s', method, path, exc, exc_info=True)
            return None, str(exc) or exc.__class__.__name__
        if response.status_code >= 400:
            message = _error_message(response)
            logger.error('%s %s returned %s: %s', method, path, response.status_code, message)
            return response, message
        return response, None


def _json_or_none(response: requests.Response):
    if response is None or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class SupabaseBackend(Backend):
    name = 'supabase'

    def __init__(self, client: SupabaseClient):
        self.client = client

    # Query interface

    def select(self, table, predicates=(), auth=None):
        params = [('select', '*')] + encode_predicates(predicates)
        response, error = self.client.call('GET', f'/rest/v1/{table}', auth=auth, params=params)
        if error:
            return Result(error=error)
        return Result(data=_json_or_none(response) or [])

    def insert(self, table, row, auth=None):
        response, error = self.client.call(
            'POST',
            f'/rest/v1/{table}',
            auth=auth,
            json=dict(row),
            headers={'Prefer': 'return=representation'},
        )
        if error:
            return Result(error=error)
        rows = _json_or_none(response) or []
        return Result(data=rows[0] if isinstance(rows, list) and rows else dict(row))

    def update(self, table, values, predicates, auth=None):
        response, error = self.client.call(
            'PATCH',
            f'/rest/v1/{table}',
            auth=auth,
            params=encode_predicates(predicates),
            json=dict(values),
            headers={'Prefer': 'return=representation'},
        )
        if error:
            return Result(error=error)
        return Result(data=_json_or_none(response) or [])

    def delete(self, table, predicates, auth=None):
        response, error = self.client.call(
            'DELETE',
            f'/rest/v1/{table}',
            auth=auth,
            params=encode_predicates(predicates),
        )
        if error:
            return Result(error=error)
        return Result(data=_json_or_none(response) or [])

    # Auth interface

    def sign_up(self, email, password, metadata, redirect_url=None):
        params = {'redirect_to': redirect_url} if redirect_url else None
        response, error = self.client.call(
            'POST',
            '/auth/v1/signup',
            params=params,
            json={'email': email, 'password': password, 'data': dict(metadata)},
        )
        if error:
            return Result(error=error)
        # Without auto-confirm the service returns the bare user and no session.
        return Result(data=_session_from_payload(_json_or_none(response) or {}))

    def sign_in_with_password(self, email, password):
        response, error = self.client.call(
            'POST',
            '/auth/v1/token',
            params={'grant_type': 'password'},
            json={'email': email, 'password': password},
        )
        if error:
            return Result(error=error)
        session = _session_from_payload(_json_or_none(response) or {})
        if session is None:
            return Result(error='Invalid login credentials')
        return Result(data=session)

    def get_session(self, auth):
        if auth is None:
            return Result(data=None)
        response, error = self.client.call('GET', '/auth/v1/user', auth=auth)
        if error:
            if response is not None and response.status_code in (401, 403):
                return Result(data=None)
            return Result(error=error)
        user = _json_or_none(response) or {}
        auth.user_metadata = dict(user.get('user_metadata') or auth.user_metadata)
        return Result(data=auth)

    def update_user(self, auth, metadata):
        response, error = self.client.call('PUT', '/auth/v1/user', auth=auth, json={'data': dict(metadata)})
        if error:
            return Result(error=error)
        user = _json_or_none(response) or {}
        auth.user_metadata = dict(user.get('user_metadata') or {**auth.user_metadata, **metadata})
        return Result(data=auth)

    def sign_out(self, auth):
        if auth is None:
            return Result(data=None)
        _, error = self.client.call('POST', '/auth/v1/logout', auth=auth)
        if error:
            return Result(error=error)
        return Result(data=None)


class FunctionEmailDispatcher(EmailDispatcher):
    """Invokes the hosted ``send-verification-email`` function."""

    def __init__(self, client: SupabaseClient, function_name: str = VERIFICATION_FUNCTION):
        self.client = client
        self.function_name = function_name

    def send_verification(self, email, code, redirect_url):
        _, error = self.client.call(
            'POST',
            f'/functions/v1/{self.function_name}',
            json={'email': email, 'code': code, 'redirectUrl': redirect_url},
        )
        if error:
            return Result(error=error)
        return Result(data={'email': email})
