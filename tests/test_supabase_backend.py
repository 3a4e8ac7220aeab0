import unittest
from unittest import mock

import requests

from planmarket.backends.base import AuthSession, Predicate, eq, gte, in_, order
from planmarket.backends.supabase import (
    FunctionEmailDispatcher,
    SupabaseBackend,
    SupabaseClient,
    encode_predicates,
)


def _response(status=200, payload=None):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status
    response.content = b'{}' if payload is not None else b''
    response.json.return_value = payload
    return response


class EncodePredicatesTests(unittest.TestCase):
    def test_operators(self):
        params = encode_predicates([
            gte('bedrooms', 3),
            Predicate('price', 'lte', 200000),
            eq('has_pool', False),
            eq('style', None),
            in_('id', ['a', 'b c']),
            order('created_at', descending=True),
        ])
        self.assertEqual(params, [
            ('bedrooms', 'gte.3'),
            ('price', 'lte.200000'),
            ('has_pool', 'eq.false'),
            ('style', 'is.null'),
            ('id', 'in.(a,"b c")'),
            ('order', 'created_at.desc'),
        ])

    def test_unknown_operator(self):
        with self.assertRaises(ValueError):
            Predicate('price', 'like', 'x')


class SupabaseBackendTests(unittest.TestCase):
    def setUp(self):
        self.http = mock.Mock(spec=requests.Session)
        self.client = SupabaseClient('https://example.supabase.co/', 'anon-key', timeout=5, session=self.http)
        self.backend = SupabaseBackend(self.client)
        self.auth = AuthSession(user_id='u1', email='jane@example.com', access_token='user-token')

    def test_select_uses_anon_key_and_filters(self):
        self.http.request.return_value = _response(payload=[{'id': 'p1'}])
        result = self.backend.select('house_plans', [gte('bedrooms', 3)])

        self.assertTrue(result.ok)
        self.assertEqual(result.data, [{'id': 'p1'}])
        method, url = self.http.request.call_args[0]
        kwargs = self.http.request.call_args[1]
        self.assertEqual(method, 'GET')
        self.assertEqual(url, 'https://example.supabase.co/rest/v1/house_plans')
        self.assertEqual(kwargs['params'], [('select', '*'), ('bedrooms', 'gte.3')])
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer anon-key')
        self.assertEqual(kwargs['timeout'], 5)

    def test_user_token_is_forwarded(self):
        self.http.request.return_value = _response(payload=[{'id': 'f1'}])
        self.backend.insert('favorites', {'user_id': 'u1', 'plan_id': 'p1'}, auth=self.auth)
        kwargs = self.http.request.call_args[1]
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer user-token')
        self.assertEqual(kwargs['headers']['Prefer'], 'return=representation')

    def test_http_error_becomes_failed_result(self):
        self.http.request.return_value = _response(400, {'message': 'column does not exist'})
        result = self.backend.select('house_plans')
        self.assertFalse(result.ok)
        self.assertEqual(result.error, 'column does not exist')

    def test_network_error_becomes_failed_result(self):
        self.http.request.side_effect = requests.ConnectionError('unreachable')
        result = self.backend.select('house_plans')
        self.assertFalse(result.ok)
        self.assertIn('unreachable', result.error)

    def test_sign_up_sends_metadata_and_redirect(self):
        self.http.request.return_value = _response(payload={
            'access_token': 'tok',
            'user': {'id': 'u1', 'email': 'jane@example.com', 'user_metadata': {'role': 'visitor'}},
        })
        result = self.backend.sign_up(
            'jane@example.com', 'Secret1!', {'role': 'visitor', 'verification_code': '123456'}, 'https://app/verify',
        )
        self.assertEqual(result.data.user_id, 'u1')
        self.assertEqual(result.data.access_token, 'tok')
        kwargs = self.http.request.call_args[1]
        self.assertEqual(kwargs['params'], {'redirect_to': 'https://app/verify'})
        self.assertEqual(kwargs['json']['data']['verification_code'], '123456')

    def test_expired_session_reads_as_none(self):
        self.http.request.return_value = _response(401, {'msg': 'JWT expired'})
        result = self.backend.get_session(self.auth)
        self.assertTrue(result.ok)
        self.assertIsNone(result.data)

    def test_sign_in_without_session_fails(self):
        self.http.request.return_value = _response(payload={})
        result = self.backend.sign_in_with_password('jane@example.com', 'Secret1!')
        self.assertFalse(result.ok)

    def test_function_dispatcher_payload(self):
        self.http.request.return_value = _response(payload={'ok': True})
        result = FunctionEmailDispatcher(self.client).send_verification('jane@example.com', '123456', 'https://app/verify')
        self.assertTrue(result.ok)
        method, url = self.http.request.call_args[0]
        self.assertEqual(url, 'https://example.supabase.co/functions/v1/send-verification-email')
        self.assertEqual(
            self.http.request.call_args[1]['json'],
            {'email': 'jane@example.com', 'code': '123456', 'redirectUrl': 'https://app/verify'},
        )

    def test_missing_settings(self):
        with self.assertRaises(ValueError):
            SupabaseClient('', 'key')


if __name__ == '__main__':
    unittest.main()
