"""End-to-end checks of the JSON API through the Flask test client."""

import re

from planmarket.extensions import mail

from conftest import sign_up_and_verify


def test_search_merges_filters_into_session(client, catalog):
    resp = client.get('/search')
    assert resp.status_code == 200
    assert resp.get_json()['count'] == 3

    resp = client.post('/search/filters', json={'minBedrooms': 3, 'maxPrice': 200000})
    body = resp.get_json()
    assert resp.status_code == 200
    assert [plan['title'] for plan in body['results']] == ['Four bedroom family home']
    assert body['filters'] == {'min_bedrooms': 3, 'max_price': 200000.0}

    # A later partial update keeps the other fields
    resp = client.post('/search/filters', json={'max_price': None})
    assert resp.get_json()['filters'] == {'min_bedrooms': 3}
    assert resp.get_json()['count'] == 2

    resp = client.get('/search/results')
    assert resp.get_json()['count'] == 2

    resp = client.delete('/search/filters')
    assert resp.get_json()['filters'] == {}
    assert resp.get_json()['count'] == 3


def test_search_query_arguments(client, catalog):
    resp = client.get('/search?style=modern&has_pool=false')
    body = resp.get_json()
    assert [plan['title'] for plan in body['results']] == ['Four bedroom family home']


def test_infinite_bound_is_ignored(client, catalog):
    resp = client.get('/search?minBedrooms=inf&maxPrice=nan')
    assert resp.status_code == 200
    assert resp.get_json()['filters'] == {}
    assert resp.get_json()['count'] == 3


def test_unknown_filter_is_a_validation_error(client, catalog):
    resp = client.post('/search/filters', json={'colour': 'blue'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'validation_error'


def test_filters_are_per_session(app, catalog):
    first, second = app.test_client(), app.test_client()
    first.post('/search/filters', json={'min_bedrooms': 4})
    assert first.get('/search').get_json()['count'] == 1
    assert second.get('/search').get_json()['count'] == 3


def test_plan_detail_and_service_toggle(client, catalog):
    plans, services = catalog
    plan_id = plans['Two bedroom cottage']

    resp = client.get(f'/plans/{plan_id}')
    body = resp.get_json()
    assert resp.status_code == 200
    assert body['total'] == 150000
    assert body['selected_services'] == [services['Construction plans']]
    assert body['is_favorite'] is False
    assert body['can_edit_price'] is False

    resp = client.post(f'/plans/{plan_id}/services/{services["CAD files"]}/toggle')
    assert resp.get_json()['total'] == 150500
    resp = client.post(f'/plans/{plan_id}/services/{services["CAD files"]}/toggle')
    assert resp.get_json()['total'] == 150000

    assert client.get('/plans/does-not-exist').status_code == 404


def test_list_services(client, catalog):
    body = client.get('/services').get_json()
    assert [service['name'] for service in body['services']] == ['Construction plans', 'CAD files']
    assert body['services'][0]['is_included'] is True


def test_sign_up_verification_and_sign_out(client, app):
    with mail.record_messages() as outbox:
        resp = client.post('/auth/sign-up', json={
            'email': 'jane@example.com',
            'password': 'Secret1!',
            'role': 'visitor',
        })
    assert resp.status_code == 201
    assert resp.get_json()['state'] == 'awaiting_verification'
    assert len(outbox) == 1
    assert outbox[0].recipients == ['jane@example.com']
    code = re.search(r'code is: (\d{6})', outbox[0].body).group(1)

    wrong = '%06d' % ((int(code) + 1) % 1000000 or 100000)
    resp = client.post('/auth/verify', json={'code': wrong})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'verification_code_mismatch'

    resp = client.post('/auth/verify', json={'digits': list(code)})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body['redirect'] == '/profile'
    assert body['redirect_delay_ms'] == 2000

    assert client.get('/auth/state').get_json()['state'] == 'active'
    assert client.get('/profile').status_code == 200

    assert client.post('/auth/sign-out').get_json()['state'] == 'unauthenticated'
    assert client.get('/profile').status_code == 401


def test_sign_up_rejects_bad_email(client):
    with mail.record_messages() as outbox:
        resp = client.post('/auth/sign-up', json={'email': 'nope', 'password': 'Secret1!'})
    assert resp.status_code == 400
    assert outbox == []


def test_sign_in(client, app):
    sign_up_and_verify(client, app)
    client.post('/auth/sign-out')

    resp = client.post('/auth/sign-in', json={'email': 'jane@example.com', 'password': 'bad'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'sign_in_failed'

    resp = client.post('/auth/sign-in', json={'email': 'jane@example.com', 'password': 'Secret1!'})
    assert resp.status_code == 200
    assert resp.get_json()['user']['email'] == 'jane@example.com'


def test_unverified_sign_in(client, app):
    with mail.record_messages():
        client.post('/auth/sign-up', json={'email': 'jane@example.com', 'password': 'Secret1!'})
    other = app.test_client()
    resp = other.post('/auth/sign-in', json={'email': 'jane@example.com', 'password': 'Secret1!'})
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'unverified_account'


def test_price_update_roles(app, catalog):
    plans, _ = catalog
    plan_id = plans['Three bedroom villa']

    anonymous = app.test_client()
    assert anonymous.patch(f'/plans/{plan_id}/price', json={'price': 1}).status_code == 401

    visitor = app.test_client()
    sign_up_and_verify(visitor, app, email='visitor@example.com')
    assert visitor.patch(f'/plans/{plan_id}/price', json={'price': 1}).status_code == 403

    pro = app.test_client()
    sign_up_and_verify(pro, app, email='pro@example.com', role='professional')
    assert pro.get(f'/plans/{plan_id}').get_json()['can_edit_price'] is True
    assert pro.patch(f'/plans/{plan_id}/price', json={'price': -5}).status_code == 400
    assert pro.patch(f'/plans/{plan_id}/price', json={}).status_code == 400

    resp = pro.patch(f'/plans/{plan_id}/price', json={'price': 0})
    assert resp.status_code == 200
    assert resp.get_json()['plan']['price'] == 0
    assert anonymous.get(f'/plans/{plan_id}').get_json()['total'] == 0


def test_favorites_and_saved_searches(client, app, catalog):
    plans, _ = catalog
    plan_id = plans['Two bedroom cottage']
    assert client.post(f'/plans/{plan_id}/favorite').status_code == 401

    sign_up_and_verify(client, app)
    assert client.post(f'/plans/{plan_id}/favorite').get_json()['is_favorite'] is True
    assert client.get(f'/plans/{plan_id}').get_json()['is_favorite'] is True
    favorites = client.get('/profile/favorites').get_json()['favorites']
    assert [plan['id'] for plan in favorites] == [plan_id]

    client.post('/search/filters', json={'min_bedrooms': 3})
    resp = client.post('/profile/searches', json={'name': 'Big houses'})
    assert resp.status_code == 201
    saved = resp.get_json()['saved_search']
    assert saved['filters'] == {'minBedrooms': 3}

    client.delete('/search/filters')
    resp = client.post(f'/profile/searches/{saved["id"]}/apply')
    assert resp.get_json()['filters'] == {'min_bedrooms': 3}
    assert resp.get_json()['count'] == 2

    dashboard = client.get('/profile').get_json()
    assert dashboard['user']['email'] == 'jane@example.com'
    assert [s['name'] for s in dashboard['saved_searches']] == ['Big houses']

    assert client.delete(f'/profile/searches/{saved["id"]}').status_code == 200
    assert client.get('/profile/searches').get_json()['saved_searches'] == []
    assert client.delete(f'/profile/searches/{saved["id"]}').status_code == 404


def test_password_helpers(client):
    body = client.get('/auth/password/generate').get_json()
    assert len(body['password']) == 12
    assert body['checks']['ok'] is True

    body = client.post('/auth/password/check', json={'password': 'abc'}).get_json()
    assert body['ok'] is False
    assert body['lowercase'] is True


def test_unknown_route_is_json(client):
    resp = client.get('/nope')
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'not_found'


def test_security_headers(client):
    resp = client.get('/health')
    assert resp.headers['X-Frame-Options'] == 'DENY'
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
