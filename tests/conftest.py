"""Test configuration and fixtures."""

import re
import tempfile
import os
from pathlib import Path

import pytest

from planmarket import create_app
from planmarket.backends.base import Backend, EmailDispatcher, Result
from planmarket.extensions import db as _db
from planmarket.extensions import mail


class RecordingDispatcher(EmailDispatcher):
    """Keeps sent codes in memory; set ``fail_with`` to simulate an outage."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send_verification(self, email, code, redirect_url):
        if self.fail_with:
            return Result(error=self.fail_with)
        self.sent.append({'email': email, 'code': code, 'redirect_url': redirect_url})
        return Result(data={'email': email})

    @property
    def last_code(self):
        return self.sent[-1]['code']


class StubBackend(Backend):
    """Answers ``select`` from a callable; everything else is unused."""

    name = 'stub'

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def select(self, table, predicates=(), auth=None):
        self.calls.append((table, list(predicates)))
        return self.handler(table, predicates)

    def insert(self, table, row, auth=None):
        raise NotImplementedError

    def update(self, table, values, predicates, auth=None):
        raise NotImplementedError

    def delete(self, table, predicates, auth=None):
        raise NotImplementedError

    def sign_up(self, email, password, metadata, redirect_url=None):
        raise NotImplementedError

    def sign_in_with_password(self, email, password):
        raise NotImplementedError

    def get_session(self, auth):
        raise NotImplementedError

    def update_user(self, auth, metadata):
        raise NotImplementedError

    def sign_out(self, auth):
        raise NotImplementedError


SAMPLE_PLANS = [
    {'title': 'Two bedroom cottage', 'style': 'cottage', 'bedrooms': 2, 'bathrooms': 1,
     'floor_area': 90, 'garages': 0, 'has_pool': False, 'estimated_budget': 100000, 'price': 150000},
    {'title': 'Four bedroom family home', 'style': 'modern', 'bedrooms': 4, 'bathrooms': 2.5,
     'floor_area': 210, 'garages': 2, 'has_pool': False, 'estimated_budget': 300000, 'price': 180000},
    {'title': 'Three bedroom villa', 'style': 'modern', 'bedrooms': 3, 'bathrooms': 2,
     'floor_area': 180, 'garages': 1, 'has_pool': True, 'estimated_budget': 450000, 'price': 250000},
]

SAMPLE_SERVICES = [
    {'name': 'Construction plans', 'price': 0, 'is_default': True},
    {'name': 'CAD files', 'price': 500, 'is_default': False},
]


def _make_app(db_path, dispatcher=None):
    return create_app(
        'testing',
        overrides={'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}'},
        dispatcher=dispatcher,
    )


@pytest.fixture
def app():
    """Create application for testing (Flask-Mail, suppressed)."""
    db_fd, db_path = tempfile.mkstemp()
    os.close(db_fd)

    app = _make_app(db_path)

    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def recording_app(dispatcher):
    """Application whose verification emails go to ``dispatcher``."""
    db_fd, db_path = tempfile.mkstemp()
    os.close(db_fd)

    app = _make_app(db_path, dispatcher=dispatcher)

    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def client(app):
    """Test client for making requests."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """CLI test runner."""
    return app.test_cli_runner()


def seed_catalog(app, plans=SAMPLE_PLANS, services=SAMPLE_SERVICES):
    """Insert plans and services; returns their ids by title/name."""
    from planmarket.models import PlanRecord, ServiceRecord

    with app.app_context():
        plan_rows = [PlanRecord(**data) for data in plans]
        service_rows = [ServiceRecord(**data) for data in services]
        _db.session.add_all(plan_rows + service_rows)
        _db.session.commit()
        return (
            {row.title: row.id for row in plan_rows},
            {row.name: row.id for row in service_rows},
        )


@pytest.fixture
def catalog(app):
    return seed_catalog(app)


def sign_up_and_verify(client, app, email='jane@example.com', password='Secret1!', role='visitor'):
    """Run the full sign-up flow over HTTP and return the verify response."""
    with mail.record_messages() as outbox:
        resp = client.post('/auth/sign-up', json={'email': email, 'password': password, 'role': role})
        assert resp.status_code == 201, resp.get_json()
    code = re.search(r'code is: (\d{6})', outbox[0].body).group(1)
    resp = client.post('/auth/verify', json={'code': code})
    assert resp.status_code == 200, resp.get_json()
    return resp
