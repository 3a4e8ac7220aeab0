import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from planmarket.utils import ttl_cache
from planmarket.utils.db_resilience import with_db_resilience
from planmarket.utils.ttl_cache import TTLCache


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    clock = _Clock()
    monkeypatch.setattr(ttl_cache.time, 'monotonic', clock)
    return clock


def test_entries_expire(clock):
    cache = TTLCache(ttl_seconds=10)
    cache.set('a', 1)
    clock.now += 9
    assert cache.get('a') == 1
    clock.now += 2
    assert cache.get('a') is None
    assert len(cache) == 0


def test_sliding_entries_stay_alive_while_used(clock):
    cache = TTLCache(ttl_seconds=10, sliding=True)
    cache.set('ctx', 'state')
    for _ in range(5):
        clock.now += 8
        assert cache.get('ctx') == 'state'
    clock.now += 11
    assert cache.get('ctx') is None


def test_pop(clock):
    cache = TTLCache(ttl_seconds=10)
    cache.set('a', 1)
    assert cache.pop('a') == 1
    assert cache.pop('a') is None


def test_retries_transient_errors(app):
    calls = []

    @with_db_resilience(max_retries=2, backoff_ms=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError('SELECT 1', {}, Exception('server closed the connection'))
        return 'ok'

    with app.app_context():
        assert flaky() == 'ok'
    assert len(calls) == 3


def test_integrity_errors_are_not_retried(app):
    calls = []

    @with_db_resilience(max_retries=2, backoff_ms=0)
    def duplicate():
        calls.append(1)
        raise IntegrityError('INSERT', {}, Exception('UNIQUE constraint failed'))

    with app.app_context():
        with pytest.raises(IntegrityError):
            duplicate()
    assert len(calls) == 1
