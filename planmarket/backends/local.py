"""
Local backend.

Implements the hosted service's query and auth contracts on top of the
Flask-SQLAlchemy models, for development and tests. Sessions are opaque
tokens kept in an in-process TTL cache, so they expire like remote ones.
"""

from __future__ import annotations

import functools
import logging
import secrets

from sqlalchemy.exc import SQLAlchemyError

from planmarket.backends.base import AuthSession, Backend, Result
from planmarket.extensions import db
from planmarket.models import TABLE_MODELS, AuthAccount
from planmarket.utils.db_resilience import with_db_resilience
from planmarket.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


class _QueryError(ValueError):
    pass


def _guarded(func):
    """Run with retries; turn database errors into failed results."""
    retried = with_db_resilience(max_retries=2, backoff_ms=50)(func)

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return retried(self, *args, **kwargs)
        except _QueryError as exc:
            return Result.failure(exc)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error('Local backend %s failed: %s', func.__name__, exc)
            return Result.failure(exc.__class__.__name__ + ': ' + str(getattr(exc, 'orig', exc)))

    return wrapper


def _model_for(table):
    model = TABLE_MODELS.get(table)
    if model is None:
        raise _QueryError(f'relation "{table}" does not exist')
    return model


def _column(model, name):
    if name not in model.__table__.columns:
        raise _QueryError(f'column {model.__tablename__}.{name} does not exist')
    return getattr(model, name)


def _apply_predicates(query, model, predicates):
    orderings = []
    for predicate in predicates:
        column = _column(model, predicate.field)
        if predicate.op == 'eq':
            query = query.filter(column.is_(None) if predicate.value is None else column == predicate.value)
        elif predicate.op == 'gte':
            query = query.filter(column >= predicate.value)
        elif predicate.op == 'lte':
            query = query.filter(column <= predicate.value)
        elif predicate.op == 'in':
            query = query.filter(column.in_(list(predicate.value)))
        elif predicate.op == 'order':
            orderings.append(column.desc() if predicate.value == 'desc' else column.asc())
    if orderings:
        query = query.order_by(*orderings)
    return query


def _writable(model, row):
    unknown = [key for key in row if key not in model.__table__.columns]
    if unknown:
        raise _QueryError(f'column {model.__tablename__}.{unknown[0]} does not exist')
    # Timestamps are assigned by the database.
    return {key: value for key, value in row.items() if key != 'created_at'}


class LocalBackend(Backend):
    name = 'local'

    def __init__(self, session_ttl_seconds: int = 3600):
        self._sessions: TTLCache[str, str] = TTLCache(ttl_seconds=session_ttl_seconds, max_items=10000)

    # Query interface

    @_guarded
    def select(self, table, predicates=(), auth=None):
        model = _model_for(table)
        query = _apply_predicates(model.query, model, predicates)
        return Result(data=[row.to_record() for row in query.all()])

    @_guarded
    def insert(self, table, row, auth=None):
        model = _model_for(table)
        record = model(**_writable(model, dict(row)))
        db.session.add(record)
        db.session.commit()
        return Result(data=record.to_record())

    @_guarded
    def update(self, table, values, predicates, auth=None):
        model = _model_for(table)
        changes = _writable(model, dict(values))
        rows = _apply_predicates(model.query, model, predicates).all()
        for record in rows:
            for key, value in changes.items():
                setattr(record, key, value)
        db.session.commit()
        return Result(data=[record.to_record() for record in rows])

    @_guarded
    def delete(self, table, predicates, auth=None):
        model = _model_for(table)
        rows = _apply_predicates(model.query, model, predicates).all()
        deleted = [record.to_record() for record in rows]
        for record in rows:
            db.session.delete(record)
        db.session.commit()
        return Result(data=deleted)

    # Auth interface

    def _issue_session(self, account):
        token = secrets.token_urlsafe(32)
        self._sessions.set(token, account.id)
        return AuthSession(
            user_id=account.id,
            email=account.email,
            access_token=token,
            user_metadata=dict(account.user_metadata or {}),
        )

    @_guarded
    def sign_up(self, email, password, metadata, redirect_url=None):
        if AuthAccount.query.filter_by(email=email).first() is not None:
            return Result(error='User already registered')
        account = AuthAccount(email=email, user_metadata=dict(metadata or {}))
        account.set_password(password)
        db.session.add(account)
        db.session.commit()
        return Result(data=self._issue_session(account))

    @_guarded
    def sign_in_with_password(self, email, password):
        account = AuthAccount.query.filter_by(email=email).first()
        if account is None or not account.check_password(password):
            return Result(error='Invalid login credentials')
        return Result(data=self._issue_session(account))

    @_guarded
    def get_session(self, auth):
        if auth is None or self._sessions.get(auth.access_token) != auth.user_id:
            return Result(data=None)
        account = db.session.get(AuthAccount, auth.user_id)
        if account is None:
            return Result(data=None)
        auth.user_metadata = dict(account.user_metadata or {})
        return Result(data=auth)

    @_guarded
    def update_user(self, auth, metadata):
        if auth is None or self._sessions.get(auth.access_token) != auth.user_id:
            return Result(error='Auth session missing!')
        account = db.session.get(AuthAccount, auth.user_id)
        if account is None:
            return Result(error='User not found')
        account.user_metadata = {**(account.user_metadata or {}), **dict(metadata)}
        db.session.commit()
        auth.user_metadata = dict(account.user_metadata)
        return Result(data=auth)

    def sign_out(self, auth):
        if auth is not None:
            self._sessions.pop(auth.access_token)
        return Result(data=None)
