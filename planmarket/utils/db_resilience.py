"""
Database resilience utilities for handling transient connection issues.

Used by the local backend: transient connection errors are retried with
backoff after a rollback and a pool refresh. Constraint violations are not
transient and are raised immediately.
"""

import functools
import time

from flask import current_app
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from planmarket.extensions import db


def with_db_resilience(max_retries=2, backoff_ms=100):
    """
    Decorator that adds automatic retry logic for database operations.

    Args:
        max_retries: Maximum number of retry attempts (default: 2)
        backoff_ms: Milliseconds to wait between retries (default: 100)

    Usage:
        @with_db_resilience(max_retries=3, backoff_ms=200)
        def my_database_query():
            return PlanRecord.query.all()
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except IntegrityError:
                    db.session.rollback()
                    raise
                except (OperationalError, DBAPIError) as exc:
                    try:
                        db.session.rollback()
                    except Exception as rollback_exc:
                        current_app.logger.error(
                            'Failed to rollback session after DB error: %s',
                            rollback_exc,
                            exc_info=True
                        )

                    if attempt >= max_retries:
                        current_app.logger.error(
                            'Database operation failed after %d attempts in %s: %s',
                            max_retries + 1,
                            func.__name__,
                            exc,
                        )
                        raise

                    # Dispose stale connections to force pool refresh
                    try:
                        db.engine.dispose()
                        current_app.logger.warning(
                            'DB connection pool disposed after error in %s (attempt %d/%d): %s',
                            func.__name__,
                            attempt + 1,
                            max_retries + 1,
                            str(exc)
                        )
                    except Exception as dispose_exc:
                        current_app.logger.error(
                            'Failed to dispose engine after DB error: %s',
                            dispose_exc,
                            exc_info=True
                        )

                    if backoff_ms > 0:
                        time.sleep(backoff_ms * (2 ** attempt) / 1000.0)

            raise RuntimeError('Unexpected retry loop exit')

        return wrapper
    return decorator
