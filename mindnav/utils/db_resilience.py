"""
Retry helpers for transient database failures.

Wraps store functions so that a dropped connection or an exhausted pool is
retried a couple of times with exponential backoff before the error surfaces
to the route, which reports it as a recoverable failure.
"""

import functools
import time
from flask import current_app
from sqlalchemy.exc import OperationalError, DBAPIError
from mindnav.extensions import db


def _rollback_quietly():
    try:
        db.session.rollback()
    except Exception as rollback_exc:
        current_app.logger.error('Failed to rollback session after DB error: %s', rollback_exc, exc_info=True)


def with_db_resilience(max_retries=2, backoff_ms=100):
    """
    Retry the wrapped callable on ``OperationalError``/``DBAPIError``.

    Args:
        max_retries: retry attempts after the first failure
        backoff_ms: base delay; doubles after every failed attempt

    Non-database exceptions propagate immediately.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (OperationalError, DBAPIError) as exc:
                    _rollback_quietly()

                    if attempt >= max_retries:
                        current_app.logger.error(
                            'Database operation %s failed after %d attempts: %s',
                            func.__name__,
                            attempt + 1,
                            exc,
                            exc_info=True,
                        )
                        raise

                    # Drop pooled connections so the retry opens a fresh one
                    try:
                        db.engine.dispose()
                    except Exception as dispose_exc:
                        current_app.logger.error('Failed to dispose engine after DB error: %s', dispose_exc, exc_info=True)

                    current_app.logger.warning(
                        'Retrying %s after DB error (attempt %d/%d): %s',
                        func.__name__,
                        attempt + 1,
                        max_retries + 1,
                        exc,
                    )
                    if backoff_ms > 0:
                        time.sleep(backoff_ms * (2 ** attempt) / 1000.0)

        return wrapper
    return decorator
