"""Retry decorator for transient database errors."""

import pytest
from sqlalchemy.exc import OperationalError

from conftest import PASSWORD
from mindnav.models import User
from mindnav.utils.db_resilience import with_db_resilience


def dropped_connection():
    return OperationalError('SELECT 1', {}, Exception('server closed the connection unexpectedly'))


def test_retries_then_succeeds(app, db, monkeypatch):
    rollbacks = []
    monkeypatch.setattr(db.session, 'rollback', lambda: rollbacks.append(True))
    calls = []

    @with_db_resilience(max_retries=2, backoff_ms=0)
    def count_users():
        calls.append(True)
        if len(calls) == 1:
            raise dropped_connection()
        return User.query.count()

    assert count_users() == 0
    assert len(calls) == 2
    assert rollbacks == [True]


def test_gives_up_after_max_retries(app, db, monkeypatch):
    rollbacks = []
    monkeypatch.setattr(db.session, 'rollback', lambda: rollbacks.append(True))
    calls = []

    @with_db_resilience(max_retries=2, backoff_ms=0)
    def always_failing():
        calls.append(True)
        raise dropped_connection()

    with pytest.raises(OperationalError):
        always_failing()
    assert len(calls) == 3
    assert len(rollbacks) == 3


def test_other_errors_are_not_retried(app):
    calls = []

    @with_db_resilience(max_retries=2, backoff_ms=0)
    def broken():
        calls.append(True)
        raise KeyError('not a database problem')

    with pytest.raises(KeyError):
        broken()
    assert len(calls) == 1


def test_login_survives_one_dropped_connection(client, monkeypatch):
    client.post('/auth/register', json={'email': 'ada@mindnav.io', 'password': PASSWORD})
    client.post('/auth/logout')

    query_class = type(User.query)
    original_first = query_class.first
    failures = []

    def flaky_first(query):
        if not failures:
            failures.append(True)
            raise dropped_connection()
        return original_first(query)

    monkeypatch.setattr('mindnav.utils.db_resilience.time.sleep', lambda seconds: None)
    monkeypatch.setattr(query_class, 'first', flaky_first)

    response = client.post('/auth/login', json={'email': 'ada@mindnav.io', 'password': PASSWORD})
    assert response.status_code == 200
    assert failures == [True]
