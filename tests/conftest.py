"""Test configuration and fixtures."""

import os
import pytest
import tempfile
from pathlib import Path

from mindnav import create_app
from mindnav.extensions import db as _db
from mindnav.models import User
from mindnav.services.subscriptions import activate_premium


PASSWORD = 'correct-horse-battery'


@pytest.fixture
def app():
    """Create application for testing."""
    db_fd, db_path = tempfile.mkstemp()

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'STRIPE_WEBHOOK_SECRET': None,
        'STRIPE_PAYMENT_LINK': 'https://buy.stripe.com/test_link',
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()

    os.close(db_fd)
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def client(app):
    """Test client for making requests."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """CLI test runner."""
    return app.test_cli_runner()


@pytest.fixture
def db(app):
    """Database fixture."""
    return _db


def register(client, email='ada@mindnav.io', password=PASSWORD):
    return client.post('/auth/register', json={'email': email, 'password': password})


@pytest.fixture
def auth_client(client):
    """Client signed in as a freshly registered, non-premium user."""
    response = register(client)
    assert response.status_code == 201
    return client


@pytest.fixture
def user(auth_client):
    return User.query.filter_by(email='ada@mindnav.io').first()


@pytest.fixture
def premium_client(auth_client, user):
    """Signed-in client whose account has premium."""
    activate_premium(user.id, customer_id='cus_test', subscription_id='sub_test')
    return auth_client


def add_node(client, kind, text=None):
    payload = {'type': kind}
    if text:
        payload['text'] = text
    response = client.post('/canvas/nodes', json=payload)
    assert response.status_code == 201
    return response.get_json()


def set_weight(client, node_id, weight):
    response = client.patch(f'/canvas/nodes/{node_id}', json={'weight': weight})
    assert response.status_code == 200
    return response.get_json()


def connect(client, source, target):
    return client.post('/canvas/connections', json={'from': source, 'to': target}).get_json()
