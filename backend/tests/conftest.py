"""
Pytest fixtures for Starweb backend tests.

Provides the test application, a cleared database per test, users with
different permission maps, and authenticated test client headers.
"""

import pytest

from starweb import create_app
from starweb.config import TestConfig
from starweb.extensions import db
from starweb.services import auth_service


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return auth_service.create_user(username="admin", password=PASSWORD, is_admin=True)


@pytest.fixture(scope='function')
def clerk_user(db_session):
    """Fleet clerk: may read fleet data, nothing else."""
    return auth_service.create_user(
        username="clerk",
        password=PASSWORD,
        permissions={"fleet": ["view"]},
    )


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin", PASSWORD))


@pytest.fixture(scope='function')
def clerk_headers(client, clerk_user):
    return auth_headers(get_auth_token(client, "clerk", PASSWORD))


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
