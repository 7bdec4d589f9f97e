"""
Test Configuration and Fixtures

Uses an in-memory SQLite database unless TEST_DATABASE_URL is set, e.g.
TEST_DATABASE_URL=mysql+pymysql://root@localhost:3306/issuedesk_test
"""
import pytest
import os

# Set test environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from app import create_app, db
from app.models import User, AdminSettings


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app('testing')
    app.config.update({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'SECRET_KEY': 'test-secret-key'
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Test client for making requests"""
    return app.test_client()


def _make_user(email, password, role, name=None, is_active=True):
    user = User(email=email, name=name, role=role, is_active=is_active)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(app):
    """Create an admin user"""
    return _make_user('admin@example.com', 'AdminPass123', 'admin', name='Ada Admin')


@pytest.fixture
def second_admin(app):
    """Another admin, to check alerts fan out"""
    return _make_user('oncall@example.com', 'OncallPass123', 'admin', name='On Call')


@pytest.fixture
def regular_user(app):
    """Create a non-admin user"""
    return _make_user('user@example.com', 'UserPass123', 'user', name='Regular User')


@pytest.fixture
def notifications_off(app):
    """Admin settings with alert emails disabled"""
    settings = AdminSettings(id='default', email_notifications_enabled=False, notification_level='error')
    db.session.add(settings)
    db.session.commit()
    return settings


def login_user(client, email, password):
    """Helper function to log in a user"""
    return client.post('/auth/login', json={
        'email': email,
        'password': password
    })


def login_admin(client):
    return login_user(client, 'admin@example.com', 'AdminPass123')
