import pytest

from app import create_app

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'admin-pass-123'


@pytest.fixture
def make_app(tmp_path):
    """Build an app with throwaway SQLite files; extra config overrides the test defaults."""
    def _make(**overrides):
        test_config = {
            'TESTING': True,
            'SECRET_KEY': 'test-secret',
            'ANALYTICS_DATABASE': str(tmp_path / 'analytics.db'),
            'USERS_DATABASE': str(tmp_path / 'users.db'),
            'DEFAULT_ADMIN_NAME': 'Admin',
            'DEFAULT_ADMIN_EMAIL': ADMIN_EMAIL,
            'DEFAULT_ADMIN_PASSWORD': ADMIN_PASSWORD,
            'TWITCH_CLIENT_ID': '',
            'TWITCH_CLIENT_SECRET': '',
            'LOG_LEVEL': 'WARNING',
            'LOG_FORMAT': 'console',
        }
        test_config.update(overrides)
        return create_app(test_config)
    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def ctx(app):
    """App context for calling the data layer directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


@pytest.fixture
def admin_client(app):
    c = app.test_client()
    resp = login(c, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert resp.status_code == 200
    return c


@pytest.fixture
def user_client(app):
    """Logged in as a plain (non-admin) user."""
    import users

    with app.app_context():
        users.create_user('Regular', 'user@example.com', 'user-pass-123', role='user')
    c = app.test_client()
    assert login(c, 'user@example.com', 'user-pass-123').status_code == 200
    return c
