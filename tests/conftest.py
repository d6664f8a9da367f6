# tests/conftest.py
import time
from unittest.mock import MagicMock

import jwt
import pytest

from app import create_app
from app.config import Config
from db.extensions import db
from models.adminUser import AdminUser
from models.user import User
from models.vendor import Vendor

USER_JWT_SECRET = 'test-user-secret'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MAIL_SUPPRESS_SEND = True
    ADMIN_NOTIFICATION_EMAIL = None
    AUTH_JWT_SECRET = USER_JWT_SECRET
    ADMIN_JWT_SECRET = 'test-admin-secret'
    ADMIN_COOKIE_SECURE = False
    CORS_ORIGINS = ['http://localhost:3000']
    CLOUDINARY_CLOUD_NAME = None
    CLOUDINARY_API_KEY = None
    CLOUDINARY_API_SECRET = None


@pytest.fixture(scope="function")
def mock_redis(monkeypatch):
    """In-memory stand-in for the Redis client used by the login limiter."""
    store = {}
    client = MagicMock()
    client.get.side_effect = lambda key: store.get(key)

    def incr(key):
        store[key] = store.get(key, 0) + 1
        return store[key]

    client.incr.side_effect = incr
    client.expire.return_value = True
    client.ttl.return_value = 900
    client.delete.side_effect = lambda key: store.pop(key, None)
    client.ping.return_value = True

    monkeypatch.setattr('services.rate_limiter.redis_client', client)
    monkeypatch.setattr('db.extensions.redis_client', client)
    client.store = store
    return client


@pytest.fixture(scope="function")
def app(mock_redis):
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(user_id, email=None, full_name=None, secret=USER_JWT_SECRET, expires_in=3600):
    payload = {
        'sub': user_id,
        'email': email or f'{user_id}@example.com',
        'aud': 'authenticated',
        'exp': int(time.time()) + expires_in,
        'user_metadata': {'full_name': full_name or user_id.title()},
    }
    return jwt.encode(payload, secret, algorithm='HS256')


@pytest.fixture
def auth_headers():
    """Factory for ``Authorization`` headers of a given user id."""
    def _headers(user_id='customer-1', **kwargs):
        return {'Authorization': f'Bearer {make_token(user_id, **kwargs)}'}
    return _headers


@pytest.fixture
def make_vendor(app):
    """Create a user plus vendor row; keyword arguments override vendor fields."""
    def _make(user_id='vendor-owner-1', **fields):
        user = db.session.get(User, user_id)
        if user is None:
            user = User(id=user_id, email=f'{user_id}@example.com', full_name='Owner')
            db.session.add(user)
        values = {
            'business_name': 'Taco Truck',
            'business_type': 'food',
            'subcategory': 'tacos',
            'status': 'approved',
        }
        values.update(fields)
        vendor = Vendor(user_id=user_id, **values)
        db.session.add(vendor)
        db.session.commit()
        return vendor
    return _make


@pytest.fixture
def admin_client(app, client):
    """Test client carrying a valid admin-token cookie."""
    admin = AdminUser(username='admin', email='admin@example.com')
    admin.set_password('s3cret-pass')
    db.session.add(admin)
    db.session.commit()

    response = client.post('/api/admin/login', json={'username': 'admin', 'password': 's3cret-pass'})
    assert response.status_code == 200
    return client
