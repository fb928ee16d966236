import itertools
from datetime import timedelta

import pytest

from api import create_app
from models import Role, utcnow
from utils.security import hash_password

PASSWORD = "Secret#123"


@pytest.fixture()
def app():
    app = create_app("testing")
    yield app
    app.extensions["storage"].drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def guard(app):
    return app.extensions["guard"]


@pytest.fixture()
def make_user(app):
    counter = itertools.count(1)

    def _make(username=None, role=Role.USER, password=PASSWORD):
        username = username or f"user{next(counter)}"
        with app.app_context():
            return app.extensions["users"].create(
                username=username,
                email=f"{username}@mail.com",
                firstname="Test",
                lastname="User",
                password_hash=hash_password(password),
                role=role,
            )

    return _make


@pytest.fixture()
def login(client):
    """Log `user` in through the API; the client keeps the refreshToken cookie."""
    def _login(user, password=PASSWORD):
        response = client.post("/api/v1/auth/login", json={"login": user.username, "password": password})
        assert response.status_code == 200, response.get_json()
        return response.get_json()["accessToken"]

    return _login


@pytest.fixture()
def expired_access(guard):
    def _expired(user):
        token, _ = guard.issuer.access_signer.sign(user.id, now=utcnow() - timedelta(hours=1))
        return f"Bearer {token}"

    return _expired


@pytest.fixture()
def ban_user(app):
    def _ban(user, start_at=None, end_at=None, reason="Spam"):
        with app.app_context():
            return app.extensions["bans"].create(
                user_id=user.id,
                admin_id=None,
                start_at=start_at or utcnow() - timedelta(minutes=1),
                end_at=end_at,
                reason=reason,
            )

    return _ban
