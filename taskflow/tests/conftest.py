import sys
from pathlib import Path

import pytest
from flask_jwt_extended import create_access_token

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from taskflow import create_app
from taskflow.core.auth.password import hash_password
from taskflow.core.context import current_context
from taskflow.core.users.models import User
from taskflow.extensions import db


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")
    config.addinivalue_line("markers", "slow: Slow running tests")


@pytest.fixture()
def app():
    """Per-test app bound to a fresh in-memory database."""
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ctx(app):
    return current_context()


def _make_user(name: str, email: str) -> User:
    user = User(name=name, email=email, password_hash=hash_password("secret123"), settings={})
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def user(app):
    return _make_user("Ada", "ada@taskflow.dev")


@pytest.fixture()
def other_user(app):
    return _make_user("Grace", "grace@taskflow.dev")


@pytest.fixture()
def auth_headers(app, user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}


@pytest.fixture()
def other_headers(app, other_user):
    token = create_access_token(identity=str(other_user.id))
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
