"""Shared fixtures: a throwaway SQLite database, users and an API client"""

import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="wishlists-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.database import AsyncSessionLocal, get_db_context, init_db, drop_db
from app.core.security import SecurityUtils
from app.api.v1.wishlists.crud import UserCRUD
from app.services.email_service import get_invitation_notifier

class FakeInvitationNotifier:
    """Records invitations instead of sending email"""

    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.sent = []

    async def notify(self, to_email, wishlist_name, inviter_name, join_link):
        self.sent.append({
            "to_email": to_email,
            "wishlist_name": wishlist_name,
            "inviter_name": inviter_name,
            "join_link": join_link,
        })
        if self.error:
            raise self.error
        return self.result

async def _create_user(username, email):
    async with get_db_context() as db:
        return await UserCRUD.create(db, username=username, email=email)

def auth_headers(user):
    token = SecurityUtils.create_access_token({
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
    })
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def notifier():
    fake = FakeInvitationNotifier()
    app.dependency_overrides[get_invitation_notifier] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_invitation_notifier, None)

@pytest.fixture
def client(notifier):
    with TestClient(app) as test_client:
        yield test_client
        test_client.portal.call(drop_db)

@pytest.fixture
def make_user(client):
    """Register a user and return it with its auth headers"""

    def factory(username):
        user = client.portal.call(_create_user, username, f"{username}@example.com")
        return user, auth_headers(user)

    return factory

@pytest.fixture
async def db():
    """Session on freshly created tables, for store level tests"""
    await init_db()
    async with AsyncSessionLocal() as session:
        yield session
    await drop_db()

@pytest.fixture
async def users(db):
    """Three registered users: x, y and z"""
    created = {}
    for name in ("x", "y", "z"):
        created[name] = await UserCRUD.create(db, username=name, email=f"{name}@example.com")
    return created
