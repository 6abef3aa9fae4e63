"""
Pytest fixtures and configuration for plantpal tests.

Provides:
- Test client with an isolated database
- In-memory presence store and a gateway with a stubbed Socket.IO server
- Token helpers for the handshake gate
"""

from datetime import datetime, timedelta
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from plantpal.config import settings
from plantpal.main import app
from plantpal.models.database import Base, get_db
from plantpal.models.device import Device
from plantpal.models.user import User
from plantpal.api.dependencies import get_gateway, get_shadow_client
from plantpal.realtime.gateway import PresenceGateway
from plantpal.services.presence_store import PresenceRecord


# Test database (separate from production)
TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Provide test database session."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)


# ============================================================
# Realtime Fixtures
# ============================================================

class InMemoryPresenceStore:
    """PresenceStore keeping user_id -> socket_id in a dict."""

    def __init__(self, users: Optional[dict] = None):
        self.users = dict(users or {})

    async def get_user_by_id(self, user_id):
        if user_id not in self.users:
            return None
        return PresenceRecord(user_id=user_id, socket_id=self.users[user_id])

    async def update_user_socket_id(self, user_id, socket_id):
        if user_id not in self.users:
            return None
        self.users[user_id] = socket_id
        return PresenceRecord(user_id=user_id, socket_id=socket_id)

    async def get_user_by_socket(self, socket_id):
        for user_id, sid in self.users.items():
            if sid == socket_id:
                return PresenceRecord(user_id=user_id, socket_id=sid)
        return None


@pytest.fixture
def presence_store():
    """Store with users 1 and 2, both offline."""
    return InMemoryPresenceStore({1: None, 2: None})


@pytest.fixture
def gateway(presence_store):
    """Started gateway whose Socket.IO server calls are recorded, not sent."""
    gw = PresenceGateway(presence_store)
    gw.init(FastAPI())
    gw.start()

    gw.server.save_session = AsyncMock()
    gw.server.enter_room = AsyncMock()
    gw.server.emit = AsyncMock()
    return gw


def make_token(claims: Optional[dict] = None, secret: Optional[str] = None, expires_in: int = 15) -> str:
    """Sign an access token the way the auth service does."""
    payload = {"user_id": 1, "exp": datetime.utcnow() + timedelta(minutes=expires_in)}
    payload.update(claims or {})
    return jwt.encode(
        payload,
        secret or settings.AUTH_ACCESS_TOKEN_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )


# ============================================================
# HTTP Fixtures
# ============================================================

@pytest.fixture
def api_headers():
    """Headers sent by the IoT bridge functions."""
    return {"x-api-key": settings.API_KEY}


@pytest.fixture
def shadow_client():
    return MagicMock()


@pytest.fixture(scope="function")
def client(db_session, gateway, shadow_client):
    """Test client with fresh database, stub gateway and shadow client."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_shadow_client] = lambda: shadow_client

    yield TestClient(app)

    # CRITICAL: Clean up override after test to not affect production
    app.dependency_overrides.clear()


# ============================================================
# Helper Functions
# ============================================================

def create_test_user(db, user_id=1, email="grower@example.com", socket_id=None):
    """Helper to insert a user and return it."""
    user = User(
        user_id=user_id,
        first_name="Test",
        last_name="Grower",
        email=email,
        socket_id=socket_id
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_test_device(db, user_id=1, thing_name="plantpal-0001", cat_num="PP-0001"):
    """Helper to insert a device owned by ``user_id``."""
    device = Device(
        user_id=user_id,
        cat_num=cat_num,
        location="Kitchen",
        thing_name=thing_name
    )
    db.add(device)
    db.commit()
    db.refresh(device)
    return device
