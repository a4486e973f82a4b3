import os

# Settings are read at import time; configure them before any application import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.websockets import WebSocketState
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from regionchat.core.security import create_access_token, hash_password
from regionchat.database.storage import SqlChatStorage
from regionchat.services.chat_server import ChatServer

DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class DummyWebSocket:
    """Stands in for a connected WebSocket and records every frame sent to it."""

    def __init__(self, name: str = "ws"):
        self.name = name
        self.application_state = WebSocketState.CONNECTED
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)

    def close(self):
        self.application_state = WebSocketState.DISCONNECTED

    def frames(self, frame_type: str):
        return [frame for frame in self.sent if frame.get("type") == frame_type]

    def clear(self):
        self.sent.clear()

    def __repr__(self):
        return f"<DummyWebSocket {self.name}>"


class FakeNotifier:
    """Records SMS notifications instead of calling the provider."""

    def __init__(self, result: bool = True):
        self.result = result
        self.sent = []
        self.closed = False

    async def notify(self, phone_number: str, message: str) -> bool:
        self.sent.append((phone_number, message))
        return self.result

    async def close(self):
        self.closed = True


@pytest.fixture
async def storage():
    engine = create_async_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    storage = SqlChatStorage(engine)
    await storage.initialize()
    yield storage
    await storage.close()

@pytest.fixture
def notifier():
    return FakeNotifier()

@pytest.fixture
async def chat_server(storage, notifier):
    server = ChatServer(storage, notification_service=notifier)
    yield server
    await server.presence_service.drain()

@pytest.fixture
def make_ws():
    def _make(name: str = "ws") -> DummyWebSocket:
        return DummyWebSocket(name)
    return _make

@pytest.fixture
async def test_user(storage):
    return await storage.create_user("testuser", hash_password("password123"))

@pytest.fixture
def test_token(test_user):
    return create_access_token({"sub": test_user.username, "user_id": str(test_user.id)})
