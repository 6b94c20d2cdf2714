"""
Shared fixtures: fake channel/generation clients and an API test client
"""
import os

# Must be set before academy_support.core.database creates its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from academy_support.core.config import settings
from academy_support.core.database import Base, get_db
from academy_support.core.errors import ChannelDeliveryError
import academy_support.models  # noqa: F401

TELEGRAM_SECRET = "tg-secret"
VAPI_SECRET = "vapi-secret"
ADMIN_TOKEN = "admin-token"


class FakeTextGenerator:
    """Deterministic text generator; set .error to make every call fail"""

    def __init__(self, reply="Choice is an illusion. Try resetting your password."):
        self.reply = reply
        self.error = None
        self.calls = []

    async def generate(self, persona, history, message):
        self.calls.append({"persona": persona, "history": list(history), "message": message})
        if self.error is not None:
            raise self.error
        return self.reply


class FakeTelegramClient:
    """Records outbound Telegram calls; set .fail to simulate delivery errors"""

    def __init__(self):
        self.sent = []
        self.callback_answers = []
        self.fail = False

    async def send_message(self, chat_id, text, reply_markup=None):
        if self.fail:
            raise ChannelDeliveryError("Telegram sendMessage failed", details={"error_code": 403})
        self.sent.append({"chat_id": chat_id, "text": text})
        return {"message_id": 1000 + len(self.sent)}

    async def answer_callback_query(self, callback_query_id, text=None):
        self.callback_answers.append(callback_query_id)
        return {}


@pytest.fixture
def fake_generator():
    return FakeTextGenerator()


@pytest.fixture
def fake_telegram():
    return FakeTelegramClient()


@pytest.fixture
def session_factory():
    """Session factory over a single shared in-memory SQLite connection"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def client(session_factory, fake_generator, fake_telegram, monkeypatch):
    """API client with store, text generator and Telegram transport overridden"""
    from academy_support.main import app
    from academy_support.api.deps import get_text_generator
    from academy_support.services.telegram_client import get_telegram_client

    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", TELEGRAM_SECRET)
    monkeypatch.setattr(settings, "VAPI_WEBHOOK_SECRET", VAPI_SECRET)
    monkeypatch.setattr(settings, "ADMIN_API_TOKEN", ADMIN_TOKEN)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_text_generator] = lambda: fake_generator
    app.dependency_overrides[get_telegram_client] = lambda: fake_telegram

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()
