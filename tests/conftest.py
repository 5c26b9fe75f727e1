from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import chatdesk.models  # noqa: F401
from chatdesk.config import settings
from chatdesk.database import Base, get_db
from chatdesk.main import app


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep tests independent of any local .env."""
    monkeypatch.setattr(settings, "whatsapp_token", "test-token-1234567890")
    monkeypatch.setattr(settings, "phone_number_id", "111222333")
    monkeypatch.setattr(settings, "verify_token", "123456")
    monkeypatch.setattr(settings, "webhook_url", "https://example.com/webhook")
    monkeypatch.setattr(settings, "graph_api_base_url", "https://graph.facebook.com")
    monkeypatch.setattr(settings, "graph_api_version", "v20.0")
    monkeypatch.setattr(settings, "openai_api_key", "")
    monkeypatch.setattr(settings, "ai_replies_enabled", True)
    monkeypatch.setattr(settings, "broadcast_send_delay_seconds", 0)


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def mock_db():
    """Mock database session."""
    return Mock()


def _make_inbound_payload(
    wa_id: str = "15551234567",
    body: str = "hello",
    message_id: str = "wamid.TEST1",
    name: str = "Alice",
    phone_number_id: str = "111222333",
) -> dict:
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA_ID",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15550000000",
                                "phone_number_id": phone_number_id,
                            },
                            "contacts": [{"profile": {"name": name}, "wa_id": wa_id}],
                            "messages": [
                                {
                                    "from": wa_id,
                                    "id": message_id,
                                    "timestamp": "1700000000",
                                    "text": {"body": body},
                                    "type": "text",
                                }
                            ],
                        },
                    }
                ],
            }
        ],
    }


@pytest.fixture
def inbound_payload():
    """Factory for Cloud API message callbacks."""
    return _make_inbound_payload
