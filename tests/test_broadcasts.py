from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from chatdesk.config import settings
from chatdesk.models import Broadcast, Message
from chatdesk.services.broadcast_service import create_broadcast, send_broadcast
from chatdesk.services.contact_service import upsert_contact
from chatdesk.services.errors import NotFoundError, ValidationError
from chatdesk.services.result import Result
from chatdesk.services.settings_service import get_whatsapp_config


def _sent(message_id):
    return Result(ok=True, value=message_id, details={"messages": [{"id": message_id}]})


class TestBroadcastService:
    def test_create_draft_and_scheduled(self, db_session):
        draft = create_broadcast(db_session, name="Promo", message="Sale today")
        scheduled = create_broadcast(
            db_session, name="Later", message="Soon", scheduled_for=datetime(2030, 1, 1, 10, tzinfo=timezone.utc)
        )

        assert draft.status == "draft"
        assert scheduled.status == "scheduled"

    def test_create_requires_name_and_message(self, db_session):
        with pytest.raises(ValidationError):
            create_broadcast(db_session, name="Promo", message="")

    @patch("chatdesk.services.broadcast_service.send_text_message")
    def test_send_to_all_contacts_by_default(self, mock_send, db_session):
        upsert_contact(db_session, "100", "Ann", "hi")
        upsert_contact(db_session, "200", "Bob", "hey")
        broadcast = create_broadcast(db_session, name="Promo", message="Sale today")
        mock_send.side_effect = [_sent("wamid.1"), _sent("wamid.2")]

        results = send_broadcast(db_session, get_whatsapp_config(db_session), broadcast.id)

        assert results == {"total": 2, "sent": 2, "failed": 0, "errors": []}
        assert broadcast.status == "sent"
        assert broadcast.sent_at is not None
        stored = db_session.query(Message).filter(Message.broadcast_id == broadcast.id).all()
        assert sorted(m.wa_id for m in stored) == ["100", "200"]
        assert all(m.direction == "outbound" for m in stored)

    @patch("chatdesk.services.broadcast_service.send_text_message")
    def test_partial_failure_is_collected(self, mock_send, db_session):
        broadcast = create_broadcast(db_session, name="Promo", message="Sale")
        mock_send.side_effect = [
            _sent("wamid.1"),
            Result.failure("WhatsApp API error: 400", "provider_error", details={"error": {"code": 131026}}),
        ]

        results = send_broadcast(
            db_session,
            get_whatsapp_config(db_session),
            broadcast.id,
            [{"phoneNumber": "100"}, {"phoneNumber": "200"}],
        )

        assert results["sent"] == 1
        assert results["failed"] == 1
        assert results["errors"] == [{"recipient": "200", "error": {"error": {"code": 131026}}}]

    def test_send_without_recipients(self, db_session):
        broadcast = create_broadcast(db_session, name="Promo", message="Sale")
        with pytest.raises(ValidationError):
            send_broadcast(db_session, get_whatsapp_config(db_session), broadcast.id)

    def test_send_unknown_broadcast(self, db_session):
        with pytest.raises(NotFoundError):
            send_broadcast(db_session, get_whatsapp_config(db_session), "missing", [{"phoneNumber": "1"}])


class TestBroadcastsAPI:
    def test_crud(self, client, db_session):
        created = client.post(
            "/broadcasts",
            json={"name": "Promo", "message": "Sale", "recipients": [{"phoneNumber": "100", "name": "Ann"}]},
        )
        assert created.status_code == 200
        broadcast_id = created.json()["broadcast"]["id"]
        assert created.json()["broadcast"]["recipients"] == [{"phoneNumber": "100", "name": "Ann"}]

        updated = client.put("/broadcasts", json={"id": broadcast_id, "message": "Bigger sale"})
        assert updated.json()["broadcast"]["message"] == "Bigger sale"

        assert len(client.get("/broadcasts").json()["broadcasts"]) == 1

        assert client.delete("/broadcasts", params={"id": broadcast_id}).status_code == 200
        assert db_session.query(Broadcast).count() == 0

    def test_create_validation(self, client):
        assert client.post("/broadcasts", json={"name": "Promo"}).status_code == 400

    def test_update_invalid_status(self, client):
        broadcast_id = client.post("/broadcasts", json={"name": "P", "message": "M"}).json()["broadcast"]["id"]
        assert client.put("/broadcasts", json={"id": broadcast_id, "status": "bogus"}).status_code == 400

    @patch("chatdesk.services.broadcast_service.send_text_message")
    def test_send(self, mock_send, client):
        mock_send.return_value = _sent("wamid.B1")
        broadcast_id = client.post("/broadcasts", json={"name": "P", "message": "M"}).json()["broadcast"]["id"]

        response = client.post(
            "/broadcasts/send",
            json={"broadcastId": broadcast_id, "recipients": [{"phone_number": "100"}]},
        )

        assert response.status_code == 200
        assert response.json()["results"]["sent"] == 1
        assert response.json()["message"] == "Broadcast sent to 1 out of 1 recipients"

    def test_send_unknown(self, client):
        response = client.post("/broadcasts/send", json={"broadcastId": "missing", "recipients": [{"waId": "1"}]})
        assert response.status_code == 404

    def test_send_without_config(self, client, monkeypatch):
        monkeypatch.setattr(settings, "whatsapp_token", "")
        response = client.post("/broadcasts/send", json={"broadcastId": "any"})
        assert response.status_code == 400
