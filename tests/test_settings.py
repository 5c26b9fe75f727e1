from unittest.mock import patch

from chatdesk.config import settings
from chatdesk.services.result import Result
from chatdesk.services.settings_service import (
    DEFAULT_SYSTEM_PROMPT,
    get_automation_config,
    get_settings_payload,
    get_whatsapp_config,
    save_settings,
)


class TestSettingsService:
    def test_defaults_without_stored_row(self, db_session):
        payload = get_settings_payload(db_session)

        assert payload["profile"]["name"] == "Admin User"
        assert payload["whatsapp"]["accessToken"] == "test-token-1234567890"
        assert payload["automation"]["systemPrompt"] == DEFAULT_SYSTEM_PROMPT

    def test_save_merges_sections(self, db_session):
        save_settings(db_session, {"profile": {"name": "Owner"}})
        payload = save_settings(db_session, {"profile": {"email": "owner@example.com"}})

        assert payload["profile"]["name"] == "Owner"
        assert payload["profile"]["email"] == "owner@example.com"
        assert payload["profile"]["phone"] == "+1234567890"

    def test_blank_stored_values_fall_back_to_environment(self, db_session):
        save_settings(db_session, {"whatsapp": {"accessToken": "  ", "phoneNumberId": "777"}})

        config = get_whatsapp_config(db_session)

        assert config.access_token == "test-token-1234567890"
        assert config.phone_number_id == "777"

    def test_automation_follows_environment_flag(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "ai_replies_enabled", False)
        assert get_automation_config(db_session).ai_enabled is False

        save_settings(db_session, {"automation": {"aiEnabled": True}})
        assert get_automation_config(db_session).ai_enabled is True


class TestSettingsAPI:
    def test_get_and_update(self, client):
        assert client.get("/settings").json()["settings"]["security"]["sessionTimeout"] == 30

        response = client.post("/settings", json={"security": {"twoFactorAuth": True}})

        assert response.status_code == 200
        security = response.json()["settings"]["security"]
        assert security == {"twoFactorAuth": True, "sessionTimeout": 30}

    def test_test_whatsapp_requires_fields(self, client):
        assert client.post("/settings/test-whatsapp", json={"accessToken": "t"}).status_code == 400

    @patch("chatdesk.routers.settings.check_connection")
    def test_test_whatsapp_success(self, mock_check, client):
        mock_check.return_value = Result.success({"phoneNumber": "+1 555", "verifiedName": "Acme"})

        response = client.post("/settings/test-whatsapp", json={"accessToken": "t", "phoneNumberId": "1"})

        assert response.status_code == 200
        assert response.json()["data"]["verifiedName"] == "Acme"
        mock_check.assert_called_once_with("t", "1")

    @patch("chatdesk.routers.settings.check_connection")
    def test_test_whatsapp_failure(self, mock_check, client):
        mock_check.return_value = Result.failure(
            "WhatsApp API connection failed", "provider_error", details={"error": {}}, status_code=401
        )

        response = client.post("/settings/test-whatsapp", json={"accessToken": "t", "phoneNumberId": "1"})

        assert response.status_code == 401


class TestConfigAPI:
    def test_get_config_masks_token(self, client):
        data = client.get("/config").json()

        assert data["hasConfig"] is True
        assert data["config"]["accessToken"] == "test-token..."
        assert data["config"]["phoneNumberId"] == "111222333"

    def test_update_config_requires_all_fields(self, client):
        response = client.post("/config", json={"accessToken": "abc", "phoneNumberId": "1"})
        assert response.status_code == 400

    def test_update_config_overrides_environment(self, client):
        response = client.post(
            "/config",
            json={
                "accessToken": "EAAnewtoken12345",
                "phoneNumberId": "555",
                "verifyToken": "verify-me",
                "webhookUrl": "https://new.example.com/webhook",
            },
        )

        assert response.status_code == 200
        assert response.json()["config"]["accessToken"] == "EAAnewtoke..."

        config = client.get("/config").json()["config"]
        assert config["phoneNumberId"] == "555"
        assert config["verifyToken"] == "verify-me"

    def test_health_reports_config(self, client):
        data = client.get("/health").json()

        assert data["status"] == "OK"
        assert data["config"] == {
            "hasAccessToken": True,
            "hasPhoneNumberId": True,
            "verifyToken": "123456",
            "webhookUrl": "https://example.com/webhook",
        }
