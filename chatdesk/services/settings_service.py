"""Stored dashboard settings and the effective WhatsApp / automation config."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from chatdesk.config import settings as env_settings
from chatdesk.logging_config import get_logger, mask_secret
from chatdesk.models import AppSettings

logger = get_logger("settings_service")

SETTINGS_ID = "app"
SECTIONS = ("profile", "notifications", "security", "whatsapp", "automation")

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly business chatbot. Always check predefined flows first. "
    "If no match, answer with short, polite, and helpful replies. "
    "Keep responses concise and professional."
)
DEFAULT_REPLY = (
    "Thanks for your message! 😊 Our team will get back to you shortly. "
    "You can ask me about our services, pricing, business hours or how to contact us."
)


@dataclass
class WhatsAppConfig:
    access_token: str
    phone_number_id: str
    verify_token: str
    webhook_url: str

    @property
    def is_complete(self) -> bool:
        return bool(self.access_token and self.phone_number_id)

    def masked(self) -> dict:
        return {
            "hasAccessToken": bool(self.access_token),
            "accessToken": mask_secret(self.access_token),
            "phoneNumberId": self.phone_number_id,
            "verifyToken": self.verify_token,
            "webhookUrl": self.webhook_url,
        }


@dataclass
class AutomationConfig:
    ai_enabled: bool
    system_prompt: str
    default_reply: str
    builtin_keywords_enabled: bool


def default_settings() -> dict:
    return {
        "profile": {
            "name": "Admin User",
            "email": "admin@example.com",
            "phone": "+1234567890",
        },
        "notifications": {
            "emailNotifications": True,
            "pushNotifications": True,
            "messageAlerts": True,
            "weeklyReports": False,
        },
        "security": {
            "twoFactorAuth": False,
            "sessionTimeout": 30,
        },
        "whatsapp": {
            "accessToken": env_settings.whatsapp_token,
            "phoneNumberId": env_settings.phone_number_id,
            "verifyToken": env_settings.verify_token,
            "webhookUrl": env_settings.webhook_url,
        },
        "automation": {
            "aiEnabled": env_settings.ai_replies_enabled,
            "systemPrompt": DEFAULT_SYSTEM_PROMPT,
            "defaultReply": DEFAULT_REPLY,
            "builtinKeywordsEnabled": True,
        },
    }


def get_app_settings(db: Session) -> Optional[AppSettings]:
    return db.query(AppSettings).filter(AppSettings.id == SETTINGS_ID).first()


def get_settings_payload(db: Session) -> dict:
    """Stored settings merged over the defaults."""
    payload = default_settings()
    row = get_app_settings(db)
    if not row:
        return payload

    for section in SECTIONS:
        stored = getattr(row, section) or {}
        payload[section] = {**payload[section], **stored}
    payload["id"] = row.id
    payload["updatedAt"] = row.updated_at
    return payload


def save_settings(db: Session, updates: dict) -> dict:
    """Merge the given sections into the stored settings row."""
    row = get_app_settings(db)
    now = datetime.now(timezone.utc)
    if not row:
        row = AppSettings(id=SETTINGS_ID, updated_at=now)
        db.add(row)

    for section in SECTIONS:
        values = updates.get(section)
        if values is None:
            continue
        current = dict(getattr(row, section) or {})
        current.update(values)
        setattr(row, section, current)

    row.updated_at = now
    db.flush()
    logger.info("Settings saved", extra={"context": {"sections": [s for s in SECTIONS if updates.get(s) is not None]}})
    return get_settings_payload(db)


def _pick(stored: dict, key: str, fallback: str) -> str:
    value = stored.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def get_whatsapp_config(db: Session) -> WhatsAppConfig:
    """Stored WhatsApp values win over environment values when non-empty."""
    row = get_app_settings(db)
    stored = (row.whatsapp if row else None) or {}
    return WhatsAppConfig(
        access_token=_pick(stored, "accessToken", env_settings.whatsapp_token),
        phone_number_id=_pick(stored, "phoneNumberId", env_settings.phone_number_id),
        verify_token=_pick(stored, "verifyToken", env_settings.verify_token),
        webhook_url=_pick(stored, "webhookUrl", env_settings.webhook_url),
    )


def save_whatsapp_config(
    db: Session,
    *,
    access_token: str,
    phone_number_id: str,
    verify_token: str,
    webhook_url: str,
) -> WhatsAppConfig:
    save_settings(
        db,
        {
            "whatsapp": {
                "accessToken": access_token,
                "phoneNumberId": phone_number_id,
                "verifyToken": verify_token,
                "webhookUrl": webhook_url,
            }
        },
    )
    config = get_whatsapp_config(db)
    logger.info("WhatsApp configuration updated", extra={"context": config.masked()})
    return config


def get_automation_config(db: Session) -> AutomationConfig:
    row = get_app_settings(db)
    stored = (row.automation if row else None) or {}
    ai_enabled = stored.get("aiEnabled")
    keywords_enabled = stored.get("builtinKeywordsEnabled")
    return AutomationConfig(
        ai_enabled=env_settings.ai_replies_enabled if ai_enabled is None else bool(ai_enabled),
        system_prompt=_pick(stored, "systemPrompt", DEFAULT_SYSTEM_PROMPT),
        default_reply=_pick(stored, "defaultReply", DEFAULT_REPLY),
        builtin_keywords_enabled=True if keywords_enabled is None else bool(keywords_enabled),
    )
