from typing import Optional

from pydantic import BaseModel


class SettingsUpdate(BaseModel):
    profile: Optional[dict] = None
    notifications: Optional[dict] = None
    security: Optional[dict] = None
    whatsapp: Optional[dict] = None
    automation: Optional[dict] = None


class WhatsAppConfigRequest(BaseModel):
    accessToken: Optional[str] = None
    phoneNumberId: Optional[str] = None
    verifyToken: Optional[str] = None
    webhookUrl: Optional[str] = None


class WhatsAppCheckRequest(BaseModel):
    accessToken: Optional[str] = None
    phoneNumberId: Optional[str] = None
