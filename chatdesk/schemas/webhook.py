from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookProfile(BaseModel):
    name: Optional[str] = None


class WebhookContact(BaseModel):
    wa_id: Optional[str] = None
    profile: Optional[WebhookProfile] = None


class WebhookText(BaseModel):
    body: Optional[str] = None


class WebhookMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(default=None, alias="from")
    id: Optional[str] = None
    timestamp: Optional[str] = None
    type: Optional[str] = "text"
    text: Optional[WebhookText] = None
    profile: Optional[WebhookProfile] = None


class WebhookMetadata(BaseModel):
    display_phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None


class WebhookValue(BaseModel):
    messaging_product: Optional[str] = None
    metadata: Optional[WebhookMetadata] = None
    contacts: List[WebhookContact] = []
    messages: List[WebhookMessage] = []
    statuses: Optional[list] = None


class WebhookChange(BaseModel):
    field: Optional[str] = None
    value: Optional[WebhookValue] = None


class WebhookEntry(BaseModel):
    id: Optional[str] = None
    changes: List[WebhookChange] = []


class WebhookPayload(BaseModel):
    object: Optional[str] = None
    entry: List[WebhookEntry] = []


class InboundMessage(BaseModel):
    """One inbound chat message extracted from a webhook payload."""

    wa_id: str
    contact_name: str
    text: str = ""
    type: str = "text"
    phone_number_id: Optional[str] = None
    provider_message_id: Optional[str] = None
    timestamp: datetime


class SimulatedWebhookRequest(BaseModel):
    message: Optional[str] = None


class SocketPingRequest(BaseModel):
    message: Optional[str] = None
