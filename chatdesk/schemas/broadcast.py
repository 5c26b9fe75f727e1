from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class Recipient(BaseModel):
    phoneNumber: str = Field(validation_alias=AliasChoices("phoneNumber", "phone_number", "waId"))
    name: Optional[str] = None


class BroadcastCreate(BaseModel):
    name: Optional[str] = None
    message: Optional[str] = None
    recipients: List[Recipient] = []
    scheduledFor: Optional[datetime] = None


class BroadcastUpdate(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    message: Optional[str] = None
    recipients: Optional[List[Recipient]] = None
    status: Optional[str] = None
    scheduledFor: Optional[datetime] = None


class BroadcastSendRequest(BaseModel):
    broadcastId: Optional[str] = None
    recipients: Optional[List[Recipient]] = None
