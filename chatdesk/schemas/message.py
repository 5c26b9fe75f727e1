from typing import Optional

from pydantic import BaseModel


class SendMessageRequest(BaseModel):
    to: Optional[str] = None
    message: Optional[str] = None


class SendMessageResponse(BaseModel):
    success: bool
    messageId: Optional[str] = None
    result: Optional[dict] = None


class ChatRequest(BaseModel):
    message: Optional[str] = None
    waId: Optional[str] = None


class ChatResponse(BaseModel):
    success: bool
    response: str
    source: str
    flowId: Optional[str] = None
    keywordId: Optional[str] = None
