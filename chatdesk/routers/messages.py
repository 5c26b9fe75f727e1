from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from chatdesk.database import get_db
from chatdesk.realtime import EVENT_API_DATA, manager
from chatdesk.schemas.message import ChatRequest, ChatResponse, SendMessageRequest, SendMessageResponse
from chatdesk.services.contact_service import get_contact, list_contacts, serialize_contact
from chatdesk.services.message_service import (
    get_chat_history,
    list_recent_messages,
    record_outbound,
    serialize_message,
)
from chatdesk.services.reply_service import resolve_reply
from chatdesk.services.settings_service import get_whatsapp_config
from chatdesk.services.whatsapp_service import send_text_message

router = APIRouter()


@router.post("/send-message", response_model=SendMessageResponse)
async def send_message(request: SendMessageRequest, db: Session = Depends(get_db)):
    """Send a manual message from the dashboard."""
    config = get_whatsapp_config(db)
    if not config.is_complete:
        raise HTTPException(status_code=400, detail="WhatsApp configuration missing")
    if not request.to or not request.message:
        raise HTTPException(status_code=400, detail="Missing required fields: to, message")

    result = send_text_message(config, request.to, request.message)
    if not result.ok:
        status_code = result.status_code if result.status_code and result.status_code >= 400 else 502
        raise HTTPException(
            status_code=status_code,
            detail={"error": "Failed to send message", "details": result.details or result.error},
        )

    contact = get_contact(db, request.to)
    event = record_outbound(
        db,
        wa_id=request.to,
        text=request.message,
        contact_name=contact.contact_name if contact else None,
        phone_number_id=config.phone_number_id,
        provider_message_id=result.value,
        reply_source="manual",
    )
    await manager.broadcast(EVENT_API_DATA, event)

    return SendMessageResponse(success=True, messageId=result.value, result=result.details)


@router.get("/contacts")
def get_contacts(db: Session = Depends(get_db)):
    contacts = [serialize_contact(contact) for contact in list_contacts(db)]
    return {"success": True, "contacts": contacts, "count": len(contacts)}


@router.get("/chat-history/{wa_id}")
def chat_history(wa_id: str, limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)):
    messages = [serialize_message(message) for message in get_chat_history(db, wa_id, limit)]
    contact = get_contact(db, wa_id)
    return {
        "success": True,
        "contact": serialize_contact(contact) if contact else None,
        "messages": messages,
        "count": len(messages),
    }


@router.get("/messages")
def recent_messages(limit: int = Query(default=100, ge=1, le=1000), db: Session = Depends(get_db)):
    messages = [serialize_message(message) for message in list_recent_messages(db, limit)]
    return {"success": True, "messages": messages, "count": len(messages)}


@router.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest, db: Session = Depends(get_db)):
    """Preview the auto-reply for a message without sending anything."""
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    decision = resolve_reply(db, request.message, wa_id=request.waId)
    return ChatResponse(
        success=True,
        response=decision.text,
        source=decision.source,
        flowId=decision.flow_id,
        keywordId=decision.keyword_id,
    )
