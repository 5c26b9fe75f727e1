import time
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatdesk.logging_config import get_logger
from chatdesk.models import Message
from chatdesk.services.contact_service import upsert_contact

logger = get_logger("message_service")

INBOUND = "inbound"
OUTBOUND = "outbound"


def save_message(
    db: Session,
    *,
    wa_id: str,
    text: str,
    direction: str,
    contact_name: Optional[str] = None,
    message_type: str = "text",
    phone_number_id: Optional[str] = None,
    provider_message_id: Optional[str] = None,
    original_message: Optional[str] = None,
    reply_source: Optional[str] = None,
    broadcast_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> Message:
    """Save message to database."""
    now = datetime.now(timezone.utc)
    message = Message(
        wa_id=wa_id,
        contact_name=contact_name,
        text=text or "",
        type=message_type or "text",
        direction=direction,
        phone_number_id=phone_number_id,
        provider_message_id=provider_message_id,
        original_message=original_message,
        reply_source=reply_source,
        broadcast_id=broadcast_id,
        timestamp=timestamp or now,
        created_at=now,
    )
    db.add(message)
    db.flush()
    return message


def find_by_provider_message_id(db: Session, provider_message_id: Optional[str]) -> Optional[Message]:
    if not provider_message_id:
        return None
    return db.query(Message).filter(Message.provider_message_id == provider_message_id).first()


def get_chat_history(db: Session, wa_id: str, limit: int = 50) -> List[Message]:
    """Last `limit` messages of a contact, oldest first."""
    rows = (
        db.query(Message)
        .filter(Message.wa_id == wa_id)
        .order_by(Message.timestamp.desc(), Message.created_at.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(rows))


def list_recent_messages(db: Session, limit: int = 100) -> List[Message]:
    return db.query(Message).order_by(Message.timestamp.desc(), Message.created_at.desc()).limit(limit).all()


def get_conversation_history(
    db: Session,
    wa_id: str,
    limit: int = 10,
    exclude_message_id: Optional[str] = None,
) -> List[dict]:
    """Chat-completion style history for a contact, oldest first."""
    query = db.query(Message).filter(Message.wa_id == wa_id)
    if exclude_message_id:
        query = query.filter(Message.id != exclude_message_id)
    rows = query.order_by(Message.timestamp.desc(), Message.created_at.desc()).limit(limit).all()

    history = []
    for msg in reversed(rows):
        if not msg.text:
            continue
        role = "user" if msg.direction == INBOUND else "assistant"
        history.append({"role": role, "content": msg.text})
    return history


def serialize_message(message: Message) -> dict:
    """Dashboard representation, also used as the realtime event payload."""
    data = {
        "id": message.id,
        "text": message.text,
        "timestamp": message.timestamp,
        "from": message.wa_id,
        "contactName": message.contact_name,
        "type": message.type,
        "direction": message.direction,
        "phoneNumberId": message.phone_number_id,
    }
    if message.original_message is not None:
        data["originalMessage"] = message.original_message
    if message.reply_source:
        data["replySource"] = message.reply_source
    if message.broadcast_id:
        data["broadcastId"] = message.broadcast_id
    return data


def record_outbound(
    db: Session,
    *,
    wa_id: str,
    text: str,
    contact_name: Optional[str],
    phone_number_id: Optional[str],
    provider_message_id: Optional[str],
    original_message: Optional[str] = None,
    reply_source: Optional[str] = None,
    broadcast_id: Optional[str] = None,
) -> dict:
    """Store a delivered outbound message and bump the contact. Returns the event payload.

    The message has already left; a storage failure is logged and the
    unstored payload is returned so the dashboard still sees it.
    """
    now = datetime.now(timezone.utc)
    try:
        row = save_message(
            db,
            wa_id=wa_id,
            text=text,
            direction=OUTBOUND,
            contact_name=contact_name,
            phone_number_id=phone_number_id,
            provider_message_id=provider_message_id,
            original_message=original_message,
            reply_source=reply_source,
            broadcast_id=broadcast_id,
            timestamp=now,
        )
        upsert_contact(db, wa_id, None, text, now)
        db.commit()
        return serialize_message(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store outbound message: {e}", extra={"context": {"wa_id": wa_id}})
        data = {
            "id": provider_message_id or f"out_{int(time.time() * 1000)}",
            "text": text,
            "timestamp": now,
            "from": wa_id,
            "contactName": contact_name,
            "type": "text",
            "direction": OUTBOUND,
            "phoneNumberId": phone_number_id,
        }
        if original_message is not None:
            data["originalMessage"] = original_message
        return data
