from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from chatdesk.logging_config import get_logger
from chatdesk.models import Contact

logger = get_logger("contact_service")


def upsert_contact(
    db: Session,
    wa_id: str,
    contact_name: Optional[str],
    last_message: str,
    last_message_at: Optional[datetime] = None,
) -> Contact:
    """Create the contact or bump its last message and message count."""
    now = datetime.now(timezone.utc)
    last_message_at = last_message_at or now
    contact = db.query(Contact).filter(Contact.wa_id == wa_id).first()

    if contact:
        if contact_name:
            contact.contact_name = contact_name
            contact.profile_name = contact_name
        contact.last_message = last_message or ""
        contact.last_message_at = last_message_at
        contact.message_count = (contact.message_count or 0) + 1
        contact.updated_at = now
    else:
        name = contact_name or f"User {wa_id}"
        contact = Contact(
            wa_id=wa_id,
            contact_name=name,
            profile_name=name,
            last_message=last_message or "",
            last_message_at=last_message_at,
            message_count=1,
            created_at=now,
            updated_at=now,
        )
        db.add(contact)

    db.flush()
    logger.debug(f"Contact updated: {wa_id}")
    return contact


def get_contact(db: Session, wa_id: str) -> Optional[Contact]:
    return db.query(Contact).filter(Contact.wa_id == wa_id).first()


def list_contacts(db: Session) -> List[Contact]:
    return db.query(Contact).order_by(Contact.last_message_at.desc()).all()


def serialize_contact(contact: Contact) -> dict:
    return {
        "waId": contact.wa_id,
        "contactName": contact.contact_name,
        "profileName": contact.profile_name,
        "lastMessage": contact.last_message,
        "lastMessageAt": contact.last_message_at,
        "messageCount": contact.message_count,
        "createdAt": contact.created_at,
        "updatedAt": contact.updated_at,
    }
