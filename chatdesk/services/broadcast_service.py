import time
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from chatdesk.config import settings
from chatdesk.logging_config import get_logger
from chatdesk.models import Broadcast
from chatdesk.services.contact_service import list_contacts
from chatdesk.services.errors import NotFoundError, ValidationError
from chatdesk.services.message_service import record_outbound
from chatdesk.services.settings_service import WhatsAppConfig
from chatdesk.services.whatsapp_service import send_text_message

logger = get_logger("broadcast_service")

STATUS_DRAFT = "draft"
STATUS_SCHEDULED = "scheduled"
STATUS_SENT = "sent"
ALLOWED_STATUSES = {STATUS_DRAFT, STATUS_SCHEDULED, STATUS_SENT}


def list_broadcasts(db: Session) -> List[Broadcast]:
    return db.query(Broadcast).order_by(Broadcast.updated_at.desc()).all()


def get_broadcast(db: Session, broadcast_id: str) -> Broadcast:
    broadcast = db.query(Broadcast).filter(Broadcast.id == broadcast_id).first()
    if not broadcast:
        raise NotFoundError("Broadcast not found")
    return broadcast


def create_broadcast(
    db: Session,
    *,
    name: Optional[str],
    message: Optional[str],
    recipients: Optional[List[dict]] = None,
    scheduled_for: Optional[datetime] = None,
) -> Broadcast:
    if not name or not message:
        raise ValidationError("Name and message are required")

    now = datetime.now(timezone.utc)
    broadcast = Broadcast(
        name=name,
        message=message,
        recipients=recipients or [],
        status=STATUS_SCHEDULED if scheduled_for else STATUS_DRAFT,
        scheduled_for=scheduled_for,
        created_at=now,
        updated_at=now,
    )
    db.add(broadcast)
    db.flush()
    logger.info("Broadcast created", extra={"context": {"broadcast_id": broadcast.id, "status": broadcast.status}})
    return broadcast


def update_broadcast(db: Session, broadcast_id: Optional[str], updates: dict) -> Broadcast:
    if not broadcast_id:
        raise ValidationError("Broadcast ID is required")
    broadcast = get_broadcast(db, broadcast_id)

    status = updates.get("status")
    if status and status not in ALLOWED_STATUSES:
        raise ValidationError(f"Invalid status '{status}'")

    # Empty values leave the field unchanged.
    for field in ("name", "message", "recipients", "status", "scheduled_for"):
        value = updates.get(field)
        if value:
            setattr(broadcast, field, value)

    broadcast.updated_at = datetime.now(timezone.utc)
    db.flush()
    return broadcast


def delete_broadcast(db: Session, broadcast_id: Optional[str]) -> None:
    if not broadcast_id:
        raise ValidationError("Broadcast ID is required")
    db.delete(get_broadcast(db, broadcast_id))
    db.flush()


def resolve_recipients(db: Session, recipients: Optional[List[dict]]) -> List[dict]:
    """Explicit recipients, or every known contact."""
    if recipients:
        return recipients
    return [{"phoneNumber": contact.wa_id, "name": contact.contact_name} for contact in list_contacts(db)]


def send_broadcast(
    db: Session,
    config: WhatsAppConfig,
    broadcast_id: Optional[str],
    recipients: Optional[List[dict]] = None,
) -> dict:
    """Deliver a broadcast one recipient at a time and mark it sent."""
    if not config.is_complete:
        raise ValidationError("WhatsApp configuration missing")
    if not broadcast_id:
        raise ValidationError("Broadcast ID is required")

    broadcast = get_broadcast(db, broadcast_id)
    targets = resolve_recipients(db, recipients)
    if not targets:
        raise ValidationError("No recipients found")

    logger.info(f"Starting broadcast '{broadcast.name}' to {len(targets)} recipients")
    results = {"total": len(targets), "sent": 0, "failed": 0, "errors": []}

    for index, recipient in enumerate(targets):
        phone_number = recipient.get("phoneNumber")
        result = send_text_message(config, phone_number, broadcast.message)

        if result.ok:
            results["sent"] += 1
            record_outbound(
                db,
                wa_id=phone_number,
                text=broadcast.message,
                contact_name=f"Broadcast: {broadcast.name}",
                phone_number_id=config.phone_number_id,
                provider_message_id=result.value,
                reply_source="broadcast",
                broadcast_id=broadcast.id,
            )
        else:
            results["failed"] += 1
            results["errors"].append({"recipient": phone_number, "error": result.details or result.error})
            logger.warning(f"Broadcast delivery failed for {phone_number}: {result.error}")

        if settings.broadcast_send_delay_seconds > 0 and index < len(targets) - 1:
            time.sleep(settings.broadcast_send_delay_seconds)

    now = datetime.now(timezone.utc)
    broadcast.status = STATUS_SENT
    broadcast.sent_at = now
    broadcast.results = results
    broadcast.updated_at = now
    db.flush()

    logger.info(
        "Broadcast completed",
        extra={"context": {"broadcast_id": broadcast.id, "sent": results["sent"], "total": results["total"]}},
    )
    return results


def serialize_broadcast(broadcast: Broadcast) -> dict:
    return {
        "id": broadcast.id,
        "name": broadcast.name,
        "message": broadcast.message,
        "recipients": list(broadcast.recipients or []),
        "status": broadcast.status,
        "scheduledFor": broadcast.scheduled_for,
        "sentAt": broadcast.sent_at,
        "results": broadcast.results,
        "createdAt": broadcast.created_at,
        "updatedAt": broadcast.updated_at,
    }
