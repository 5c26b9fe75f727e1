"""Inbound webhook processing: extract messages, persist, auto-reply, fan out."""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chatdesk.logging_config import LoggerAdapter, get_logger
from chatdesk.realtime import EVENT_API_DATA, manager
from chatdesk.schemas.webhook import InboundMessage, WebhookMessage, WebhookPayload, WebhookValue
from chatdesk.services.contact_service import upsert_contact
from chatdesk.services.llm import LLMProvider
from chatdesk.services.message_service import (
    INBOUND,
    find_by_provider_message_id,
    record_outbound,
    save_message,
    serialize_message,
)
from chatdesk.services.reply_service import ReplyDecision, resolve_reply
from chatdesk.services.settings_service import get_whatsapp_config
from chatdesk.services.whatsapp_service import send_text_message

logger = get_logger("webhook_service")

WHATSAPP_OBJECT = "whatsapp_business_account"
MESSAGES_FIELD = "messages"

TEST_SENDER_WA_ID = "15550001234"
TEST_SENDER_NAME = "Test User"
TEST_PHONE_NUMBER_ID = "123456789012345"

Emitter = Callable[[str, dict], Awaitable[int]]

STATUS_RECEIVED = "received"
STATUS_REPLIED = "replied"
STATUS_REPLY_FAILED = "reply_failed"
STATUS_DUPLICATE = "duplicate"


@dataclass
class ProcessingOutcome:
    wa_id: str
    status: str
    reply: Optional[ReplyDecision] = None
    provider_message_id: Optional[str] = None
    error: Optional[str] = None


def _parse_timestamp(raw: Optional[str]) -> datetime:
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return datetime.now(timezone.utc)


def _resolve_contact_name(message: WebhookMessage, value: WebhookValue, wa_id: str) -> str:
    if message.profile and message.profile.name:
        return message.profile.name
    for contact in value.contacts:
        if contact.wa_id == wa_id and contact.profile and contact.profile.name:
            return contact.profile.name
    return f"User {wa_id}"


def extract_inbound_messages(payload: WebhookPayload) -> List[InboundMessage]:
    """Flatten a Cloud API callback into the chat messages it carries.

    Status callbacks and changes for other fields yield nothing.
    """
    if payload.object != WHATSAPP_OBJECT:
        logger.info(f"Ignoring webhook object={payload.object!r}")
        return []

    inbound: List[InboundMessage] = []
    for entry in payload.entry:
        for change in entry.changes:
            if change.field != MESSAGES_FIELD or change.value is None:
                continue
            value = change.value
            if not value.messages:
                logger.info("Webhook change without messages (status update)")
                continue

            phone_number_id = value.metadata.phone_number_id if value.metadata else None
            for message in value.messages:
                wa_id = message.from_
                if not wa_id:
                    logger.warning("Skipping message without sender", extra={"context": {"id": message.id}})
                    continue
                inbound.append(
                    InboundMessage(
                        wa_id=wa_id,
                        contact_name=_resolve_contact_name(message, value, wa_id),
                        text=(message.text.body if message.text else None) or "",
                        type=message.type or "text",
                        phone_number_id=phone_number_id,
                        provider_message_id=message.id,
                        timestamp=_parse_timestamp(message.timestamp),
                    )
                )
    return inbound


def build_test_payload(message_text: str) -> dict:
    """A Cloud API shaped payload from a fixed test sender."""
    now = int(time.time())
    return {
        "object": WHATSAPP_OBJECT,
        "entry": [
            {
                "id": "123456789",
                "changes": [
                    {
                        "field": MESSAGES_FIELD,
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15551537571",
                                "phone_number_id": TEST_PHONE_NUMBER_ID,
                            },
                            "contacts": [{"profile": {"name": TEST_SENDER_NAME}, "wa_id": TEST_SENDER_WA_ID}],
                            "messages": [
                                {
                                    "from": TEST_SENDER_WA_ID,
                                    "id": f"wamid.test{now}{time.monotonic_ns()}",
                                    "timestamp": str(now),
                                    "text": {"body": message_text},
                                    "type": "text",
                                }
                            ],
                        },
                    }
                ],
            }
        ],
    }


def inbound_event(inbound: InboundMessage) -> dict:
    """Event payload for an inbound message that could not be stored."""
    return {
        "id": inbound.provider_message_id or str(int(time.time() * 1000)),
        "text": inbound.text,
        "timestamp": inbound.timestamp,
        "from": inbound.wa_id,
        "contactName": inbound.contact_name,
        "type": inbound.type,
        "direction": INBOUND,
        "phoneNumberId": inbound.phone_number_id,
    }


def _store_inbound(db: Session, inbound: InboundMessage) -> dict:
    row = save_message(
        db,
        wa_id=inbound.wa_id,
        text=inbound.text,
        direction=INBOUND,
        contact_name=inbound.contact_name,
        message_type=inbound.type,
        phone_number_id=inbound.phone_number_id,
        provider_message_id=inbound.provider_message_id,
        timestamp=inbound.timestamp,
    )
    upsert_contact(db, inbound.wa_id, inbound.contact_name, inbound.text, inbound.timestamp)
    db.commit()
    return serialize_message(row)


def record_inbound(db: Session, inbound: InboundMessage) -> Optional[dict]:
    """Store the message and upsert its contact.

    Returns the event payload, or None when the message was already stored.
    An integrity conflict on anything other than the provider id (a contact
    created concurrently) is retried once. Other storage errors are logged
    and the unstored payload is returned.
    """
    log_context = {"wa_id": inbound.wa_id, "message_id": inbound.provider_message_id}
    for attempt in range(2):
        try:
            return _store_inbound(db, inbound)
        except IntegrityError as e:
            db.rollback()
            if find_by_provider_message_id(db, inbound.provider_message_id):
                return None
            if attempt == 0:
                logger.info("Integrity conflict storing inbound message, retrying", extra={"context": log_context})
                continue
            logger.error(f"Failed to store inbound message: {e}", extra={"context": log_context})
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store inbound message: {e}", extra={"context": log_context})
            break
    return inbound_event(inbound)


async def process_inbound_message(
    db: Session,
    inbound: InboundMessage,
    *,
    emit: Optional[Emitter] = None,
    provider: Optional[LLMProvider] = None,
    auto_reply: bool = True,
) -> ProcessingOutcome:
    """Run one inbound message through persistence, reply resolution, delivery and fan-out."""
    emit = emit or manager.broadcast
    log = LoggerAdapter(logger, {"wa_id": inbound.wa_id, "message_id": inbound.provider_message_id})

    if find_by_provider_message_id(db, inbound.provider_message_id):
        log.info("Duplicate webhook delivery skipped")
        return ProcessingOutcome(wa_id=inbound.wa_id, status=STATUS_DUPLICATE)

    log.info("Processing inbound message", context={"type": inbound.type, "contact_name": inbound.contact_name})
    event = record_inbound(db, inbound)
    if event is None:
        log.info("Duplicate webhook delivery skipped on insert")
        return ProcessingOutcome(wa_id=inbound.wa_id, status=STATUS_DUPLICATE)

    await emit(EVENT_API_DATA, event)

    if not auto_reply:
        return ProcessingOutcome(wa_id=inbound.wa_id, status=STATUS_RECEIVED)

    decision = resolve_reply(
        db,
        inbound.text,
        wa_id=inbound.wa_id,
        exclude_message_id=event["id"],
        provider=provider,
    )
    log.info("Reply resolved", context={"source": decision.source, "flow_id": decision.flow_id})

    config = get_whatsapp_config(db)
    result = send_text_message(config, inbound.wa_id, decision.text, phone_number_id=inbound.phone_number_id)
    if not result.ok:
        log.warning("Auto-reply not delivered", context={"error": result.error, "error_code": result.error_code})
        return ProcessingOutcome(
            wa_id=inbound.wa_id,
            status=STATUS_REPLY_FAILED,
            reply=decision,
            error=result.error,
        )

    reply_event = record_outbound(
        db,
        wa_id=inbound.wa_id,
        text=decision.text,
        contact_name=f"Bot Reply to {inbound.contact_name}",
        phone_number_id=inbound.phone_number_id,
        provider_message_id=result.value,
        original_message=inbound.text,
        reply_source=decision.source,
    )
    await emit(EVENT_API_DATA, reply_event)

    log.info("Auto-reply sent", context={"provider_message_id": result.value})
    return ProcessingOutcome(
        wa_id=inbound.wa_id,
        status=STATUS_REPLIED,
        reply=decision,
        provider_message_id=result.value,
    )
