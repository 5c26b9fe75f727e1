import json
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from chatdesk.database import get_db
from chatdesk.logging_config import get_logger
from chatdesk.realtime import EVENT_API_DATA, manager
from chatdesk.schemas.webhook import SimulatedWebhookRequest, SocketPingRequest, WebhookPayload
from chatdesk.services.settings_service import get_whatsapp_config
from chatdesk.services.webhook_service import (
    TEST_SENDER_NAME,
    TEST_SENDER_WA_ID,
    build_test_payload,
    extract_inbound_messages,
    inbound_event,
    process_inbound_message,
)

logger = get_logger("webhook")

router = APIRouter()


@router.get("/webhook")
def verify_webhook(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    db: Session = Depends(get_db),
):
    """Subscription handshake from the WhatsApp Cloud API."""
    expected = get_whatsapp_config(db).verify_token
    if mode == "subscribe" and token is not None and token == expected:
        logger.info("Webhook verified successfully")
        return PlainTextResponse(challenge or "")

    logger.warning("Webhook verification failed", extra={"context": {"mode": mode}})
    return PlainTextResponse("Forbidden", status_code=403)


@router.post("/webhook")
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    """Handle inbound message callbacks."""
    try:
        raw = await request.json()
        payload = WebhookPayload.model_validate(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, PydanticValidationError) as e:
        logger.warning(f"Invalid webhook body: {e}")
        return PlainTextResponse("Invalid webhook data", status_code=400)

    try:
        messages = extract_inbound_messages(payload)
        logger.info("Webhook received", extra={"context": {"object": payload.object, "messages": len(messages)}})

        for inbound in messages:
            try:
                await process_inbound_message(db, inbound)
            except Exception:
                db.rollback()
                logger.exception(
                    "Failed to process inbound message",
                    extra={"context": {"wa_id": inbound.wa_id, "message_id": inbound.provider_message_id}},
                )
    except Exception:
        logger.exception("Webhook error")
        return PlainTextResponse("Internal Server Error", status_code=500)

    return PlainTextResponse("OK")


@router.post("/test-webhook")
async def simulate_webhook(request: SimulatedWebhookRequest):
    """Push a synthetic inbound message to dashboard clients without replying."""
    payload = WebhookPayload.model_validate(build_test_payload(request.message or "Test message"))
    inbound = extract_inbound_messages(payload)[0]
    await manager.broadcast(EVENT_API_DATA, inbound_event(inbound))

    return {
        "success": True,
        "message": "Test webhook processed successfully",
        "data": {
            "from": inbound.wa_id,
            "contactName": inbound.contact_name,
            "message": inbound.text,
        },
    }


@router.post("/test-socket")
async def ping_socket(request: SocketPingRequest):
    data = {
        "id": str(int(datetime.now(timezone.utc).timestamp() * 1000)),
        "text": request.message or "Test message from webhook server",
        "timestamp": datetime.now(timezone.utc),
        "from": TEST_SENDER_WA_ID,
        "contactName": TEST_SENDER_NAME,
        "type": "text",
    }
    delivered = await manager.broadcast(EVENT_API_DATA, data)
    return {
        "success": True,
        "message": "Test message sent to connected clients",
        "clients": delivered,
        "data": data,
    }
