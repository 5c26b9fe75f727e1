from typing import Optional

import httpx

from chatdesk.config import settings
from chatdesk.logging_config import get_logger
from chatdesk.services.result import Result
from chatdesk.services.settings_service import WhatsAppConfig

logger = get_logger("whatsapp_service")


def graph_url(*parts: str) -> str:
    base = settings.graph_api_base_url.rstrip("/")
    return "/".join([base, settings.graph_api_version, *parts])


def build_text_payload(to: str, body: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "text",
        "text": {
            "preview_url": False,
            "body": body,
        },
    }


def _response_body(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {"body": response.text[:500]}
    return data if isinstance(data, dict) else {"body": data}


def send_text_message(
    config: WhatsAppConfig,
    to: str,
    body: str,
    *,
    phone_number_id: Optional[str] = None,
) -> Result[str]:
    """Send a text message via the WhatsApp Cloud API.

    Returns the provider message id (wamid) on success.
    """
    if not config.access_token:
        logger.error("WhatsApp access token is not configured")
        return Result.failure("WhatsApp access token is not configured", "not_configured")

    sender_id = phone_number_id or config.phone_number_id
    if not sender_id:
        logger.error("WhatsApp phone number id is not configured")
        return Result.failure("WhatsApp phone number id is not configured", "not_configured")

    if not to or not body:
        logger.warning(f"send_text_message: missing recipient={to!r} or body")
        return Result.failure("Recipient and message body are required", "invalid_request")

    try:
        with httpx.Client(timeout=settings.whatsapp_timeout_seconds) as client:
            response = client.post(
                graph_url(sender_id, "messages"),
                headers={
                    "Authorization": f"Bearer {config.access_token}",
                    "Content-Type": "application/json",
                },
                json=build_text_payload(to, body),
            )
    except httpx.HTTPError as e:
        logger.error(f"Error sending WhatsApp message: {e}", extra={"context": {"to": to}})
        return Result.failure(str(e), "transport_error")

    if response.status_code >= 300:
        details = _response_body(response)
        logger.error(
            "WhatsApp send failed",
            extra={"context": {"to": to, "status": response.status_code, "details": details}},
        )
        return Result.failure(
            f"WhatsApp API error: {response.status_code}",
            "provider_error",
            details=details,
            status_code=response.status_code,
        )

    data = _response_body(response)
    messages = data.get("messages") or [{}]
    message_id = messages[0].get("id") if isinstance(messages[0], dict) else None
    logger.info("WhatsApp message sent", extra={"context": {"to": to, "message_id": message_id}})
    return Result(ok=True, value=message_id, details=data)


def check_connection(access_token: str, phone_number_id: str) -> Result[dict]:
    """Fetch phone number details to verify credentials."""
    try:
        with httpx.Client(timeout=settings.whatsapp_timeout_seconds) as client:
            response = client.get(
                graph_url(phone_number_id),
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
            )
    except httpx.HTTPError as e:
        logger.error(f"Error testing WhatsApp connection: {e}")
        return Result.failure(str(e), "transport_error")

    if response.status_code != 200:
        return Result.failure(
            "WhatsApp API connection failed",
            "provider_error",
            details=_response_body(response),
            status_code=response.status_code,
        )

    data = response.json()
    return Result.success(
        {
            "phoneNumber": data.get("display_phone_number"),
            "verifiedName": data.get("verified_name"),
            "status": data.get("code_verification_status"),
            "qualityRating": data.get("quality_rating"),
        }
    )
