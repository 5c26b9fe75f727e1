from chatdesk.schemas.webhook import InboundMessage, WebhookPayload

__all__ = ["InboundMessage", "WebhookPayload"]
