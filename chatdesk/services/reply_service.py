"""Auto-reply decision: flows, stored keywords, built-in keywords, then AI, then the default reply."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from chatdesk.logging_config import get_logger
from chatdesk.models import Flow
from chatdesk.services.ai_service import generate_ai_reply
from chatdesk.services.flow_service import get_active_flows
from chatdesk.services.keyword_service import get_active_keywords, match_keyword
from chatdesk.services.llm import LLMProvider
from chatdesk.services.settings_service import get_automation_config

logger = get_logger("reply_service")

SOURCE_FLOW = "flow"
SOURCE_CUSTOM_KEYWORD = "custom_keyword"
SOURCE_AI = "ai"
SOURCE_KEYWORD = "keyword"
SOURCE_DEFAULT = "default"

# Checked in order; the first keyword present as a whole word wins.
BUILTIN_KEYWORD_RESPONSES: tuple[tuple[str, str], ...] = (
    ("hello", "Hello! 👋 Thanks for reaching out. How can I help you today?"),
    ("hi", "Hi there! 😊 Thanks for your message. What can I help you with?"),
    (
        "help",
        "I'm here to help! 🤝 You can ask me about our services, pricing, business hours "
        "or how to get in touch with the team.",
    ),
    (
        "support",
        "Sorry to hear you need support. Please describe the problem and our team will follow up shortly.",
    ),
    ("services", "We'd love to tell you about our services! Which one are you interested in?"),
    ("service", "We'd love to tell you about our services! Which one are you interested in?"),
    (
        "price",
        "Great question about pricing! 💰 Our prices depend on your needs. "
        "We offer a free consultation to prepare a quote. Would you like to schedule one?",
    ),
    (
        "cost",
        "Great question about pricing! 💰 Our prices depend on your needs. "
        "We offer a free consultation to prepare a quote. Would you like to schedule one?",
    ),
    (
        "consultation",
        "Perfect! 🎯 We offer free consultations. Tell us a convenient day and time and we'll set it up.",
    ),
    ("contact", "You can reach us right here on WhatsApp, and a team member will reply as soon as possible."),
    (
        "hours",
        "Our business hours are:\n🕘 Monday - Friday: 9 AM - 6 PM\n🕘 Saturday: 10 AM - 4 PM\n🕘 Sunday: Closed",
    ),
    ("thanks", "You're welcome! 😊 Let me know if you need anything else."),
    ("thank you", "You're welcome! 😊 Let me know if you need anything else."),
    ("bye", "Goodbye! 👋 Have a great day and feel free to reach out anytime."),
)


@dataclass
class ReplyDecision:
    text: str
    source: str
    flow_id: Optional[str] = None
    keyword_id: Optional[str] = None


def match_flow(flows: Iterable[Flow], message_text: str) -> Optional[Flow]:
    """First flow with a trigger contained in the message (case-insensitive)."""
    lowered = (message_text or "").lower()
    if not lowered.strip():
        return None
    for flow in flows:
        if not flow.is_active:
            continue
        for trigger in flow.triggers or []:
            trigger = (trigger or "").strip().lower()
            if trigger and trigger in lowered:
                return flow
    return None


def match_builtin_keyword(message_text: str) -> Optional[str]:
    lowered = (message_text or "").lower()
    for keyword, response in BUILTIN_KEYWORD_RESPONSES:
        if re.search(rf"\b{re.escape(keyword)}\b", lowered):
            return response
    return None


def resolve_reply(
    db: Session,
    message_text: str,
    *,
    wa_id: Optional[str] = None,
    exclude_message_id: Optional[str] = None,
    provider: Optional[LLMProvider] = None,
) -> ReplyDecision:
    """Pick the auto-reply for an inbound message. Always returns non-empty text."""
    automation = get_automation_config(db)

    flow = match_flow(get_active_flows(db), message_text)
    if flow:
        logger.info("Flow matched", extra={"context": {"wa_id": wa_id, "flow_id": flow.id, "flow": flow.name}})
        return ReplyDecision(text=flow.response, source=SOURCE_FLOW, flow_id=flow.id)

    keyword = match_keyword(get_active_keywords(db), message_text)
    if keyword:
        logger.info("Keyword matched", extra={"context": {"wa_id": wa_id, "keyword": keyword.keyword}})
        return ReplyDecision(text=keyword.response, source=SOURCE_CUSTOM_KEYWORD, keyword_id=keyword.id)

    if automation.builtin_keywords_enabled:
        response = match_builtin_keyword(message_text)
        if response:
            return ReplyDecision(text=response, source=SOURCE_KEYWORD)

    if automation.ai_enabled and (message_text or "").strip():
        result = generate_ai_reply(
            db,
            message_text,
            system_prompt=automation.system_prompt,
            wa_id=wa_id,
            exclude_message_id=exclude_message_id,
            provider=provider,
        )
        if result.ok:
            return ReplyDecision(text=result.value, source=SOURCE_AI)
        logger.info(
            "AI reply unavailable, falling back",
            extra={"context": {"wa_id": wa_id, "error_code": result.error_code}},
        )

    return ReplyDecision(text=automation.default_reply, source=SOURCE_DEFAULT)
