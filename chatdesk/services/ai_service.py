from typing import Optional

from sqlalchemy.orm import Session

from chatdesk.config import settings
from chatdesk.logging_config import get_logger
from chatdesk.services.llm import LLMError, LLMProvider, OpenAIProvider
from chatdesk.services.message_service import get_conversation_history
from chatdesk.services.result import Result

logger = get_logger("ai_service")

HISTORY_LIMIT = 10


def get_llm_provider() -> Optional[LLMProvider]:
    if not settings.openai_api_key:
        return None
    return OpenAIProvider(
        api_key=settings.openai_api_key,
        default_model=settings.openai_model,
        timeout_seconds=settings.ai_timeout_seconds,
    )


def build_messages(system_prompt: str, history: list[dict], user_message: str) -> list[dict]:
    return [
        {"role": "system", "content": system_prompt},
        *history[-HISTORY_LIMIT:],
        {"role": "user", "content": user_message},
    ]


def generate_ai_reply(
    db: Session,
    user_message: str,
    *,
    system_prompt: str,
    wa_id: Optional[str] = None,
    exclude_message_id: Optional[str] = None,
    provider: Optional[LLMProvider] = None,
) -> Result[str]:
    """Ask the LLM for a reply using the contact's recent history as context."""
    provider = provider or get_llm_provider()
    if provider is None:
        return Result.failure("OpenAI API key is not configured", "ai_not_configured")

    history = []
    if wa_id:
        history = get_conversation_history(db, wa_id, limit=HISTORY_LIMIT, exclude_message_id=exclude_message_id)

    try:
        response = provider.generate(
            build_messages(system_prompt, history, user_message),
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
        )
    except LLMError as e:
        logger.error(f"AI reply failed: {e}", extra={"context": {"wa_id": wa_id}})
        return Result.failure(str(e), "ai_error")

    if not response.content:
        return Result.failure("Empty completion", "ai_empty")

    logger.info("AI reply generated", extra={"context": {"wa_id": wa_id, "model": response.model}})
    return Result.success(response.content)
