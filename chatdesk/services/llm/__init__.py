from chatdesk.services.llm.base import LLMError, LLMProvider, LLMResponse
from chatdesk.services.llm.openai_provider import OpenAIProvider

__all__ = ["LLMError", "LLMProvider", "LLMResponse", "OpenAIProvider"]
