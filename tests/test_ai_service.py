from unittest.mock import Mock, patch

import httpx
import pytest

from chatdesk.config import settings
from chatdesk.services.ai_service import build_messages, generate_ai_reply, get_llm_provider
from chatdesk.services.llm import LLMError, LLMResponse, OpenAIProvider


class TestGetLLMProvider:
    def test_none_without_api_key(self):
        assert get_llm_provider() is None

    def test_openai_provider_with_key(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")
        provider = get_llm_provider()
        assert isinstance(provider, OpenAIProvider)
        assert provider.default_model == settings.openai_model


class TestBuildMessages:
    def test_history_is_capped(self):
        history = [{"role": "user", "content": str(i)} for i in range(15)]
        messages = build_messages("prompt", history, "now")

        assert messages[0] == {"role": "system", "content": "prompt"}
        assert messages[1]["content"] == "5"
        assert messages[-1] == {"role": "user", "content": "now"}
        assert len(messages) == 12


class TestGenerateAIReply:
    def test_not_configured(self, mock_db):
        result = generate_ai_reply(mock_db, "hi", system_prompt="p")
        assert result.error_code == "ai_not_configured"

    def test_success_without_history(self, mock_db):
        provider = Mock()
        provider.generate.return_value = LLMResponse(content="Sure!", model="gpt-3.5-turbo")

        result = generate_ai_reply(mock_db, "hi", system_prompt="p", provider=provider)

        assert result.ok is True
        assert result.value == "Sure!"
        mock_db.query.assert_not_called()
        assert provider.generate.call_args[1]["max_tokens"] == settings.ai_max_tokens

    def test_provider_error(self, mock_db):
        provider = Mock()
        provider.generate.side_effect = LLMError("OpenAI API error: 500")

        result = generate_ai_reply(mock_db, "hi", system_prompt="p", provider=provider)

        assert result.error_code == "ai_error"

    def test_empty_content(self, mock_db):
        provider = Mock()
        provider.generate.return_value = LLMResponse(content="", model="gpt-3.5-turbo")

        result = generate_ai_reply(mock_db, "hi", system_prompt="p", provider=provider)

        assert result.error_code == "ai_empty"


class TestOpenAIProvider:
    @patch("chatdesk.services.llm.openai_provider.httpx.Client")
    def test_generate_parses_choice(self, client_cls):
        response = Mock(status_code=200)
        response.json.return_value = {
            "model": "gpt-3.5-turbo-0125",
            "choices": [{"message": {"content": "  Hello!  "}}],
            "usage": {"total_tokens": 12},
        }
        client = client_cls.return_value.__enter__.return_value
        client.post.return_value = response

        result = OpenAIProvider(api_key="sk-test").generate([{"role": "user", "content": "hi"}])

        assert result.content == "Hello!"
        assert result.model == "gpt-3.5-turbo-0125"
        payload = client.post.call_args[1]["json"]
        assert payload["model"] == "gpt-3.5-turbo"
        assert payload["max_tokens"] == 150

    @patch("chatdesk.services.llm.openai_provider.httpx.Client")
    def test_generate_raises_on_http_error_status(self, client_cls):
        response = Mock(status_code=429, text="rate limited")
        client_cls.return_value.__enter__.return_value.post.return_value = response

        with pytest.raises(LLMError):
            OpenAIProvider(api_key="sk-test").generate([{"role": "user", "content": "hi"}])

    @patch("chatdesk.services.llm.openai_provider.httpx.Client")
    def test_generate_raises_on_transport_error(self, client_cls):
        client_cls.return_value.__enter__.return_value.post.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(LLMError):
            OpenAIProvider(api_key="sk-test").generate([{"role": "user", "content": "hi"}])
