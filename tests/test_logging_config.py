import json
import logging

from chatdesk.logging_config import JSONFormatter, LoggerAdapter, get_logger, mask_context, mask_secret


def _record(message="hello", context=None):
    record = logging.LogRecord("chatdesk.test", logging.INFO, __file__, 1, message, None, None)
    if context is not None:
        record.context = context
    return record


class TestMaskSecret:
    def test_shortens_token(self):
        assert mask_secret("EAAGabcdefghijklmnop") == "EAAGabcdef..."

    def test_empty(self):
        assert mask_secret(None) == ""

    def test_already_masked_value_is_kept(self):
        assert mask_secret("EAAGabcdef...") == "EAAGabcdef..."


class TestMaskContext:
    def test_masks_secret_keys_only(self):
        context = {"accessToken": "EAAGabcdefghijklmnop", "hasAccessToken": True, "phoneNumberId": "111"}

        assert mask_context(context) == {
            "accessToken": "EAAGabcdef...",
            "hasAccessToken": True,
            "phoneNumberId": "111",
        }

    def test_nested_dicts(self):
        assert mask_context({"config": {"api_key": "sk-1234567890abcdef"}}) == {"config": {"api_key": "sk-1234567..."}}


class TestJSONFormatter:
    def test_formats_record_with_masked_context(self):
        line = JSONFormatter().format(_record(context={"wa_id": "100", "token": "abcdefghijklmnopqrstuvwxyz"}))

        data = json.loads(line)
        assert data["logger"] == "chatdesk.test"
        assert data["message"] == "hello"
        assert data["context"] == {"wa_id": "100", "token": "abcdefghij..."}

    def test_no_context_key_without_context(self):
        assert "context" not in json.loads(JSONFormatter().format(_record()))


class TestLoggerAdapter:
    def test_merges_context(self):
        adapter = LoggerAdapter(get_logger("test"), {"wa_id": "100"})

        msg, kwargs = adapter.process("hi", {"context": {"source": "flow"}})

        assert msg == "hi"
        assert kwargs["extra"] == {"context": {"wa_id": "100", "source": "flow"}}
