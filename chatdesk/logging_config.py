"""JSON logging configuration for Chatdesk API."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Context keys whose string values never reach the log stream in full.
SECRET_CONTEXT_KEYS = frozenset({"access_token", "accessToken", "api_key", "authorization", "token"})


def mask_secret(value: str | None, visible: int = 10) -> str:
    """Shorten a token for logs and API responses."""
    if not value:
        return ""
    if len(value) <= visible + 3 and value.endswith("..."):
        return value
    return f"{value[:visible]}..."


def mask_context(context: dict[str, Any]) -> dict[str, Any]:
    masked = {}
    for key, value in context.items():
        if key in SECRET_CONTEXT_KEYS and isinstance(value, str):
            masked[key] = mask_secret(value)
        elif isinstance(value, dict):
            masked[key] = mask_context(value)
        else:
            masked[key] = value
    return masked


class JSONFormatter(logging.Formatter):
    """One JSON object per line; secret context values are shortened."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            log_data["context"] = mask_context(context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # Request lines from these carry the Graph API URL and add nothing at INFO.
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Loggers live under the `chatdesk.` namespace."""
    return logging.getLogger(f"chatdesk.{name}")


class LoggerAdapter(logging.LoggerAdapter):
    """Merges a fixed context (wa_id, message_id) with per-call `context=`."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = kwargs.pop("context", None)
        if context or self.extra:
            kwargs["extra"] = {"context": {**self.extra, **(context or {})}}
        return msg, kwargs
