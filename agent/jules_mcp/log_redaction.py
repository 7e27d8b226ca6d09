"""structlog processor that keeps credentials out of log output."""

from __future__ import annotations

import re
from typing import Any, Callable

REDACTED = "[REDACTED]"

_SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "apikey",
        "jules_api_key",
        "x-goog-api-key",
        "authorization",
        "token",
        "secret",
        "password",
    }
)

_INLINE_PATTERNS = (
    re.compile(r"(?i)(x-goog-api-key\s*[:=]\s*)\S+"),
    re.compile(r"(?i)(authorization\s*[:=]\s*bearer\s+)\S+"),
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(?i)(api[_-]?key\s*[:=]\s*)\S+"),
)


def _redact_text(text: str) -> str:
    for pattern in _INLINE_PATTERNS:
        text = pattern.sub(rf"\g<1>{REDACTED}", text)
    return text


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in _SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(item) for item in value)
    if isinstance(value, str):
        return _redact_text(value)
    return value


def make_log_redactor() -> Callable[[Any, str, dict], dict]:
    """Build a processor masking API keys and bearer tokens in an event dict."""

    def redactor(_logger: Any, _method_name: str, event_dict: dict) -> dict:
        return _redact(event_dict)

    return redactor
