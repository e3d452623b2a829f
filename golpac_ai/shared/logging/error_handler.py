"""Structured error logging for assistant turns.

Each record carries the error code, the stack trace, the chat session and
the flow the session was in. Chat text in the context (questions, answers,
ticket descriptions) is replaced by its length, and credentials and user
e-mail addresses are redacted, so no user-typed content reaches the logs.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from typing import Any

_REDACTED = "[REDACTED]"

_SECRET_KEYS = frozenset(
    {
        "password",
        "token",
        "secret",
        "api_key",
        "authorization",
        "cookie",
        "credential",
        "user_email",
        "useremail",
    }
)

# Free text typed by the user or echoed back to them
_CHAT_TEXT_KEYS = frozenset(
    {
        "question",
        "answer",
        "content",
        "description",
        "follow_up",
        "followup",
        "recent_questions",
        "recentquestions",
    }
)


def _scrub(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return f"[{len(value)} chat messages]"
    return f"[chat text, {len(str(value))} chars]"


def _redact_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Redact secrets and replace chat text, recursing into nested mappings."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        lowered = key.lower()
        if lowered in _SECRET_KEYS:
            result[key] = _REDACTED
        elif lowered in _CHAT_TEXT_KEYS and value:
            result[key] = _scrub(value)
        elif isinstance(value, dict):
            result[key] = _redact_sensitive(value)
        else:
            result[key] = value
    return result


@dataclass(frozen=True)
class StructuredError:
    """One failed assistant turn, ready for JSON logging."""

    error_code: str
    message: str
    stack_trace: str
    session_id: str = ""
    intent: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "stack_trace": self.stack_trace,
            "session_id": self.session_id,
            "intent": self.intent,
            "context": _redact_sensitive(self.context),
        }


def create_structured_error(
    exc: BaseException,
    *,
    error_code: str = "",
    session_id: str = "",
    intent: str = "",
    context: dict[str, Any] | None = None,
) -> StructuredError:
    """Build a StructuredError from an exception.

    error_code falls back to the exception's ``code`` (AssistantError and
    subclasses), then to its class name.
    """
    return StructuredError(
        error_code=error_code or getattr(exc, "code", type(exc).__name__),
        message=str(exc),
        stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        session_id=session_id,
        intent=intent,
        context=dict(context or {}),
    )


def log_structured_error(
    logger: logging.Logger,
    exc: BaseException,
    *,
    error_code: str = "",
    session_id: str = "",
    intent: str = "",
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> StructuredError:
    structured = create_structured_error(
        exc,
        error_code=error_code,
        session_id=session_id,
        intent=intent,
        context=context,
    )
    logger.log(
        level,
        "structured_error code=%s session_id=%s",
        structured.error_code,
        structured.session_id or "-",
        extra={"structured_error": structured.to_dict()},
    )
    return structured
