"""Tests for structured error logging.

Verifies: error_code, stack_trace, context in structured logs, and that
user e-mail addresses never reach the log record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from golpac_ai.shared.errors import AssistantError, ConfigError
from golpac_ai.shared.logging.error_handler import (
    StructuredError,
    _redact_sensitive,
    create_structured_error,
    log_structured_error,
)

if TYPE_CHECKING:
    import pytest

_REDACTED = "[REDACTED]"


class TestRedactSensitive:
    def test_redacts_password(self) -> None:
        result = _redact_sensitive({"password": "secret123", "user": "alice"})
        assert result["password"] == _REDACTED
        assert result["user"] == "alice"

    def test_redacts_user_email_any_case(self) -> None:
        result = _redact_sensitive({"user_email": "a@golpac.com", "userEmail": "b@golpac.com"})
        assert result["user_email"] == _REDACTED
        assert result["userEmail"] == _REDACTED

    def test_redacts_nested(self) -> None:
        result = _redact_sensitive({"ticket": {"user_email": "a@golpac.com", "category": "VPN"}})
        assert result["ticket"]["user_email"] == _REDACTED
        assert result["ticket"]["category"] == "VPN"

    def test_preserves_non_sensitive(self) -> None:
        result = _redact_sensitive({"step_index": 2, "intent": "PRINTERS"})
        assert result == {"step_index": 2, "intent": "PRINTERS"}

    def test_chat_text_replaced_by_length(self) -> None:
        result = _redact_sensitive({"question": "my password is hunter2", "answer": "ok"})
        assert result["question"] == "[chat text, 22 chars]"
        assert result["answer"] == "[chat text, 2 chars]"

    def test_recent_questions_counted(self) -> None:
        result = _redact_sensitive({"recentQuestions": ["vpn down", "printer"]})
        assert result["recentQuestions"] == "[2 chat messages]"

    def test_empty_chat_text_kept(self) -> None:
        assert _redact_sensitive({"question": ""}) == {"question": ""}


class TestCreateStructuredError:
    def test_from_generic_exception(self) -> None:
        exc = ValueError("bad value")
        try:
            raise exc
        except ValueError:
            result = create_structured_error(exc)
        assert result.error_code == "ValueError"
        assert result.message == "bad value"
        assert "ValueError" in result.stack_trace

    def test_from_assistant_error_uses_code(self) -> None:
        exc = ConfigError("Missing required section", section="intents")
        try:
            raise exc
        except AssistantError:
            result = create_structured_error(exc)
        assert result.error_code == "CONFIG_INVALID"
        assert "[intents]" in result.message

    def test_custom_error_code_overrides(self) -> None:
        exc = ValueError("x")
        try:
            raise exc
        except ValueError:
            result = create_structured_error(exc, error_code="ASSISTANT_FAILURE")
        assert result.error_code == "ASSISTANT_FAILURE"

    def test_context_and_session(self) -> None:
        exc = RuntimeError("fail")
        try:
            raise exc
        except RuntimeError:
            result = create_structured_error(
                exc,
                session_id="chat-1",
                context={"step_index": 1},
            )
        assert result.session_id == "chat-1"
        assert result.context == {"step_index": 1}


class TestStructuredErrorToDict:
    def test_to_dict_redacts_sensitive(self) -> None:
        se = StructuredError(
            error_code="TEST",
            message="test",
            stack_trace="...",
            context={"user_email": "a@golpac.com", "intent": "VPN"},
        )
        d = se.to_dict()
        assert d["context"]["user_email"] == _REDACTED
        assert d["context"]["intent"] == "VPN"

    def test_to_dict_fields(self) -> None:
        se = StructuredError(error_code="E001", message="msg", stack_trace="trace", session_id="s1")
        d = se.to_dict()
        assert d["error_code"] == "E001"
        assert d["message"] == "msg"
        assert d["stack_trace"] == "trace"
        assert d["session_id"] == "s1"
        assert d["intent"] == ""


class TestLogStructuredError:
    def test_logs_at_error_level(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("test.structured")
        exc = ValueError("test error")
        try:
            raise exc
        except ValueError:
            with caplog.at_level(logging.ERROR, logger="test.structured"):
                result = log_structured_error(
                    test_logger,
                    exc,
                    session_id="chat-9",
                    intent="VPN",
                    context={"question": "vpn is down"},
                )
        assert result.error_code == "ValueError"
        assert result.session_id == "chat-9"
        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.ERROR
        assert caplog.records[0].structured_error["session_id"] == "chat-9"
        assert caplog.records[0].structured_error["intent"] == "VPN"
        assert caplog.records[0].structured_error["context"] == {"question": "[chat text, 11 chars]"}
        assert "vpn is down" not in caplog.text

    def test_custom_level(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("test.structured")
        with caplog.at_level(logging.WARNING, logger="test.structured"):
            log_structured_error(test_logger, RuntimeError("soft"), level=logging.WARNING)
        assert caplog.records[0].levelno == logging.WARNING
