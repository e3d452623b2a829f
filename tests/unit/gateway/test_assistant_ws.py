"""Tests for the WS /ws/assistant/{session_id} endpoint."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from golpac_ai.brain.engine.assistant import AssistantEngine
from golpac_ai.brain.engine.followup import FollowUpScheduler
from golpac_ai.brain.engine.session import SessionStore
from golpac_ai.brain.engine.ws_handler import AssistantWSHandler
from golpac_ai.gateway.api.assistant import MAX_QUESTION_LENGTH
from golpac_ai.gateway.app import create_app
from golpac_ai.gateway.ws.assistant import create_ws_router


@pytest.fixture()
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture()
def client(config, sessions: SessionStore) -> TestClient:
    scheduler = FollowUpScheduler()
    handler = AssistantWSHandler(AssistantEngine(config=config), sessions, scheduler)
    app = create_app()
    app.include_router(create_ws_router(handler=handler, scheduler=scheduler))
    return TestClient(app)


@pytest.mark.unit
class TestAssistantWebSocket:
    def test_ping_pong(self, client: TestClient):
        with client.websocket_connect("/ws/assistant/chat-1") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_message_starts_flow(self, client: TestClient, sessions: SessionStore):
        with client.websocket_connect("/ws/assistant/chat-1") as ws:
            ws.send_json({"type": "message", "content": "My HP printer won't print"})
            frame = ws.receive_json()
        assert frame["type"] == "answer"
        assert frame["flow"]["activeIntent"] == "PRINTERS"
        assert frame["flow"]["stepIndex"] == 1
        assert len(sessions.get("chat-1").history) == 1

    def test_type_defaults_to_message(self, client: TestClient):
        with client.websocket_connect("/ws/assistant/chat-1") as ws:
            ws.send_json({"content": "hello"})
            frame = ws.receive_json()
        assert frame["type"] == "answer"
        assert frame["answer"].startswith("Hi, I'm Golpac AI.")

    def test_unsupported_frame(self, client: TestClient):
        with client.websocket_connect("/ws/assistant/chat-1") as ws:
            ws.send_json({"type": "upload"})
            frame = ws.receive_json()
            assert frame == {
                "type": "error",
                "error": "VALIDATION",
                "message": "Unsupported frame",
            }
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_clear(self, client: TestClient, sessions: SessionStore):
        with client.websocket_connect("/ws/assistant/chat-1") as ws:
            ws.send_json({"type": "message", "content": "vpn is down"})
            ws.receive_json()
            ws.send_json({"type": "clear"})
            assert ws.receive_json() == {"type": "cleared", "session_id": "chat-1"}
        assert not sessions.get("chat-1").state.has_active_flow

    def test_oversized_message_rejected(self, client: TestClient, sessions: SessionStore):
        with client.websocket_connect("/ws/assistant/chat-1") as ws:
            ws.send_json({"type": "message", "content": "x" * (MAX_QUESTION_LENGTH + 1)})
            frame = ws.receive_json()
            assert frame == {
                "type": "error",
                "error": "VALIDATION",
                "message": f"Message exceeds {MAX_QUESTION_LENGTH} characters",
            }
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}
        assert sessions.peek("chat-1") is None
