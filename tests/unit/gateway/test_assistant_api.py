"""Tests for the assistant REST API.

- POST   /api/v1/assistant/answer
- POST   /api/v1/assistant/sessions/{id}/messages
- GET    /api/v1/assistant/sessions/{id}
- DELETE /api/v1/assistant/sessions/{id}
"""

from __future__ import annotations

from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from golpac_ai.brain.engine.assistant import AssistantEngine
from golpac_ai.brain.engine.session import SessionStore
from golpac_ai.gateway.api.assistant import MAX_QUESTION_LENGTH, create_assistant_router
from golpac_ai.gateway.app import create_app


class BrokenEngine:
    """AssistantPort that always fails, to exercise the error boundary."""

    def answer(self, question: str, *args: Any, **kwargs: Any) -> Any:
        msg = "rule table exploded"
        raise RuntimeError(msg)


@pytest.fixture()
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture()
async def client(config, sessions: SessionStore):
    app = create_app()
    app.include_router(
        create_assistant_router(engine=AssistantEngine(config=config), sessions=sessions),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.unit
class TestStatelessAnswer:
    """POST /api/v1/assistant/answer"""

    async def test_starts_flow(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/assistant/answer",
            json={"question": "My HP printer won't print"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["flow"]["activeIntent"] == "PRINTERS"
        assert data["flow"]["stepIndex"] == 1
        assert "printing issue" in data["answer"]

    async def test_caller_carries_state(self, client: AsyncClient):
        first = (
            await client.post(
                "/api/v1/assistant/answer",
                json={"question": "Sage 300 is giving me an error"},
            )
        ).json()
        resp = await client.post(
            "/api/v1/assistant/answer",
            json={"question": "General Ledger", "conversationState": first["flow"]},
        )
        flow = resp.json()["flow"]
        assert flow["activeIntent"] == "SAGE300"
        assert flow["stepIndex"] == 2
        assert flow["sage"] == {"module": "General Ledger"}

    async def test_vpn_status_from_device_status(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/assistant/answer",
            json={
                "question": "am i on vpn",
                "deviceStatus": {
                    "network": {
                        "internetStatus": "online",
                        "vpnStatus": "connected",
                        "publicIp": "203.0.113.7",
                    }
                },
            },
        )
        data = resp.json()
        assert "VPN: connected" in data["answer"]
        assert "203.0.113.7" in data["answer"]
        assert data["actionLabel"] == "View details in Troubleshoot"
        assert data["actionTarget"] == "troubleshoot"
        assert data["flow"] == {"stepIndex": 0}

    async def test_empty_question_fallback(self, client: AsyncClient):
        resp = await client.post("/api/v1/assistant/answer", json={"question": ""})
        assert resp.status_code == 200
        data = resp.json()
        assert "submit a ticket" in data["answer"]
        assert "activeIntent" not in data["flow"]
        assert data["actionTarget"] == "ticket"

    async def test_recent_questions_and_history(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/assistant/answer",
            json={
                "question": "the queu is stuck",
                "recentQuestions": ["", "my printer is broken"],
                "history": [{"question": "my printer is broken", "answer": "..."}],
            },
        )
        assert resp.json()["flow"]["activeIntent"] == "PRINTERS"

    async def test_completed_flow_returns_ticket_data(self, client: AsyncClient):
        state = {"activeIntent": "VPN", "stepIndex": 2, "slots": {"first": "Check Point"}}
        resp = await client.post(
            "/api/v1/assistant/answer",
            json={"question": "It times out", "conversationState": state},
        )
        data = resp.json()
        assert data["answer"] == "Preparing the details for IT…"
        assert data["followUpDelayMs"] == 1200
        assert data["ticketData"] == {
            "subject": "",
            "category": "VPN",
            "description": "Check Point\nIt times out",
        }
        assert data["actionLabel"] == "Open ticket form"

    async def test_question_too_long_returns_422(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/assistant/answer",
            json={"question": "x" * (MAX_QUESTION_LENGTH + 1)},
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION"
        assert "4000 characters" in resp.json()["message"]

    async def test_non_finite_state_is_tolerated(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/assistant/answer",
            content=b'{"question": "hi", "conversationState": {"stepIndex": 1e400}}',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 200
        assert resp.json()["flow"] == {"stepIndex": 0}

    async def test_wrong_type_returns_422(self, client: AsyncClient):
        resp = await client.post("/api/v1/assistant/answer", json={"question": ["a", "b"]})
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION"

    async def test_engine_failure_returns_500(self, sessions: SessionStore):
        app = create_app()
        app.include_router(create_assistant_router(engine=BrokenEngine(), sessions=sessions))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            resp = await c.post("/api/v1/assistant/answer", json={"question": "hello there"})
        assert resp.status_code == 500
        assert resp.json()["error"] == "ASSISTANT_FAILURE"


@pytest.mark.unit
class TestSessions:
    """Server-held session endpoints."""

    async def test_session_flow(self, client: AsyncClient):
        url = "/api/v1/assistant/sessions/chat-1/messages"
        await client.post(url, json={"question": "My HP printer won't print"})
        resp = await client.post(url, json={"question": "HP LaserJet 4th floor"})
        assert resp.json()["flow"]["stepIndex"] == 2

        state = (await client.get("/api/v1/assistant/sessions/chat-1")).json()
        assert state["session_id"] == "chat-1"
        assert state["flow"]["activeIntent"] == "PRINTERS"
        assert state["flow"]["slots"] == {"first": "HP LaserJet 4th floor"}
        assert state["history_length"] == 2

        done = (await client.post(url, json={"question": "yes"})).json()
        assert done["ticketData"]["description"] == "HP LaserJet 4th floor\nyes"

    async def test_recent_session_questions_used(self, client: AsyncClient):
        url = "/api/v1/assistant/sessions/chat-2/messages"
        await client.post(url, json={"question": "my printer is broken"})
        await client.post(url, json={"question": "new issue"})
        resp = await client.post(url, json={"question": "hello"})
        assert resp.status_code == 200

    async def test_clear_session(self, client: AsyncClient, sessions: SessionStore):
        url = "/api/v1/assistant/sessions/chat-1/messages"
        await client.post(url, json={"question": "vpn is down"})

        resp = await client.delete("/api/v1/assistant/sessions/chat-1")
        assert resp.status_code == 204

        state = (await client.get("/api/v1/assistant/sessions/chat-1")).json()
        assert state["flow"] == {"stepIndex": 0}
        assert state["history_length"] == 0

    async def test_unknown_session_returns_404(self, client: AsyncClient):
        resp = await client.get("/api/v1/assistant/sessions/never-seen")
        assert resp.status_code == 404
        assert resp.json() == {"error": "NOT_FOUND", "message": "Session not found: never-seen"}

    async def test_blank_session_id_returns_422(self, client: AsyncClient):
        resp = await client.get("/api/v1/assistant/sessions/%20")
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION"

    async def test_session_expired_returns_404(self, config):
        now = [0.0]
        sessions = SessionStore(timeout_seconds=600, clock=lambda: now[0])
        app = create_app()
        app.include_router(
            create_assistant_router(engine=AssistantEngine(config=config), sessions=sessions),
        )
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            await c.post(
                "/api/v1/assistant/sessions/chat-1/messages",
                json={"question": "vpn is down"},
            )
            now[0] = 601.0
            resp = await c.get("/api/v1/assistant/sessions/chat-1")
        assert resp.status_code == 404
