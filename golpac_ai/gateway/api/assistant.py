"""Assistant REST API endpoints.

- POST   /api/v1/assistant/answer                       -> one stateless turn
- POST   /api/v1/assistant/sessions/{id}/messages       -> turn on a server-held session
- GET    /api/v1/assistant/sessions/{id}                -> current flow state
- DELETE /api/v1/assistant/sessions/{id}                -> "Clear chat"

The stateless endpoint mirrors the chat UI contract: the caller carries the
conversation state and history and gets the new state back in ``flow``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from golpac_ai.shared.errors import AssistantError, NotFoundError, ValidationError
from golpac_ai.shared.logging.error_handler import log_structured_error
from golpac_ai.shared.types import (
    ConversationState,
    DeviceStatus,
    HistoryEntry,
    TelemetryContext,
)

if TYPE_CHECKING:
    from golpac_ai.brain.engine.session import SessionStore
    from golpac_ai.ports.assistant_port import AssistantPort
    from golpac_ai.shared.types import AiResponse

logger = logging.getLogger(__name__)

MAX_QUESTION_LENGTH = 4000
MAX_SESSION_ID_LENGTH = 128


def _check_question(v: str) -> str:
    if len(v) > MAX_QUESTION_LENGTH:
        msg = f"Question exceeds {MAX_QUESTION_LENGTH} characters"
        raise ValueError(msg)
    return v


class HistoryItem(BaseModel):
    """One prior exchange shown in the chat."""

    question: str = ""
    answer: str = ""


class AnswerRequest(BaseModel):
    """Request model for a stateless assistant turn.

    An empty question is accepted; the assistant answers it with the
    fallback prompt.
    """

    model_config = ConfigDict(populate_by_name=True)

    question: str = ""
    recent_questions: list[str] = Field(default_factory=list, alias="recentQuestions")
    telemetry: dict[str, Any] = Field(default_factory=dict)
    history: list[HistoryItem] = Field(default_factory=list)
    conversation_state: dict[str, Any] | None = Field(default=None, alias="conversationState")
    device_status: dict[str, Any] | None = Field(default=None, alias="deviceStatus")

    @field_validator("question")
    @classmethod
    def question_within_limit(cls, v: str) -> str:
        return _check_question(v)

    @field_validator("recent_questions")
    @classmethod
    def drop_blank_recent(cls, v: list[str]) -> list[str]:
        return [q for q in v if q and q.strip()]


class SessionMessageRequest(BaseModel):
    """Request model for a turn on a server-held session."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = ""
    telemetry: dict[str, Any] = Field(default_factory=dict)
    device_status: dict[str, Any] | None = Field(default=None, alias="deviceStatus")

    @field_validator("question")
    @classmethod
    def question_within_limit(cls, v: str) -> str:
        return _check_question(v)


class SessionStateResponse(BaseModel):
    """Snapshot of a server-held chat session."""

    session_id: str
    flow: dict[str, Any]
    history_length: int


def _check_session_id(session_id: str) -> str:
    session_id = session_id.strip()
    if not session_id or len(session_id) > MAX_SESSION_ID_LENGTH:
        raise ValidationError("Invalid session id", field="session_id")
    return session_id


def create_assistant_router(
    *,
    engine: AssistantPort,
    sessions: SessionStore,
    recent_limit: int = 3,
) -> APIRouter:
    """Create assistant API router with injected engine and session store."""
    router = APIRouter(prefix="/api/v1/assistant", tags=["assistant"])

    def _run(
        question: str,
        recent: list[str],
        telemetry: dict[str, Any],
        history: list[HistoryEntry],
        state: ConversationState,
        device_status: dict[str, Any] | None,
        *,
        session_id: str = "",
    ) -> AiResponse:
        try:
            return engine.answer(
                question,
                recent,
                TelemetryContext.from_dict(telemetry),
                history,
                state,
                DeviceStatus.from_dict(device_status) if device_status is not None else None,
            )
        except AssistantError:
            raise
        except Exception as exc:
            log_structured_error(
                logger,
                exc,
                error_code="ASSISTANT_FAILURE",
                session_id=session_id,
                intent=state.active_intent.value if state.active_intent else "",
                context={"question": question, "step_index": state.step_index},
            )
            raise AssistantError(
                "Assistant could not answer; please open a ticket",
                code="ASSISTANT_FAILURE",
            ) from exc

    @router.post("/answer")
    async def answer(body: AnswerRequest) -> dict[str, Any]:
        """Answer one message; the caller owns the conversation state."""
        state = (
            ConversationState.from_dict(body.conversation_state)
            if body.conversation_state is not None
            else ConversationState()
        )
        response = _run(
            body.question,
            body.recent_questions,
            body.telemetry,
            [HistoryEntry(question=h.question, answer=h.answer) for h in body.history],
            state,
            body.device_status,
        )
        return response.to_dict()

    @router.post("/sessions/{session_id}/messages")
    async def send_message(session_id: str, body: SessionMessageRequest) -> dict[str, Any]:
        """Answer one message against the server-held session."""
        sid = _check_session_id(session_id)
        session = sessions.get(sid)
        response = _run(
            body.question,
            session.recent_questions(recent_limit),
            body.telemetry,
            list(session.history),
            session.state,
            body.device_status,
            session_id=sid,
        )
        sessions.record(sid, body.question, response)
        if response.ticket_data is not None:
            logger.info(
                "Ticket draft ready session_id=%s category=%s",
                sid,
                response.ticket_data.category,
            )
        return response.to_dict()

    @router.get("/sessions/{session_id}", response_model=SessionStateResponse)
    async def get_session(session_id: str) -> SessionStateResponse:
        """Current flow state of a live session."""
        sid = _check_session_id(session_id)
        session = sessions.peek(sid)
        if session is None or sessions.is_expired(session):
            raise NotFoundError("Session", sid)
        return SessionStateResponse(
            session_id=sid,
            flow=session.state.to_dict(),
            history_length=len(session.history),
        )

    @router.delete("/sessions/{session_id}", status_code=204)
    async def clear_session(session_id: str) -> None:
        """Clear chat: drop the flow state and history."""
        sessions.clear(_check_session_id(session_id))

    return router
