"""WebSocket real-time assistant handler.

- Runs the engine against the server-held session for each chat message
- Sends the immediate answer, then the declared follow-up after its delay
- Sends ticket prefill data when a flow completes
- "clear" resets the session and cancels any pending follow-up
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from golpac_ai.ports.assistant_port import WSMessage, WSResponse
from golpac_ai.shared.types import DeviceStatus, TelemetryContext

if TYPE_CHECKING:
    from golpac_ai.brain.engine.followup import FollowUpScheduler
    from golpac_ai.brain.engine.session import SessionStore
    from golpac_ai.ports.assistant_port import AssistantPort, WebSocketSender

logger = logging.getLogger(__name__)


class AssistantWSHandler:
    """Bridges the Gateway WS endpoint to the assistant engine."""

    def __init__(
        self,
        engine: AssistantPort,
        sessions: SessionStore,
        scheduler: FollowUpScheduler,
        *,
        recent_limit: int = 3,
    ) -> None:
        self._engine = engine
        self._sessions = sessions
        self._scheduler = scheduler
        self._recent_limit = recent_limit

    async def handle_message(
        self,
        message: WSMessage,
        sender: WebSocketSender,
    ) -> WSResponse:
        """Handle an incoming WebSocket message.

        Routes based on message type:
        - message: Answer through the engine
        - clear: Reset the chat session
        - ping: Return pong
        - close: Cancel pending follow-ups
        """
        sid = message.session_id

        if message.type == "ping":
            await sender.send({"type": "pong"})
            return WSResponse(type="pong", session_id=sid)

        if message.type == "close":
            self._scheduler.cancel(sid)
            return WSResponse(type="close", session_id=sid)

        if message.type == "clear":
            self._scheduler.cancel(sid)
            self._sessions.clear(sid)
            await sender.send({"type": "cleared", "session_id": sid})
            return WSResponse(type="cleared", session_id=sid)

        session = self._sessions.get(sid)
        device_status = (
            DeviceStatus.from_dict(message.device_status)
            if message.device_status is not None
            else None
        )
        response = self._engine.answer(
            message.content,
            session.recent_questions(self._recent_limit),
            TelemetryContext.from_dict(message.telemetry),
            list(session.history),
            session.state,
            device_status,
        )
        self._sessions.record(sid, message.content, response)

        payload = response.to_dict()
        await sender.send({"type": "answer", "session_id": sid, **payload})

        if response.ticket_data is not None:
            await sender.send(
                {
                    "type": "ticket_prefill",
                    "session_id": sid,
                    "ticketData": response.ticket_data.to_dict(),
                }
            )

        if response.follow_up:
            follow_up = response.follow_up

            async def _send_follow_up() -> None:
                await sender.send({"type": "follow_up", "session_id": sid, "content": follow_up})

            self._scheduler.schedule(sid, response.follow_up_delay_ms or 0, _send_follow_up)

        return WSResponse(type="answer", session_id=sid, content=response.answer, payload=payload)
