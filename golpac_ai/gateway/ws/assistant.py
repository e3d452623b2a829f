"""WebSocket endpoint for the real-time assistant chat.

- WS /ws/assistant/{session_id}
- Client frames: {"type": "message", "content", "telemetry", "deviceStatus"},
  {"type": "clear"}, {"type": "ping"}, {"type": "close"}
- Server frames: answer, follow_up (delayed), ticket_prefill, cleared, pong
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from golpac_ai.gateway.api.assistant import MAX_QUESTION_LENGTH
from golpac_ai.ports.assistant_port import WSMessage
from golpac_ai.shared.errors import ValidationError

if TYPE_CHECKING:
    from golpac_ai.brain.engine.followup import FollowUpScheduler
    from golpac_ai.ports.assistant_port import WSAssistantPort

logger = logging.getLogger(__name__)

_CLIENT_TYPES = frozenset({"message", "clear", "ping", "close"})


class _FastAPIWebSocketSender:
    """Adapter from FastAPI WebSocket to Brain's WebSocketSender protocol."""

    def __init__(self, ws: WebSocket) -> None:
        self._ws = ws

    async def send(self, data: dict[str, Any]) -> None:
        await self._ws.send_json(data)


def _parse_frame(data: Any, session_id: str) -> WSMessage:
    """Validate a client frame. Raises ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Unsupported frame")
    msg_type = data.get("type", "message")
    if msg_type not in _CLIENT_TYPES:
        raise ValidationError("Unsupported frame", field="type")
    content = str(data.get("content") or "")
    if len(content) > MAX_QUESTION_LENGTH:
        msg = f"Message exceeds {MAX_QUESTION_LENGTH} characters"
        raise ValidationError(msg, field="content")
    telemetry = data.get("telemetry")
    device_status = data.get("deviceStatus")
    return WSMessage(
        type=msg_type,
        session_id=session_id,
        content=content,
        telemetry=telemetry if isinstance(telemetry, dict) else {},
        device_status=device_status if isinstance(device_status, dict) else None,
    )


def create_ws_router(
    *,
    handler: WSAssistantPort,
    scheduler: FollowUpScheduler | None = None,
) -> APIRouter:
    """Create WebSocket router with injected handler.

    When a scheduler is given, follow-ups still pending for the session are
    cancelled once the socket goes away.
    """
    router = APIRouter(tags=["websocket"])

    @router.websocket("/ws/assistant/{session_id}")
    async def websocket_assistant(websocket: WebSocket, session_id: str) -> None:
        """WebSocket endpoint for the assistant chat."""
        await websocket.accept()
        sender = _FastAPIWebSocketSender(websocket)
        logger.info("WS connected session_id=%s", session_id)

        try:
            while True:
                data = await websocket.receive_json()
                try:
                    msg = _parse_frame(data, session_id)
                except ValidationError as exc:
                    await sender.send({"type": "error", "error": exc.code, "message": str(exc)})
                    continue

                response = await handler.handle_message(msg, sender)

                if response.type == "close":
                    await websocket.close()
                    break
        except WebSocketDisconnect:
            logger.info("WS disconnected session_id=%s", session_id)
        except Exception:
            logger.exception("WS error session_id=%s", session_id)
            await websocket.close(code=1011, reason="Internal server error")
        finally:
            if scheduler is not None:
                scheduler.cancel(session_id)

    return router
