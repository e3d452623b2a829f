"""AssistantPort - Gateway-facing assistant interface.

Defines Protocol types for the assistant engine and WebSocket handler.
Gateway depends on these protocols, not Brain concrete classes.

Data classes (WSMessage, WSResponse) are defined here so both Gateway and
Brain can import them without cross-layer violations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from golpac_ai.shared.types import (
        AiResponse,
        ConversationState,
        DeviceStatus,
        HistoryEntry,
        TelemetryContext,
    )


class AssistantPort(Protocol):
    """Port: one-turn answer computation (structural typing).

    Brain's AssistantEngine satisfies this protocol automatically.
    """

    def answer(
        self,
        question: str,
        recent_questions: Sequence[str] = ...,
        telemetry: TelemetryContext | None = ...,
        history: Sequence[HistoryEntry] = ...,
        state: ConversationState | None = ...,
        device_status: DeviceStatus | None = ...,
    ) -> AiResponse:
        """Answer one user message."""
        ...


class WebSocketSender(Protocol):
    """Protocol for sending messages over WebSocket."""

    async def send(self, data: dict[str, Any]) -> None:
        """Send a message to the connected client."""
        ...


@dataclass(frozen=True)
class WSMessage:
    """A WebSocket message from client."""

    type: str  # "message" | "clear" | "ping" | "close"
    session_id: str
    content: str = ""
    telemetry: dict[str, Any] = field(default_factory=dict)
    device_status: dict[str, Any] | None = None


@dataclass(frozen=True)
class WSResponse:
    """Outcome of handling one client message."""

    type: str  # "answer" | "pong" | "cleared" | "close"
    session_id: str
    content: str = ""
    payload: dict[str, Any] = field(default_factory=dict)


class WSAssistantPort(Protocol):
    """Port: WebSocket assistant handler interface (structural typing)."""

    async def handle_message(
        self,
        message: WSMessage,
        sender: WebSocketSender,
    ) -> WSResponse:
        """Handle an incoming WebSocket message."""
        ...
