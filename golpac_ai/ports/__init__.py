"""Port interfaces - Layer boundary contracts.

    AssistantPort    - One chat turn (Gateway-facing)
    WSAssistantPort  - Gateway-facing WebSocket handler interface
    WebSocketSender  - Outbound frame sink the Gateway hands to Brain
"""

from golpac_ai.ports.assistant_port import (
    AssistantPort,
    WebSocketSender,
    WSAssistantPort,
    WSMessage,
    WSResponse,
)

__all__ = [
    "AssistantPort",
    "WSAssistantPort",
    "WSMessage",
    "WSResponse",
    "WebSocketSender",
]
