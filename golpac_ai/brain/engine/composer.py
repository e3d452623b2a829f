"""Response composer: shapes every answer into an AiResponse.

The composer only declares follow-up timing and UI hints; scheduling the
delayed bubble and opening panels belong to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from golpac_ai.shared.types import AiResponse, ConversationState

if TYPE_CHECKING:
    from golpac_ai.brain.intent.config import AssistantConfig
    from golpac_ai.shared.types import TicketDraft


class ResponseComposer:
    def __init__(self, config: AssistantConfig) -> None:
        self._config = config

    def reply(self, answer: str, flow: ConversationState) -> AiResponse:
        """Plain conversational answer."""
        return AiResponse(answer=answer, flow=flow)

    def status(self, answer: str, flow: ConversationState) -> AiResponse:
        """Telemetry answer pointing at the Troubleshoot panel."""
        return AiResponse(
            answer=answer,
            flow=flow,
            action_label=self._config.messages.troubleshoot_action,
            action_target="troubleshoot",
        )

    def handoff(
        self,
        summary: str,
        flow: ConversationState,
        ticket: TicketDraft,
    ) -> AiResponse:
        """Immediate acknowledgement, then the summary as a delayed follow-up."""
        return AiResponse(
            answer=self._config.messages.preparing,
            follow_up=summary,
            follow_up_delay_ms=self._config.calibration.follow_up_delay_ms,
            flow=flow,
            action_label=self._config.messages.ticket_action,
            action_target="ticket",
            ticket_data=ticket,
        )

    def greeting(self) -> AiResponse:
        return AiResponse(answer=self._config.messages.greeting, flow=ConversationState())

    def fallback(self, flow: ConversationState | None = None) -> AiResponse:
        """Not-sure answer; the flow resets unless the caller passes one to keep."""
        return AiResponse(
            answer=self._config.messages.fallback,
            flow=flow if flow is not None else ConversationState(),
            action_label=self._config.messages.ticket_action,
            action_target="ticket",
        )

    def escalation(self) -> AiResponse:
        """Nothing left to ask: hand the user to IT and reset."""
        return AiResponse(
            answer=self._config.messages.escalation,
            flow=ConversationState(),
            action_label=self._config.messages.ticket_action,
            action_target="ticket",
        )
