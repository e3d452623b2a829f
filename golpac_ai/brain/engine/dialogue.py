"""Dialogue manager: fixed three-step slot-filling script per intent.

States (from ConversationState.step_index):
  0 ASK_DETAILS -> 1 ASK_ERROR -> 2 SUMMARIZE -> (reset)
                                   >= 3 DONE  -> escalate + reset

- Step 0: emit the intent's first question, advance to 1
- Step 1: store the answer as the first slot, emit the second question
- Step 2: store the second slot, acknowledge, and return the summary as a
  delayed follow-up together with ticket data; the flow resets
- Scripts are data (AssistantConfig); the only intent-specific behaviour is
  the Sage 300 slot shape (module, then exact error text)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from golpac_ai.brain.engine.composer import ResponseComposer
from golpac_ai.brain.intent.config import AssistantConfig, default_config
from golpac_ai.shared.types import (
    NO_FLOW_INTENTS,
    ConversationState,
    GenericSlots,
    Intent,
    SageSlots,
    TicketDraft,
)

if TYPE_CHECKING:
    from golpac_ai.shared.types import AiResponse, Slots

logger = logging.getLogger(__name__)


class FlowStep(enum.Enum):
    ASK_DETAILS = "ask_details"
    ASK_ERROR = "ask_error"
    SUMMARIZE = "summarize"
    DONE = "done"


def step_for_index(index: int) -> FlowStep:
    if index <= 0:
        return FlowStep.ASK_DETAILS
    if index == 1:
        return FlowStep.ASK_ERROR
    if index == 2:
        return FlowStep.SUMMARIZE
    return FlowStep.DONE


def _empty_slots(intent: Intent) -> Slots:
    return SageSlots() if intent is Intent.SAGE300 else GenericSlots()


def _store_first(slots: Slots, answer: str) -> Slots:
    if isinstance(slots, SageSlots):
        return replace(slots, module=answer)
    return slots.with_slot("first", answer)


def _store_second(slots: Slots, answer: str) -> Slots:
    if isinstance(slots, SageSlots):
        return slots if slots.error_text else replace(slots, error_text=answer)
    return slots if slots.get("second") else slots.with_slot("second", answer)


def _slot_values(slots: Slots) -> tuple[str | None, str | None, str | None]:
    """(first, second, subject) regardless of slot shape."""
    if isinstance(slots, SageSlots):
        return slots.module, slots.error_text, None
    return slots.get("first"), slots.get("second"), slots.get("subject")


class DialogueManager:
    """Drives one intent's script over successive turns.

    Stateless itself: every call takes the prior ConversationState and
    returns the next one inside the AiResponse.
    """

    def __init__(
        self,
        config: AssistantConfig | None = None,
        composer: ResponseComposer | None = None,
    ) -> None:
        self._config = config or default_config()
        self._composer = composer or ResponseComposer(self._config)

    def start(self, intent: Intent) -> AiResponse:
        """Begin a fresh flow; previous partial slots are discarded."""
        if intent in NO_FLOW_INTENTS:
            intent = Intent.GENERAL_IT
        script = self._config.flow_for(intent)
        logger.info("Starting %s flow", intent.value)
        return self._composer.reply(
            script.ask1,
            ConversationState(active_intent=intent, step_index=1, slots=_empty_slots(intent)),
        )

    def advance(self, state: ConversationState, answer: str) -> AiResponse:
        """Consume the user's answer to the current step's question."""
        intent = state.active_intent
        if intent is None or intent in NO_FLOW_INTENTS:
            intent = Intent.GENERAL_IT
        step = step_for_index(state.step_index)

        if step is FlowStep.ASK_DETAILS:
            return self.start(intent)

        slots = state.slots if state.slots is not None else _empty_slots(intent)
        script = self._config.flow_for(intent)

        if step is FlowStep.ASK_ERROR:
            if answer:
                slots = _store_first(slots, answer)
            return self._composer.reply(
                script.ask2,
                ConversationState(active_intent=intent, step_index=2, slots=slots),
            )

        if step is FlowStep.SUMMARIZE:
            if answer:
                slots = _store_second(slots, answer)
            return self._summarize(intent, slots)

        logger.info("%s flow has no step left, escalating", intent.value)
        return self._composer.escalation()

    def _summarize(self, intent: Intent, slots: Slots) -> AiResponse:
        first, second, subject = _slot_values(slots)
        not_provided = self._config.messages.not_provided
        summary = self._config.flow_for(intent).summary.render(
            first or not_provided,
            second or not_provided,
        )
        description = "\n".join(part for part in (first, second) if part).strip()
        ticket = TicketDraft(
            subject=subject or "",
            category=intent.value,
            description=description,
        )
        logger.info("Completed %s flow, ticket draft ready", intent.value)
        return self._composer.handoff(
            summary,
            ConversationState(ticket_draft=ticket),
            ticket,
        )
