"""Assistant engine -- one chat turn from question to AiResponse.

Order of evaluation:
1. Empty question                          -> fallback prompt, state kept
2. Bare greeting                           -> introduction, flow reset
3. Direct status question (VPN/network/IP) -> telemetry answer, flow kept
4. No flow + broad status question that is
   not a topic report                      -> diagnostics snapshot, flow kept
5. Switch hint ("new issue")               -> classify and start a new flow
6. Flow mid-way (step > 0)                 -> answer fills the current slot
7. No flow, or a strong new topic          -> classify and start a flow
8. Anything else                           -> fallback prompt, flow reset

Synchronous and pure: no I/O, no timers, no shared mutable state. Timing
(follow-up delay, session expiry) is declared in the response and owned by
the caller.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING

from golpac_ai.brain.diagnostics.shortcuts import (
    build_shortcut_answer,
    is_diagnostics_question,
    match_shortcut,
)
from golpac_ai.brain.diagnostics.summarizer import summarize_device_status
from golpac_ai.brain.engine.composer import ResponseComposer
from golpac_ai.brain.engine.dialogue import DialogueManager
from golpac_ai.brain.intent.classifier import IntentClassifier
from golpac_ai.brain.intent.config import AssistantConfig, default_config
from golpac_ai.shared.types import ConversationState, Intent, TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Sequence

    from golpac_ai.brain.metrics.sli import AssistantSLI
    from golpac_ai.shared.types import AiResponse, DeviceStatus, HistoryEntry

logger = logging.getLogger(__name__)


class AssistantEngine:
    """Rule-based troubleshooting assistant.

    All collaborators are injectable; by default they share the packaged
    configuration.
    """

    def __init__(
        self,
        *,
        config: AssistantConfig | None = None,
        classifier: IntentClassifier | None = None,
        dialogue: DialogueManager | None = None,
        sli: AssistantSLI | None = None,
    ) -> None:
        self._config = config or default_config()
        self._classifier = classifier or IntentClassifier(self._config)
        self._composer = ResponseComposer(self._config)
        self._dialogue = dialogue or DialogueManager(self._config, self._composer)
        self._sli = sli

    @property
    def config(self) -> AssistantConfig:
        return self._config

    def answer(
        self,
        question: str,
        recent_questions: Sequence[str] = (),
        telemetry: TelemetryContext | None = None,
        history: Sequence[HistoryEntry] = (),
        state: ConversationState | None = None,
        device_status: DeviceStatus | None = None,
    ) -> AiResponse:
        """Compute the answer for one user message."""
        timer = self._sli.timer(self._sli.turn_duration) if self._sli else nullcontext()
        with timer:
            response = self._answer(
                question,
                recent_questions,
                telemetry or TelemetryContext(),
                history,
                state or ConversationState(),
                device_status,
            )
        if self._sli is not None and response.ticket_data is not None:
            self._sli.flow_completed.labels(intent=response.ticket_data.category or "").inc()
        return response

    def _answer(
        self,
        question: str,
        recent_questions: Sequence[str],
        telemetry: TelemetryContext,
        history: Sequence[HistoryEntry],
        state: ConversationState,
        device_status: DeviceStatus | None,
    ) -> AiResponse:
        text = question.strip()
        classifier = self._classifier

        if not text:
            self._count_fallback("empty")
            return self._composer.fallback(flow=state)

        if classifier.is_greeting(text):
            return self._composer.greeting()

        kind = match_shortcut(text, classifier)
        if kind is not None:
            logger.debug("Status question (%s) answered from telemetry", kind.value)
            self._count_shortcut(kind.value)
            return self._composer.status(
                build_shortcut_answer(kind, device_status, telemetry, self._config),
                state,
            )

        if (
            not state.has_active_flow
            and is_diagnostics_question(text, self._config)
            and not classifier.looks_like_issue(text)
        ):
            self._count_shortcut("snapshot")
            return self._composer.status(
                summarize_device_status(device_status, self._config, telemetry),
                state,
            )

        if state.has_active_flow and classifier.has_switch_hint(text):
            logger.info(
                "Switch requested, discarding %s flow at step %d",
                state.active_intent.value if state.active_intent else "-",
                state.step_index,
            )
            return self._start_flow(text, recent_questions, history)

        if state.has_active_flow and state.step_index > 0:
            return self._dialogue.advance(state, text)

        detected = classifier.detect_intent(text)
        if not state.has_active_flow or detected.score >= self._config.calibration.default_min_score:
            return self._start_flow(text, recent_questions, history)

        self._count_fallback("unrecognized")
        return self._composer.fallback()

    def _start_flow(
        self,
        text: str,
        recent_questions: Sequence[str],
        history: Sequence[HistoryEntry],
    ) -> AiResponse:
        recent = list(recent_questions) or [entry.question for entry in history if entry.question]
        result = self._classifier.detect_from_corpus(text, recent)
        intent = Intent.GENERAL_IT if result.is_unknown else result.intent
        if self._sli is not None:
            self._sli.intent_detected.labels(intent=intent.value).inc()
        return self._dialogue.start(intent)

    def _count_shortcut(self, kind: str) -> None:
        if self._sli is not None:
            self._sli.shortcut_count.labels(kind=kind).inc()

    def _count_fallback(self, reason: str) -> None:
        if self._sli is not None:
            self._sli.fallback_count.labels(reason=reason).inc()


_default_engine: AssistantEngine | None = None


def build_ai_answer(
    question: str,
    recent_questions: Sequence[str] = (),
    telemetry: TelemetryContext | None = None,
    history: Sequence[HistoryEntry] = (),
    conversation_state: ConversationState | None = None,
    device_status: DeviceStatus | None = None,
) -> AiResponse:
    """Answer one message with a process-wide engine on the packaged config."""
    global _default_engine  # noqa: PLW0603
    if _default_engine is None:
        _default_engine = AssistantEngine()
    return _default_engine.answer(
        question,
        recent_questions,
        telemetry,
        history,
        conversation_state,
        device_status,
    )
