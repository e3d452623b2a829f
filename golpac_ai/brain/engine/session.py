"""In-memory chat sessions with inactivity expiry.

A session owns one ConversationState plus the recent questions and history
the engine reads. It is replaced by a fresh one after the configured idle
timeout (10 minutes by default) or on an explicit clear.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from golpac_ai.shared.types import ConversationState, HistoryEntry

if TYPE_CHECKING:
    from golpac_ai.shared.types import AiResponse

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class ChatSession:
    """Mutable per-chat holder. Only its SessionStore writes to it."""

    session_id: str
    last_active: float
    state: ConversationState = field(default_factory=ConversationState)
    history: list[HistoryEntry] = field(default_factory=list)

    def recent_questions(self, limit: int) -> list[str]:
        if limit <= 0:
            return []
        return [entry.question for entry in self.history[-limit:] if entry.question]


class SessionStore:
    """Session registry keyed by session id."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 600,
        history_limit: int = 50,
        clock: Clock = time.monotonic,
    ) -> None:
        self._timeout = timeout_seconds
        self._history_limit = history_limit
        self._clock = clock
        self._sessions: dict[str, ChatSession] = {}

    def _fresh(self, session_id: str) -> ChatSession:
        session = ChatSession(session_id=session_id, last_active=self._clock())
        self._sessions[session_id] = session
        return session

    def is_expired(self, session: ChatSession) -> bool:
        return self._clock() - session.last_active >= self._timeout

    def get(self, session_id: str) -> ChatSession:
        """Return the live session, starting over if it sat idle too long."""
        session = self._sessions.get(session_id)
        if session is None:
            return self._fresh(session_id)
        if self.is_expired(session):
            logger.info("Session %s idle past %ss, resetting", session_id, self._timeout)
            return self._fresh(session_id)
        return session

    def peek(self, session_id: str) -> ChatSession | None:
        """Current session without creating or expiring it."""
        return self._sessions.get(session_id)

    def record(self, session_id: str, question: str, response: AiResponse) -> ChatSession:
        """Persist the state a turn returned and append the exchange to history."""
        session = self.get(session_id)
        if response.flow is not None:
            session.state = response.flow
        session.history.append(HistoryEntry(question=question, answer=response.answer))
        if len(session.history) > self._history_limit:
            del session.history[: len(session.history) - self._history_limit]
        session.last_active = self._clock()
        return session

    def clear(self, session_id: str) -> ChatSession:
        """Explicit "Clear chat": drop state and history."""
        logger.info("Session %s cleared", session_id)
        return self._fresh(session_id)

    def purge_expired(self) -> int:
        """Drop idle sessions. Returns how many were removed."""
        expired = [sid for sid, s in self._sessions.items() if self.is_expired(s)]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
