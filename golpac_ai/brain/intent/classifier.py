"""Intent understanding module.

- Scores a message against each configured topic pattern set
- Best score wins; below the intent's min_score -> UNKNOWN (score 0)
- Greeting detection is stricter and yields to any detected topic
- Recent messages can confirm a weak topical signal (recency corpus)

Pure and deterministic: identical input always yields the identical result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from golpac_ai.brain.intent.config import AssistantConfig, default_config
from golpac_ai.brain.intent.fuzzy import match_score, matches_any
from golpac_ai.brain.intent.normalizer import normalize
from golpac_ai.shared.types import Intent

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

_GREETING_PUNCT_RE = re.compile(r"[.!?,]")


@dataclass(frozen=True)
class IntentResult:
    """Result of intent classification."""

    intent: Intent
    score: int
    reasoning: str = ""

    @property
    def is_unknown(self) -> bool:
        return self.intent is Intent.UNKNOWN


class IntentClassifier:
    """Rule-based topic classifier over the configured pattern sets.

    Thresholds (min_score per intent) and typo bounds come from the
    calibration section of the configuration.
    """

    def __init__(self, config: AssistantConfig | None = None) -> None:
        self._config = config or default_config()

    @property
    def config(self) -> AssistantConfig:
        return self._config

    def score(self, text: str, patterns: Iterable[str]) -> int:
        """match_score with the configured calibration."""
        cal = self._config.calibration
        return match_score(
            text,
            patterns,
            max_distance=cal.typo_max_distance,
            max_length_delta=cal.typo_max_length_delta,
            tight_min_length=cal.tight_match_min_length,
        )

    def topic_scores(self, text: str) -> dict[Intent, int]:
        """Raw score per configured intent, in configuration order."""
        return {cfg.intent: self.score(text, cfg.patterns) for cfg in self._config.intents}

    def detect_intent(self, text: str) -> IntentResult:
        """Classify a message. Ties keep the earlier configured intent."""
        if not normalize(text):
            return IntentResult(
                intent=Intent.UNKNOWN,
                score=0,
                reasoning="Empty message",
            )

        best_intent = Intent.UNKNOWN
        best_score = 0
        for intent, value in self.topic_scores(text).items():
            if value > best_score:
                best_intent, best_score = intent, value

        min_score = self._config.min_score_for(best_intent)
        if best_intent is Intent.UNKNOWN or best_score < min_score:
            return IntentResult(
                intent=Intent.UNKNOWN,
                score=0,
                reasoning=f"Best score {best_score} below threshold {min_score}",
            )

        logger.debug("Detected intent %s (score=%d)", best_intent.value, best_score)
        return IntentResult(
            intent=best_intent,
            score=best_score,
            reasoning=f"Matched {best_intent.value} patterns (score={best_score})",
        )

    def detect_from_corpus(self, text: str, recent: Sequence[str]) -> IntentResult:
        """Classify text, letting recent messages confirm a weak signal.

        Only used when the message alone is UNKNOWN but still scores on some
        topic; the joined corpus (last recent_corpus_size messages + text)
        must then land on one of those topics.
        """
        result = self.detect_intent(text)
        size = self._config.calibration.recent_corpus_size
        if not result.is_unknown or size <= 0 or not recent:
            return result

        weak = {intent for intent, value in self.topic_scores(text).items() if value > 0}
        if not weak:
            return result

        corpus = " ".join([*recent[-size:], text])
        combined = self.detect_intent(corpus)
        if combined.is_unknown or combined.intent not in weak:
            return result

        logger.debug(
            "Recent messages confirmed intent %s (score=%d)",
            combined.intent.value,
            combined.score,
        )
        return IntentResult(
            intent=combined.intent,
            score=combined.score,
            reasoning=f"Weak signal confirmed by recent messages ({combined.intent.value})",
        )

    def looks_like_issue(self, text: str) -> bool:
        """True if the message scores on any topic at all."""
        return any(value > 0 for value in self.topic_scores(text).values())

    def is_greeting(self, text: str) -> bool:
        """Bare greeting: short, greeting-shaped, and free of topic keywords."""
        msg = text.strip().lower()
        if not msg:
            return False
        cleaned = _GREETING_PUNCT_RE.sub("", msg).strip()
        if len(cleaned.split()) > self._config.greeting_max_tokens:
            return False

        greeting_shaped = cleaned in self._config.greeting_words or any(
            cleaned.startswith(prefix) for prefix in self._config.greeting_prefixes
        )
        if not greeting_shaped:
            return False
        return self.detect_intent(cleaned).is_unknown

    def has_switch_hint(self, text: str) -> bool:
        """User signalled a new, different issue ("new issue", "other problem")."""
        return matches_any(text, self._config.switch_hints)
