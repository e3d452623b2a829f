"""Keyword scoring with bounded typo tolerance.

Per pattern, the first rule that fires wins:
- pattern is a substring of the normalized text          -> +3
- a word of the text equals the pattern                  -> +2
- a word within the length and edit-distance bounds      -> +1

The length guard keeps short unrelated words from matching ("pc" never
matches "vpn"). Scores accumulate over the pattern set.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from golpac_ai.brain.intent.normalizer import normalize, tighten

if TYPE_CHECKING:
    from collections.abc import Iterable

SUBSTRING_POINTS = 3
EXACT_WORD_POINTS = 2
TYPO_POINTS = 1


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert/delete/substitute, unit cost)."""
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current[j] = min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
        previous = current
    return previous[len(b)]


def match_score(
    text: str,
    patterns: Iterable[str],
    *,
    max_distance: int = 1,
    max_length_delta: int = 1,
    tight_min_length: int = 5,
) -> int:
    """Score text against a pattern set.

    The substring rule is also tried on the space-free ("tight") forms for
    patterns at least ``tight_min_length`` characters long, so "sage300"
    matches "sage 300" without letting short patterns such as "hp" match
    across unrelated word boundaries.
    """
    norm = normalize(text)
    tight = norm.replace(" ", "")
    words = [w for w in norm.split(" ") if w]
    score = 0
    for raw in patterns:
        pattern = normalize(raw)
        if not pattern:
            continue
        tight_pattern = tighten(raw)
        if pattern in norm or (len(tight_pattern) >= tight_min_length and tight_pattern in tight):
            score += SUBSTRING_POINTS
            continue
        for word in words:
            if word == pattern:
                score += EXACT_WORD_POINTS
                break
            if (
                abs(len(word) - len(pattern)) <= max_length_delta
                and levenshtein(word, pattern) <= max_distance
            ):
                score += TYPO_POINTS
                break
    return score


def matches_any(text: str, patterns: Iterable[str]) -> bool:
    """True if any normalized pattern occurs in the normalized text as whole words.

    "am i on vpn" matches "vpn"; "have" does not match "av".
    """
    norm = normalize(text)
    if not norm:
        return False
    padded = f" {norm} "
    return any(p and f" {p} " in padded for p in (normalize(raw) for raw in patterns))
