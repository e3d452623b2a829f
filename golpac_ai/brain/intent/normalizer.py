"""Text normalization shared by patterns and user input.

Both sides go through the same transform, so punctuation and word-boundary
differences ("sage300" vs "sage 300", "e-mail" vs "e mail") do not defeat
matching.
"""

from __future__ import annotations

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, collapse every non-alphanumeric run to one space, trim."""
    return _NON_ALNUM_RE.sub(" ", text.lower()).strip()


def tighten(text: str) -> str:
    """Normalized text with all whitespace removed."""
    return _WHITESPACE_RE.sub("", normalize(text))

