from __future__ import annotations

"""
Tokenisation helpers shared by the prediction index and the field scorer.

Both sides of a match must see the same view of text, so labels coming
from the classifier and catalog fields go through the same functions.

Public helpers:

* tokenize(text) -> List[str]
    Lower-case words split on whitespace and commas.

* tokenize_with_whole(text) -> List[str]
    Same, prefixed with the whole lower-cased phrase so multi-word labels
    ("coffee mug") can match as a unit before the per-word fallback.
"""

from typing import List, Optional
import re

_SPLIT_RE = re.compile(r"[\s,]+")


def _as_text(text: Optional[str]) -> str:
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    return text


def tokenize(text: Optional[str]) -> List[str]:
    """Split ``text`` into lower-case tokens, dropping empties."""
    lowered = _as_text(text).lower()
    return [part.strip() for part in _SPLIT_RE.split(lowered) if part.strip()]


def tokenize_with_whole(text: Optional[str]) -> List[str]:
    """Tokenise ``text`` and prefix the result with the whole phrase.

    A one-word input yields that word twice; the scoring weights are
    calibrated with this duplication in place.
    """
    whole = _as_text(text).strip().lower()
    if not whole:
        return []
    return [whole] + tokenize(whole)
