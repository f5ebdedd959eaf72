from __future__ import annotations

import re
from typing import Optional


_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Canonical comparable form: lower-case, punctuation removed, single spaces.

    Total and idempotent; None or empty input yields "".
    """
    if not text:
        return ""
    lowered = str(text).lower()
    stripped = _NON_WORD.sub("", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def tokens(text: Optional[str]) -> list[str]:
    normalized = normalize(text)
    return normalized.split(" ") if normalized else []
