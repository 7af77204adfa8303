"""Text processing helpers."""

from __future__ import annotations

import re


BLANK_RUN_RE = re.compile(r"\n{3,}")


def collapse_blank_runs(text: str) -> str:
    """Reduce three or more consecutive newlines to a single blank line."""
    return BLANK_RUN_RE.sub("\n\n", text)


def reduction_percent(original: str, derived: str) -> int:
    """Size reduction of ``derived`` relative to ``original``, in whole percent."""
    if not original:
        return 0
    return round((1 - len(derived) / len(original)) * 100)
