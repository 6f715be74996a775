"""Text cleanup helpers shared by the extraction stages."""

from __future__ import annotations

import re

TRUNCATION_MARKER = "..."

_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n")
_REPEATED_CHAR_RE = re.compile(r"(.)\1{3,}")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def collapse_repeats(text: str) -> str:
    """Shrink runs of 4+ identical characters ("!!!!!", "-----") to two."""
    return _REPEATED_CHAR_RE.sub(r"\1\1", text)


def clean_text(text: str) -> str:
    """Normalize extracted page text for readability.

    Whitespace runs become single spaces, blank lines are dropped, each line
    is trimmed and repeated-character runs are collapsed.
    """
    text = _WHITESPACE_RE.sub(" ", text)
    text = _BLANK_LINES_RE.sub("\n", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = collapse_repeats(text)
    return text.strip()


def truncate(text: str, limit: int, marker: str = TRUNCATION_MARKER) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def count_words(text: str) -> int:
    return len(text.split())
