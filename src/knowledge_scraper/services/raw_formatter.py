"""Heuristic heading/body pairing into Q&A-style Markdown (no LLM involved)."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from ..utils.html import element_text, headings, iter_section_blocks
from ..utils.text import collapse_repeats, collapse_whitespace

RAW_BODY_TAGS: tuple[str, ...] = ("p", "ul", "ol", "li", "div", "span")
TOPIC_OPENERS: tuple[str, ...] = ("how to", "what is", "you can")

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")


class RawQAFormatter:
    """Builds a lightweight Q&A/topic document from headings and their bodies.

    Interrogative and plain topic headings are rendered identically as
    ``## <heading>`` blocks. When the page has too few usable headings the
    cleaned content is segmented into sentences instead, and when both
    strategies come up empty the cleaned content is returned unchanged.
    """

    def __init__(
        self,
        *,
        min_heading_chars: int = 5,
        max_heading_chars: int = 200,
        max_body_chars: int = 1000,
        min_body_chars: int = 20,
        min_output_chars: int = 100,
        min_sentence_chars: int = 20,
        max_section_chars: int = 500,
        max_output_chars: int = 2000,
        min_flush_chars: int = 50,
    ):
        self._min_heading_chars = min_heading_chars
        self._max_heading_chars = max_heading_chars
        self._max_body_chars = max_body_chars
        self._min_body_chars = min_body_chars
        self._min_output_chars = min_output_chars
        self._min_sentence_chars = min_sentence_chars
        self._max_section_chars = max_section_chars
        self._max_output_chars = max_output_chars
        self._min_flush_chars = min_flush_chars

    def format(self, soup: BeautifulSoup, content: str) -> str:
        formatted = self.format_headings(soup)
        if len(formatted) < self._min_output_chars:
            formatted += self.format_sentences(content, already_written=len(formatted))
        return formatted or content

    def format_headings(self, soup: BeautifulSoup) -> str:
        blocks: list[str] = []
        for heading in headings(soup):
            heading_text = element_text(heading)
            if not self._min_heading_chars <= len(heading_text) < self._max_heading_chars:
                continue

            parts: list[str] = []
            accumulated = 0
            for block in iter_section_blocks(heading):
                if accumulated >= self._max_body_chars:
                    break
                if block.name not in RAW_BODY_TAGS:
                    continue
                text = element_text(block)
                if text:
                    parts.append(text)
                    accumulated += len(text)

            body = collapse_repeats(collapse_whitespace(" ".join(parts)))
            if len(body) < self._min_body_chars:
                continue
            blocks.append(f"## {heading_text}\n{body}\n\n")
        return "".join(blocks)

    def format_sentences(self, content: str, already_written: int = 0) -> str:
        out: list[str] = []
        written = already_written
        current = ""

        for match in _SENTENCE_RE.finditer(content or ""):
            if written >= self._max_output_chars:
                break
            sentence = collapse_whitespace(match.group(0))
            if len(sentence.rstrip(".!?")) <= self._min_sentence_chars:
                continue

            if _starts_topic(sentence):
                if len(current) > self._min_flush_chars:
                    block = f"## Topic\n{current.strip()}\n\n"
                    out.append(block)
                    written += len(block)
                current = sentence + " "
            elif current and len(current) < self._max_section_chars:
                current += sentence + " "

        if len(current) > self._min_flush_chars:
            out.append(f"## Additional Information\n{current.strip()}\n\n")
        return "".join(out)


def _starts_topic(sentence: str) -> bool:
    return "?" in sentence or sentence.lower().startswith(TOPIC_OPENERS)
