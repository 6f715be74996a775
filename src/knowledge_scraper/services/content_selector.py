"""Main-content selection over a noise-filtered document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from bs4 import BeautifulSoup

from ..utils.html import body_text, element_text, headings, iter_section_blocks, remove_matching
from .content_filter import ContentFilter


@dataclass(frozen=True)
class ContentDescriptor:
    name: str
    selector: str


# Support/FAQ containers first, then generic content areas.
CONTENT_DESCRIPTORS: tuple[ContentDescriptor, ...] = (
    ContentDescriptor("faq", ".faq, .faqs, .frequently-asked-questions"),
    ContentDescriptor("support", ".support, .help, .help-center, .knowledge-base"),
    ContentDescriptor("docs", ".documentation, .docs, .doc-content"),
    ContentDescriptor("support_article", ".article-content, .support-article"),
    ContentDescriptor("qa", ".question, .answer, .qa-content"),
    ContentDescriptor("main", "main"),
    ContentDescriptor("article", "article"),
    ContentDescriptor("role_main", '[role="main"]'),
    ContentDescriptor("content_class", ".content"),
    ContentDescriptor("main_content_class", ".main-content"),
    ContentDescriptor("post_content", ".post-content"),
    ContentDescriptor("entry_content", ".entry-content"),
    ContentDescriptor("content_id", "#content"),
    ContentDescriptor("main_id", "#main"),
    ContentDescriptor("page_content", ".page-content"),
)

NESTED_NOISE_SELECTORS: tuple[str, ...] = (
    "nav, .nav, aside, .sidebar, footer, .footer",
    ".advertisement, .ads, .social-share, .related-links",
    ".author-bio, .author-info, .meta-info, .post-meta",
)

INTERROGATIVE_PREFIXES: tuple[str, ...] = ("how", "what", "why", "when", "where")
QA_BODY_TAGS: tuple[str, ...] = ("p", "div", "span", "li")

MIN_DESCRIPTOR_CHARS = 100
MIN_HEADING_SCAN_CHARS = 200
MIN_QA_BODY_CHARS = 20


@dataclass(frozen=True)
class ContentSelection:
    text: str
    strategy: str


def is_interrogative(text: str) -> bool:
    return "?" in text or text.strip().lower().startswith(INTERROGATIVE_PREFIXES)


@dataclass(frozen=True)
class _Rule:
    strategy: str
    extract: Callable[[BeautifulSoup], Optional[str]]
    min_chars: int


class MainContentSelector:
    """Walks an ordered rule list and returns the first sufficiently long match.

    First match wins: a later rule is never consulted once an earlier one
    produced enough text, even if the later one would produce more.
    """

    def __init__(
        self,
        content_filter: ContentFilter,
        *,
        descriptors: tuple[ContentDescriptor, ...] = CONTENT_DESCRIPTORS,
        min_descriptor_chars: int = MIN_DESCRIPTOR_CHARS,
        min_heading_scan_chars: int = MIN_HEADING_SCAN_CHARS,
    ):
        self._filter = content_filter
        self._rules: list[_Rule] = [
            _Rule(
                strategy=f"descriptor:{d.name}",
                extract=self._descriptor_extractor(d.selector),
                min_chars=min_descriptor_chars,
            )
            for d in descriptors
        ]
        self._rules.append(
            _Rule(strategy="heading_scan", extract=self._heading_scan, min_chars=min_heading_scan_chars)
        )

    def select(self, soup: BeautifulSoup, extract_main_content: bool = True) -> ContentSelection:
        if not extract_main_content:
            return ContentSelection(text=body_text(soup), strategy="body")

        for rule in self._rules:
            text = rule.extract(soup)
            if text and len(text.strip()) > rule.min_chars:
                return ContentSelection(text=text.strip(), strategy=rule.strategy)

        self._filter.strip_aggressive(soup)
        return ContentSelection(text=body_text(soup), strategy="full_body")

    @staticmethod
    def _descriptor_extractor(selector: str) -> Callable[[BeautifulSoup], Optional[str]]:
        def extract(soup: BeautifulSoup) -> Optional[str]:
            element = soup.select_one(selector)
            if element is None:
                return None
            for nested in NESTED_NOISE_SELECTORS:
                remove_matching(element, nested)
            return element_text(element)

        return extract

    @staticmethod
    def _heading_scan(soup: BeautifulSoup) -> Optional[str]:
        pairs: list[str] = []
        for heading in headings(soup):
            heading_text = element_text(heading)
            if not is_interrogative(heading_text):
                continue
            texts = [element_text(b) for b in iter_section_blocks(heading) if b.name in QA_BODY_TAGS]
            body = " ".join(t for t in texts if t)
            if len(body) > MIN_QA_BODY_CHARS:
                pairs.append(f"{heading_text}\n{body}")
        return "\n\n".join(pairs) or None
