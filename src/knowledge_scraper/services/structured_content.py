"""Structured content assembly.

Produces the canonical StructuredContent either from an LLM candidate (after
field-by-field reconciliation) or, without AI organization, as a single
primary section holding the cleaned page text.
"""

from __future__ import annotations

import asyncio
import json
import math
from typing import Any, Mapping, Optional

from ..domain.errors import NetworkTimeoutError, OrganizationError, ScraperDomainError
from ..domain.models import ScrapedContent
from ..llm.content_organizer import ContentOrganizer, OrganizerCandidate
from ..models.content import SECTION_PRIORITIES, ContentSection, StructuredContent, StructuredContentMetadata
from ..observability.logger import get_logger
from ..utils.text import count_words
from ..utils.time import utc_now_iso

logger = get_logger(__name__)

MAIN_CONTENT_LABEL = "Main Content"
PLACEHOLDER_TITLE = "Untitled Content"
PLACEHOLDER_SUMMARY = "No summary available"
PLACEHOLDER_SECTION_TITLE = "Untitled Section"
DEFAULT_PRIORITY = "secondary"
DEFAULT_CONFIDENCE = 0.8


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
    """Pull a JSON object out of a potentially chatty LLM response; None if there is none."""
    if not text or "{" not in text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if end <= start:
        return None
    try:
        obj = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    return obj if isinstance(obj, dict) else None


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return "\n".join(str(v).strip() for v in value if isinstance(v, (str, int, float)))
    return ""


def _reconcile_section(raw: Mapping[str, Any]) -> ContentSection:
    priority = str(raw.get("priority") or "").strip().lower()
    topics = raw.get("topics")
    return ContentSection(
        title=_as_text(raw.get("title")) or PLACEHOLDER_SECTION_TITLE,
        content=_as_text(raw.get("content")),
        priority=priority if priority in SECTION_PRIORITIES else DEFAULT_PRIORITY,
        topics=[t.strip() for t in topics if isinstance(t, str) and t.strip()] if isinstance(topics, list) else [],
    )


def _as_number(value: Any) -> Optional[float]:
    # bool is an int subclass; true/false are not counts
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    # json.loads accepts Infinity and NaN
    return number if math.isfinite(number) else None


def reconcile_structured_content(candidate: OrganizerCandidate, content: str) -> StructuredContent:
    """Turn a partially trusted organizer answer into a guaranteed-valid StructuredContent.

    Accepts a mapping, raw JSON text (possibly wrapped in prose) or None.
    Anything missing or malformed is replaced by a default; section and topic
    counts are always recomputed from the reconciled sections.
    """
    if isinstance(candidate, str):
        data: Mapping[str, Any] = extract_json_object(candidate) or {}
    elif isinstance(candidate, Mapping):
        data = candidate
    else:
        data = {}

    raw_sections = data.get("sections")
    sections = (
        [_reconcile_section(s) for s in raw_sections if isinstance(s, Mapping)]
        if isinstance(raw_sections, list)
        else []
    )

    raw_meta = data.get("metadata")
    meta: Mapping[str, Any] = raw_meta if isinstance(raw_meta, Mapping) else {}

    word_count = _as_number(meta.get("wordCount"))
    confidence = _as_number(meta.get("confidence"))

    return StructuredContent(
        title=_as_text(data.get("title")) or PLACEHOLDER_TITLE,
        summary=_as_text(data.get("summary")) or PLACEHOLDER_SUMMARY,
        sections=sections,
        metadata=StructuredContentMetadata(
            word_count=int(word_count) if word_count and word_count > 0 else count_words(content),
            section_count=len(sections),
            topic_count=sum(len(s.topics) for s in sections),
            confidence=min(1.0, max(0.0, confidence)) if confidence is not None else DEFAULT_CONFIDENCE,
            extracted_at=utc_now_iso(),
        ),
    )


def synthesize_structured_content(scraped: ScrapedContent) -> StructuredContent:
    """Structure used when AI organization is off: one primary section, no topics."""
    return StructuredContent(
        title=scraped.title,
        summary=scraped.description or PLACEHOLDER_SUMMARY,
        sections=[
            ContentSection(
                title=MAIN_CONTENT_LABEL,
                content=scraped.content,
                priority="primary",
                topics=[],
            )
        ],
        metadata=StructuredContentMetadata(
            word_count=scraped.metadata.word_count,
            section_count=1,
            topic_count=0,
            confidence=1.0,
            extracted_at=utc_now_iso(),
        ),
    )


class StructuredContentAssembler:
    def __init__(self, organizer: ContentOrganizer | None = None):
        self._organizer = organizer

    @property
    def has_organizer(self) -> bool:
        return self._organizer is not None

    async def assemble(
        self,
        scraped: ScrapedContent,
        *,
        ai_organization: bool,
        timeout_seconds: float,
    ) -> StructuredContent:
        if not ai_organization:
            return synthesize_structured_content(scraped)

        if self._organizer is None:
            logger.warning("llm_organizer_unavailable", url=scraped.url)
            return synthesize_structured_content(scraped)

        try:
            candidate = await asyncio.wait_for(
                self._organizer.organize(scraped.content, scraped.url),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutError("content organization timed out", detail=f"timeout={timeout_seconds}s") from e
        except ScraperDomainError:
            raise
        except Exception as e:
            raise OrganizationError("Failed to organize content with AI", detail=str(e)) from e

        if isinstance(candidate, str) and extract_json_object(candidate) is None:
            logger.warning("llm_response_unparseable", url=scraped.url, response_length=len(candidate))

        return reconcile_structured_content(candidate, scraped.content)
