"""LLM-backed content organizer.

``organize(content, url)`` returns the model's raw answer. The answer is only
partially trusted; the structured content assembler reconciles it into a
valid document.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Mapping, Union

from ..observability.logger import get_logger
from .runtime import LLMRequest, LLMRuntime

logger = get_logger(__name__)

OrganizerCandidate = Union[str, Mapping[str, Any], None]
ContentKind = Literal["faq", "general"]

_RESPONSE_SHAPE = """{
  "title": "string",
  "summary": "string",
  "sections": [
    {
      "title": "string",
      "content": "string",
      "priority": "primary|secondary|supporting",
      "topics": ["string"]
    }
  ],
  "metadata": {
    "wordCount": number,
    "sectionCount": number,
    "topicCount": number,
    "confidence": number (0-1),
    "extractedAt": "ISO string"
  }
}"""

_GENERAL_GUIDELINES = """1. Create a clear title and comprehensive summary
2. Break content into logical sections with descriptive titles
3. Categorize each section by priority: "primary" (core concepts), "secondary" (detailed explanations), or "supporting" (examples/references)
4. Extract key topics for each section
5. Ensure content is well-structured and easy for AI systems to understand"""

_FAQ_GUIDELINES = """1. Create a clear title and a summary of what the questions cover
2. Make every question its own section: the question is the section title, the complete answer is the content
3. Keep answers verbatim where possible; do not invent answers that are not in the content
4. Mark the most frequently needed answers "primary", follow-up details "secondary" and references "supporting"
5. Extract key topics for each question"""


class ContentOrganizer:
    """Converts cleaned page text into a StructuredContent candidate."""

    async def organize(self, content: str, url: str) -> OrganizerCandidate:  # pragma: no cover - interface
        raise NotImplementedError


class LLMContentOrganizer(ContentOrganizer):
    def __init__(
        self,
        llm: LLMRuntime,
        *,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        timeout_seconds: float = 60.0,
        classify_content: bool = True,
    ):
        self._llm = llm
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout_seconds = timeout_seconds
        self._classify_content = classify_content

    async def organize(self, content: str, url: str) -> OrganizerCandidate:
        kind: ContentKind = "general"
        if self._classify_content:
            kind = await self.classify(content)
        logger.info("llm_organize_started", url=url, content_kind=kind, content_length=len(content))
        return await self._llm.complete(self._request(build_organize_prompt(content, url, kind)))

    async def classify(self, content: str) -> ContentKind:
        """Best-effort FAQ detection used only to choose the prompt."""
        prompt = (
            "Decide whether the following web page content is mainly a list of questions and answers "
            "(FAQ, help center, support article) or general content.\n\n"
            'Return ONLY valid JSON: {"kind": "faq"} or {"kind": "general"}\n\n'
            f"Content:\n{content[:2000]}"
        )
        try:
            text = await self._llm.complete(self._request(prompt, max_tokens=50))
            kind = json.loads(text).get("kind")
        except Exception as e:
            logger.warning("llm_content_classification_failed", error=str(e))
            return "general"
        return "faq" if kind == "faq" else "general"

    def _request(self, prompt: str, *, max_tokens: int | None = None) -> LLMRequest:
        return LLMRequest(
            prompt=prompt,
            model=self._model,
            temperature=self._temperature,
            max_tokens=max_tokens or self._max_tokens,
            timeout_seconds=self._timeout_seconds,
        )


def build_organize_prompt(content: str, url: str, kind: ContentKind = "general") -> str:
    guidelines = _FAQ_GUIDELINES if kind == "faq" else _GENERAL_GUIDELINES
    return (
        "You are an AI content organizer specializing in preparing web content for chatbot knowledge bases.\n\n"
        f"Analyze and organize the following web content from {url}:\n\n"
        f"{content}\n\n"
        "Please organize this content into a structured format optimized for AI chatbot knowledge bases. "
        "Follow these guidelines:\n\n"
        f"{guidelines}\n\n"
        "Respond with JSON in this exact format:\n"
        f"{_RESPONSE_SHAPE}"
    )
