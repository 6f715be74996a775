"""Shared fakes for collaborator interfaces (no browser, no network)."""

from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from knowledge_scraper.domain.models import JobStatus
from knowledge_scraper.llm.content_organizer import ContentOrganizer
from knowledge_scraper.scraping.playwright_scraper import PageRenderer, RenderedPage
from knowledge_scraper.services.content_filter import ContentFilter
from knowledge_scraper.services.extractor import ContentExtractor
from knowledge_scraper.services.job_manager import ScrapeJobManager
from knowledge_scraper.services.structured_content import StructuredContentAssembler
from knowledge_scraper.storage.job_store import InMemoryJobStore


class FakeRenderer(PageRenderer):
    def __init__(self, html: str = "", error: Optional[Exception] = None):
        self.html = html
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def render(self, url: str, timeout_ms: int) -> RenderedPage:
        self.calls.append((url, timeout_ms))
        if self.error is not None:
            raise self.error
        return RenderedPage(url=url, html=self.html)


class FakeOrganizer(ContentOrganizer):
    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def organize(self, content: str, url: str) -> Any:
        self.calls.append((content, url))
        if self.error is not None:
            raise self.error
        return self.result


class RecordingJobStore(InMemoryJobStore):
    """In-memory store that remembers every status written to it."""

    def __init__(self) -> None:
        super().__init__()
        self.status_writes: list[JobStatus] = []

    async def update(self, job_id: str, **fields: Any):
        if "status" in fields:
            self.status_writes.append(fields["status"])
        return await super().update(job_id, **fields)


@pytest.fixture
def make_renderer() -> Callable[..., FakeRenderer]:
    return FakeRenderer


@pytest.fixture
def make_organizer() -> Callable[..., FakeOrganizer]:
    return FakeOrganizer


@pytest.fixture
def job_store() -> RecordingJobStore:
    return RecordingJobStore()


@pytest.fixture
def make_manager(job_store: RecordingJobStore) -> Callable[..., ScrapeJobManager]:
    def build(renderer: PageRenderer, organizer: Optional[ContentOrganizer] = None) -> ScrapeJobManager:
        return ScrapeJobManager(
            store=job_store,
            renderer=renderer,
            extractor=ContentExtractor(ContentFilter()),
            assembler=StructuredContentAssembler(organizer),
        )

    return build
