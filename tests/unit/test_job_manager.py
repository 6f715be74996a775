from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from knowledge_scraper.domain.errors import (
    DatabaseError,
    InvalidInputError,
    InvalidStateTransitionError,
    JobNotFoundError,
    NavigationError,
    NetworkTimeoutError,
)
from knowledge_scraper.domain.models import JobStatus
from knowledge_scraper.models.requests import ProcessingOptions, ScrapeRequest
from knowledge_scraper.services.content_filter import ContentFilter
from knowledge_scraper.services.extractor import ContentExtractor
from knowledge_scraper.services.job_manager import ScrapeJobManager, parse_scrape_request
from knowledge_scraper.services.structured_content import StructuredContentAssembler
from knowledge_scraper.storage.job_store import InMemoryJobStore

RETURNS_PAGE = (
    "<html><head><title>Returns</title></head><body>"
    "<nav>Home | Shop</nav><p>Our return policy allows 30 days.</p><footer>Copyright Shop</footer>"
    "</body></html>"
)
URL = "https://shop.example.com/returns"


def _request(**options) -> ScrapeRequest:
    return ScrapeRequest(url=URL, processing_options=ProcessingOptions(**options))


@pytest.mark.asyncio
async def test_job_without_ai_completes_with_single_section(make_manager, make_renderer, job_store) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE))
    job = await manager.submit(_request(ai_organization=False))

    assert job.status == JobStatus.PENDING
    assert (await job_store.get(job.id)).status == JobStatus.PENDING

    done = await manager.wait(job.id)
    assert done.status == JobStatus.COMPLETED
    assert done.completed_at is not None
    assert done.original_content == "Our return policy allows 30 days."
    assert done.word_count == 6
    assert done.processing_time is not None and done.processing_time >= 0

    doc = done.structured_content
    assert doc is not None
    assert [(s.title, s.priority, s.topics, s.content) for s in doc.sections] == [
        ("Main Content", "primary", [], "Our return policy allows 30 days.")
    ]
    assert doc.metadata.confidence == 1.0
    assert job_store.status_writes == [JobStatus.PROCESSING, JobStatus.COMPLETED]


@pytest.mark.asyncio
async def test_completed_metadata_respects_options(make_manager, make_renderer) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE))

    job = await manager.submit(_request(ai_organization=False, raw_formatted=True))
    done = await manager.wait(job.id)
    assert done.metadata["title"] == "Returns"
    assert done.metadata["wordCount"] == 6
    assert done.metadata["processingOptions"]["rawFormatted"] is True
    assert "rawFormatted" in done.metadata
    assert "images" not in done.metadata

    job = await manager.submit(_request(ai_organization=False, include_metadata=False))
    done = await manager.wait(job.id)
    assert "wordCount" not in done.metadata
    assert "rawFormatted" not in done.metadata


@pytest.mark.asyncio
async def test_renderer_receives_job_timeout(make_manager, make_renderer) -> None:
    renderer = make_renderer(RETURNS_PAGE)
    manager = make_manager(renderer)
    job = await manager.submit(_request(ai_organization=False, timeout=45000))
    await manager.wait(job.id)
    assert renderer.calls == [(URL, 45000)]


@pytest.mark.asyncio
async def test_navigation_failure_marks_job_failed(make_manager, make_renderer, job_store) -> None:
    error = NavigationError("Failed to load page", detail="net::ERR_NAME_NOT_RESOLVED")
    manager = make_manager(make_renderer(error=error))
    job = await manager.submit(_request())

    done = await manager.wait(job.id)
    assert done.status == JobStatus.FAILED
    assert done.completed_at is not None
    assert done.structured_content is None
    assert done.metadata["error"] == "Failed to load page"
    assert done.metadata["errorCode"] == "NAVIGATION_FAILED"
    assert done.metadata["errorDetail"] == "net::ERR_NAME_NOT_RESOLVED"
    assert done.metadata["stage"] == "RENDERING"
    assert "failedAt" in done.metadata
    assert job_store.status_writes == [JobStatus.PROCESSING, JobStatus.FAILED]


@pytest.mark.asyncio
async def test_render_timeout_marks_job_failed(make_manager, make_renderer) -> None:
    manager = make_manager(make_renderer(error=NetworkTimeoutError("Timeout while rendering")))
    job = await manager.submit(_request())
    done = await manager.wait(job.id)
    assert done.status == JobStatus.FAILED
    assert done.metadata["errorCode"] == "NETWORK_TIMEOUT"


@pytest.mark.asyncio
async def test_organizer_failure_marks_job_failed(make_manager, make_renderer, make_organizer) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE), make_organizer(error=RuntimeError("model overloaded")))
    job = await manager.submit(_request())
    done = await manager.wait(job.id)
    assert done.status == JobStatus.FAILED
    assert done.metadata["errorCode"] == "ORGANIZATION_FAILED"
    assert done.metadata["stage"] == "ORGANIZING"
    assert done.structured_content is None


@pytest.mark.asyncio
async def test_malformed_organizer_output_still_completes(make_manager, make_renderer, make_organizer) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE), make_organizer(result="not json at all"))
    job = await manager.submit(_request())
    done = await manager.wait(job.id)
    assert done.status == JobStatus.COMPLETED
    assert done.structured_content.title == "Untitled Content"
    assert done.structured_content.sections == []
    assert done.structured_content.metadata.confidence == 0.8


@pytest.mark.asyncio
async def test_terminal_jobs_cannot_run_again(make_manager, make_renderer) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE))
    job = await manager.submit(_request(ai_organization=False))

    with pytest.raises(InvalidStateTransitionError):
        manager.start(job.id)

    done = await manager.wait(job.id)
    with pytest.raises(InvalidStateTransitionError):
        await manager.run(job.id)
    assert (await manager.get(job.id)).completed_at == done.completed_at


@pytest.mark.asyncio
async def test_get_unknown_job(make_manager, make_renderer) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE))
    with pytest.raises(JobNotFoundError):
        await manager.get("missing")


@pytest.mark.asyncio
async def test_list_recent_newest_first(make_manager, make_renderer) -> None:
    manager = make_manager(make_renderer(RETURNS_PAGE))
    first = await manager.submit(_request(ai_organization=False))
    second = await manager.submit(_request(ai_organization=False))
    await manager.drain()

    recent = await manager.list_recent(10)
    assert [j.id for j in recent] == [second.id, first.id]
    assert [j.id for j in await manager.list_recent(1)] == [second.id]


def test_parse_scrape_request_defaults() -> None:
    req = parse_scrape_request({"url": URL})
    assert req.output_format == "markdown"
    opts = req.processing_options
    assert opts.extract_main_content is True
    assert opts.include_metadata is True
    assert opts.process_images is False
    assert opts.ai_organization is True
    assert opts.raw_formatted is False
    assert opts.max_content_length == 10000
    assert opts.timeout == 60000

    req = parse_scrape_request({"url": URL, "processingOptions": None, "outputFormat": "json"})
    assert req.output_format == "json"
    assert req.processing_options.timeout == 60000


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"url": "ftp://example.com/file"},
        {"url": "not a url"},
        {"url": URL, "processingOptions": {"maxContentLength": 500}},
        {"url": URL, "processingOptions": {"maxContentLength": 60000}},
        {"url": URL, "processingOptions": {"timeout": 10000}},
        {"url": URL, "processingOptions": {"timeout": 400000}},
        {"url": URL, "outputFormat": "pdf"},
    ],
)
def test_parse_scrape_request_rejects_invalid_input(payload) -> None:
    with pytest.raises(InvalidInputError) as exc:
        parse_scrape_request(payload)
    assert exc.value.info.message == "Invalid request data"
    assert exc.value.info.detail


class _OfflineStore(InMemoryJobStore):
    async def update(self, job_id, **fields):
        raise DatabaseError("failed to update job record", detail="connection refused")


@pytest.mark.asyncio
async def test_run_crash_before_pipeline_is_logged(make_renderer) -> None:
    store = _OfflineStore()
    manager = ScrapeJobManager(
        store=store,
        renderer=make_renderer(RETURNS_PAGE),
        extractor=ContentExtractor(ContentFilter()),
        assembler=StructuredContentAssembler(None),
    )

    with capture_logs() as logs:
        job = await manager.submit(_request(ai_organization=False))
        with pytest.raises(DatabaseError):
            await manager.wait(job.id)
        await asyncio.sleep(0)

    crashed = [e for e in logs if e["event"] == "job_run_crashed"]
    assert crashed and crashed[0]["job_id"] == job.id
    assert crashed[0]["error_type"] == "DatabaseError"
    assert (await store.get(job.id)).status == JobStatus.PENDING


def test_parse_scrape_request_is_lenient_about_extras_and_missing_format() -> None:
    req = parse_scrape_request(
        {
            "url": URL,
            "outputFormat": None,
            "processingOptions": {"aiOrganization": False, "legacyFlag": True},
        }
    )
    assert req.output_format == "markdown"
    assert req.processing_options.ai_organization is False
    assert not hasattr(req.processing_options, "legacy_flag")
