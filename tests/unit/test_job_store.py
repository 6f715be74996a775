from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from knowledge_scraper.domain.models import JobStatus, ScrapeJob
from knowledge_scraper.models.content import ContentSection, StructuredContent, StructuredContentMetadata
from knowledge_scraper.models.requests import ProcessingOptions
from knowledge_scraper.storage.database import build_engine, build_session_factory, close_db, init_db
from knowledge_scraper.storage.job_store import InMemoryJobStore
from knowledge_scraper.storage.repositories import SqlJobStore

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _job(job_id: str, minutes: int = 0) -> ScrapeJob:
    return ScrapeJob(
        id=job_id,
        url=f"https://example.com/{job_id}",
        processing_options=ProcessingOptions(raw_formatted=True),
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def _structured() -> StructuredContent:
    return StructuredContent(
        title="Returns",
        summary="How returns work",
        sections=[ContentSection(title="Window", content="30 days", priority="primary", topics=["returns"])],
        metadata=StructuredContentMetadata(
            word_count=2, section_count=1, topic_count=1, confidence=0.9, extracted_at="2026-01-01T00:00:00Z"
        ),
    )


@pytest.mark.asyncio
async def test_in_memory_store_returns_copies() -> None:
    store = InMemoryJobStore()
    job = _job("a")
    await store.create(job)

    job.status = JobStatus.FAILED
    fetched = await store.get("a")
    assert fetched.status == JobStatus.PENDING

    fetched.metadata = {"tampered": True}
    assert (await store.get("a")).metadata is None


@pytest.mark.asyncio
async def test_in_memory_store_update_and_missing() -> None:
    store = InMemoryJobStore()
    await store.create(_job("a"))

    updated = await store.update("a", status=JobStatus.PROCESSING)
    assert updated.status == JobStatus.PROCESSING
    assert await store.update("missing", status=JobStatus.PROCESSING) is None
    assert await store.get("missing") is None

    with pytest.raises(ValueError):
        await store.create(_job("a"))


@pytest.mark.asyncio
async def test_in_memory_store_list_recent() -> None:
    store = InMemoryJobStore()
    for i, job_id in enumerate(["a", "b", "c"]):
        await store.create(_job(job_id, minutes=i))
    assert [j.id for j in await store.list_recent(2)] == ["c", "b"]
    assert await store.list_recent(0) == []


@pytest.mark.asyncio
async def test_sql_store_round_trip(tmp_path) -> None:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/jobs.db")
    await init_db(engine)
    store = SqlJobStore(build_session_factory(engine))
    try:
        await store.create(_job("a"))
        await store.create(_job("b", minutes=5))

        fetched = await store.get("a")
        assert fetched.status == JobStatus.PENDING
        assert fetched.processing_options.raw_formatted is True
        assert fetched.created_at == BASE_TIME

        completed_at = BASE_TIME + timedelta(minutes=1)
        updated = await store.update(
            "a",
            status=JobStatus.COMPLETED,
            original_content="30 days",
            structured_content=_structured(),
            metadata={"title": "Returns", "rawFormatted": "## Window\n30 days"},
            word_count=2,
            processing_time=120,
            completed_at=completed_at,
        )
        assert updated.status == JobStatus.COMPLETED

        fetched = await store.get("a")
        assert fetched.structured_content == _structured()
        assert fetched.structured_content.sections[0].topics == ["returns"]
        assert fetched.metadata["rawFormatted"] == "## Window\n30 days"
        assert fetched.completed_at == completed_at
        assert fetched.processing_time == 120

        assert [j.id for j in await store.list_recent(10)] == ["b", "a"]
        assert await store.get("missing") is None
        assert await store.update("missing", status=JobStatus.FAILED) is None

        with pytest.raises(ValueError):
            await store.update("a", url="https://elsewhere.example.com")
    finally:
        await close_db(engine)
