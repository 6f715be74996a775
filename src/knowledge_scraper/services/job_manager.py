"""Scrape job lifecycle (business logic)."""

from __future__ import annotations

import asyncio
import functools
import uuid
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ..domain.errors import (
    InvalidInputError,
    InvalidStateTransitionError,
    JobNotFoundError,
    NetworkTimeoutError,
    ScraperDomainError,
)
from ..domain.models import ALLOWED_TRANSITIONS, JobStatus, PipelineStage, ScrapedContent, ScrapeJob
from ..models.requests import ProcessingOptions, ScrapeRequest
from ..observability.logger import get_logger
from ..scraping.playwright_scraper import PageRenderer
from ..storage.job_store import JobStore
from ..utils.time import current_time_ms, elapsed_ms, utc_now, utc_now_iso
from .extractor import ContentExtractor
from .structured_content import StructuredContentAssembler

logger = get_logger(__name__)


def parse_scrape_request(payload: Mapping[str, Any]) -> ScrapeRequest:
    """Validate a submission; malformed URLs and out-of-range options are InvalidInput."""
    try:
        return ScrapeRequest.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidInputError("Invalid request data", detail=problems) from e


class ScrapeJobManager:
    """Service layer for scrape job orchestration.

    Responsibilities:
    - Create jobs in ``pending`` and return immediately
    - Run one background pipeline per job:
      render -> filter/select/format -> assemble -> persist
    - Enforce the forward-only status machine; the manager is the only writer
    - Record failures with the stage that raised them (no retries)
    """

    def __init__(
        self,
        store: JobStore,
        renderer: PageRenderer,
        extractor: ContentExtractor,
        assembler: StructuredContentAssembler,
    ):
        self._store = store
        self._renderer = renderer
        self._extractor = extractor
        self._assembler = assembler
        self._tasks: dict[str, asyncio.Task] = {}

    async def submit(self, request: ScrapeRequest) -> ScrapeJob:
        job = ScrapeJob(
            id=str(uuid.uuid4()),
            url=request.url,
            processing_options=request.processing_options,
            output_format=request.output_format,
        )
        await self._store.create(job)
        logger.info("job_submitted", job_id=job.id, url=job.url, output_format=job.output_format)
        self.start(job.id)
        return job

    def start(self, job_id: str) -> asyncio.Task:
        """Spawn the pipeline task for a pending job."""
        if job_id in self._tasks:
            raise InvalidStateTransitionError("job already has a pipeline run", detail=job_id)
        task = asyncio.create_task(self.run(job_id), name=f"scrape-job-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(functools.partial(self._on_task_done, job_id))
        return task

    def _on_task_done(self, job_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        if task.cancelled():
            logger.warning("job_run_cancelled", job_id=job_id)
            return
        error = task.exception()
        if error is not None:
            # Raised before the pipeline could record a failure (e.g. the store is down).
            logger.error("job_run_crashed", job_id=job_id, error=str(error), error_type=type(error).__name__)

    async def get(self, job_id: str) -> ScrapeJob:
        if not job_id:
            raise InvalidInputError("job_id is required")
        job = await self._store.get(job_id)
        if job is None:
            raise JobNotFoundError("Scrape job not found", detail=job_id)
        return job

    async def list_recent(self, limit: int = 10) -> list[ScrapeJob]:
        return await self._store.list_recent(limit)

    async def wait(self, job_id: str) -> ScrapeJob:
        """Wait for the job's pipeline (if any) and return the stored job."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return await self.get(job_id)

    async def drain(self) -> None:
        """Let in-flight pipelines reach a terminal state (used on shutdown)."""
        tasks = list(self._tasks.values())
        if tasks:
            logger.info("draining_jobs", count=len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

    async def run(self, job_id: str) -> Optional[ScrapeJob]:
        job = await self.get(job_id)
        job = await self._transition(job, JobStatus.PROCESSING)
        options = job.processing_options
        start_ms = current_time_ms()
        stage = PipelineStage.RENDERING

        try:
            try:
                page = await asyncio.wait_for(
                    self._renderer.render(job.url, options.timeout),
                    timeout=options.timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                raise NetworkTimeoutError(f"Timeout while rendering {job.url}", detail=f"timeout={options.timeout}ms") from e

            stage = PipelineStage.EXTRACTING
            scraped = await asyncio.to_thread(self._extractor.extract, page.html, job.url, options)

            stage = PipelineStage.ORGANIZING
            structured = await self._assembler.assemble(
                scraped,
                ai_organization=options.ai_organization,
                timeout_seconds=options.timeout_seconds,
            )

            stage = PipelineStage.PERSISTING
            processing_time = elapsed_ms(start_ms)
            completed = await self._transition(
                job,
                JobStatus.COMPLETED,
                original_content=scraped.content,
                structured_content=structured,
                metadata=_result_metadata(scraped, options),
                word_count=structured.metadata.word_count,
                processing_time=processing_time,
                completed_at=utc_now(),
            )
            logger.info(
                "job_completed",
                job_id=job_id,
                processing_time_ms=processing_time,
                word_count=structured.metadata.word_count,
                section_count=structured.metadata.section_count,
            )
            return completed
        except Exception as e:
            return await self._fail(job, stage, e)

    async def _transition(self, job: ScrapeJob, target: JobStatus, **fields: Any) -> ScrapeJob:
        current = await self._store.get(job.id)
        if current is None:
            raise JobNotFoundError("Scrape job not found", detail=job.id)
        if target not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidStateTransitionError(
                f"cannot move job from {current.status.value} to {target.value}",
                detail=job.id,
            )
        updated = await self._store.update(job.id, status=target, **fields)
        if updated is None:
            raise JobNotFoundError("Scrape job not found", detail=job.id)
        return updated

    async def _fail(self, job: ScrapeJob, stage: PipelineStage, error: Exception) -> Optional[ScrapeJob]:
        if isinstance(error, ScraperDomainError):
            code, message, detail = error.info.code, error.info.message, error.info.detail
        else:
            code, message, detail = "INTERNAL_ERROR", str(error) or type(error).__name__, None

        logger.error("job_failed", job_id=job.id, stage=stage.value, error_code=code, error=message, detail=detail)
        failure = {
            "error": message,
            "errorCode": code,
            "stage": stage.value,
            "failedAt": utc_now_iso(),
        }
        if detail:
            failure["errorDetail"] = detail
        try:
            return await self._transition(
                job,
                JobStatus.FAILED,
                structured_content=None,
                metadata=failure,
                completed_at=utc_now(),
            )
        except Exception as e:
            logger.error("job_failure_persist_failed", job_id=job.id, error=str(e))
            return None


def _result_metadata(scraped: ScrapedContent, options: ProcessingOptions) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "title": scraped.title,
        "description": scraped.description,
        "processingOptions": options.model_dump(by_alias=True),
    }
    if options.include_metadata:
        metadata.update(scraped.metadata.to_dict())
    if options.process_images:
        metadata["images"] = [{"url": img.url, "alt": img.alt} for img in scraped.images]
    if scraped.raw_formatted is not None:
        metadata["rawFormatted"] = scraped.raw_formatted
    return metadata
