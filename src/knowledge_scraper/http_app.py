"""FastAPI app.

Thin transport: request parsing and response shaping only. All job logic
lives in ScrapeJobManager / ExportRenderer.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from .domain.errors import ExportError, InvalidInputError, JobNotFoundError, ScraperDomainError
from .domain.models import ScrapeJob
from .lifespan import AppServices, lifespan_manager
from .models.requests import ExportVariant
from .observability.logger import get_logger
from .services.job_manager import parse_scrape_request

logger = get_logger(__name__)


def serialize_job(job: ScrapeJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "url": job.url,
        "status": job.status.value,
        "processingOptions": job.processing_options.model_dump(by_alias=True),
        "outputFormat": job.output_format,
        "originalContent": job.original_content,
        "structuredContent": job.structured_content.to_dict() if job.structured_content else None,
        "metadata": job.metadata,
        "wordCount": job.word_count,
        "processingTime": job.processing_time,
        "createdAt": job.created_at.isoformat(),
        "completedAt": job.completed_at.isoformat() if job.completed_at else None,
    }


def _status_for(error: ScraperDomainError) -> int:
    if isinstance(error, JobNotFoundError):
        return 404
    if isinstance(error, (InvalidInputError, ExportError)):
        return 400
    return 500


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """Build the API; ``services`` skips the default wiring (used by tests and embedders)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            app.state.services = services
            try:
                yield
            finally:
                await services.job_manager.drain()
            return
        async with lifespan_manager() as built:
            app.state.services = built
            yield

    app = FastAPI(title="Knowledge Scraper", version="0.1.0", lifespan=lifespan)

    def _services(request: Request) -> AppServices:
        return request.app.state.services

    @app.exception_handler(ScraperDomainError)
    async def domain_error_handler(request: Request, exc: ScraperDomainError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.error("request_failed", path=request.url.path, error_code=exc.info.code, error=str(exc))
        return JSONResponse(
            status_code=status,
            content={"message": exc.info.message, "code": exc.info.code, "detail": exc.info.detail},
        )

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.post("/api/scrape")
    async def submit_scrape(payload: dict, request: Request):
        scrape_request = parse_scrape_request(payload)
        job = await _services(request).job_manager.submit(scrape_request)
        return {
            "jobId": job.id,
            "status": job.status.value,
            "message": "Website scraping started. Content will be processed shortly.",
        }

    @app.get("/api/scrape")
    async def recent_jobs(request: Request):
        services_ = _services(request)
        jobs = await services_.job_manager.list_recent(services_.recent_jobs_limit)
        return [serialize_job(j) for j in jobs]

    @app.get("/api/scrape/{job_id}")
    async def get_job(job_id: str, request: Request):
        job = await _services(request).job_manager.get(job_id)
        return serialize_job(job)

    @app.get("/api/scrape/{job_id}/download")
    async def download(
        job_id: str,
        request: Request,
        variant: ExportVariant = Query(default="structured", alias="format"),
        type_: Optional[str] = Query(default=None, alias="type"),
    ) -> Response:
        services_ = _services(request)
        job = await services_.job_manager.get(job_id)
        rendered = services_.exporter.render(job, target=type_, variant=variant)
        return Response(
            content=rendered.bytes_data,
            media_type=rendered.content_type,
            headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
        )

    return app
