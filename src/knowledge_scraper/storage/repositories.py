"""Repository pattern for database access (scrape jobs)."""

from __future__ import annotations

from datetime import timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain.errors import DatabaseError
from ..domain.models import JobStatus, ScrapeJob
from ..models.content import StructuredContent
from ..models.database import ScrapeJobRecord
from ..models.requests import ProcessingOptions
from ..observability.logger import get_logger
from .job_store import JobStore

logger = get_logger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {
        "status",
        "original_content",
        "structured_content",
        "metadata",
        "word_count",
        "processing_time",
        "completed_at",
    }
)


def _aware(value):
    # SQLite drops tzinfo on round-trip
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_column_value(name: str, value: Any) -> tuple[str, Any]:
    if name == "status":
        return "status", JobStatus(value).value
    if name == "structured_content":
        return "structured_content", value.to_dict() if isinstance(value, StructuredContent) else value
    if name == "metadata":
        return "job_metadata", value
    return name, value


def record_to_job(rec: ScrapeJobRecord) -> ScrapeJob:
    return ScrapeJob(
        id=rec.id,
        url=rec.url,
        status=JobStatus(rec.status),
        processing_options=ProcessingOptions.model_validate(rec.processing_options or {}),
        output_format=rec.output_format,  # type: ignore[arg-type]
        original_content=rec.original_content,
        structured_content=(
            StructuredContent.model_validate(rec.structured_content) if rec.structured_content else None
        ),
        metadata=rec.job_metadata,
        word_count=rec.word_count,
        processing_time=rec.processing_time,
        created_at=_aware(rec.created_at),
        completed_at=_aware(rec.completed_at),
    )


class SqlJobStore(JobStore):
    """Job store backed by async SQLAlchemy; one session per operation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, job: ScrapeJob) -> str:
        try:
            async with self._session_factory() as session:
                session.add(
                    ScrapeJobRecord(
                        id=job.id,
                        url=job.url,
                        status=job.status.value,
                        processing_options=job.processing_options.model_dump(by_alias=True),
                        output_format=job.output_format,
                        original_content=job.original_content,
                        structured_content=job.structured_content.to_dict() if job.structured_content else None,
                        job_metadata=job.metadata,
                        word_count=job.word_count,
                        processing_time=job.processing_time,
                        created_at=job.created_at,
                        completed_at=job.completed_at,
                    )
                )
                await session.commit()
        except Exception as e:
            raise DatabaseError("failed to create job record", detail=str(e)) from e
        return job.id

    async def get(self, job_id: str) -> Optional[ScrapeJob]:
        async with self._session_factory() as session:
            rec = await session.get(ScrapeJobRecord, job_id)
            return record_to_job(rec) if rec is not None else None

    async def update(self, job_id: str, **fields: Any) -> Optional[ScrapeJob]:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"fields cannot be updated: {sorted(unknown)}")

        try:
            async with self._session_factory() as session:
                rec = await session.get(ScrapeJobRecord, job_id)
                if rec is None:
                    return None
                for name, value in fields.items():
                    column, column_value = _to_column_value(name, value)
                    setattr(rec, column, column_value)
                await session.commit()
                return record_to_job(rec)
        except Exception as e:
            logger.error("job_update_failed", job_id=job_id, error=str(e))
            raise DatabaseError("failed to update job record", detail=str(e)) from e

    async def list_recent(self, limit: int) -> list[ScrapeJob]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScrapeJobRecord).order_by(ScrapeJobRecord.created_at.desc()).limit(max(0, limit))
            )
            return [record_to_job(rec) for rec in result.scalars().all()]
