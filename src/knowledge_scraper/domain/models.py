"""Framework-agnostic domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..models.content import StructuredContent
from ..models.requests import OutputFormat, ProcessingOptions
from ..utils.html import ImageRef
from ..utils.time import utc_now


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Forward-only; terminal states have no exits.
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class PipelineStage(str, Enum):
    RENDERING = "RENDERING"
    EXTRACTING = "EXTRACTING"
    ORGANIZING = "ORGANIZING"
    PERSISTING = "PERSISTING"


@dataclass(frozen=True)
class ScrapedMetadata:
    scraped_at: str
    word_count: int
    has_images: bool
    link_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "scrapedAt": self.scraped_at,
            "wordCount": self.word_count,
            "hasImages": self.has_images,
            "linkCount": self.link_count,
        }


@dataclass(frozen=True)
class ScrapedContent:
    """Output of the extraction stage; produced once per job."""

    url: str
    title: str
    description: str
    content: str
    metadata: ScrapedMetadata
    raw_formatted: Optional[str] = None
    images: tuple[ImageRef, ...] = ()


@dataclass
class ScrapeJob:
    """One end-to-end request to extract and structure one URL.

    Instances handed out by a job store are copies; only the job manager
    writes changes back through the store.
    """

    id: str
    url: str
    processing_options: ProcessingOptions
    output_format: OutputFormat = "markdown"
    status: JobStatus = JobStatus.PENDING
    original_content: Optional[str] = None
    structured_content: Optional[StructuredContent] = None
    metadata: Optional[dict[str, Any]] = None
    word_count: Optional[int] = None
    processing_time: Optional[int] = None  # milliseconds
    created_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
