"""Export rendering (Markdown / plain text / JSON downloads)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from ..domain.errors import ExportError
from ..domain.models import JobStatus, ScrapeJob
from ..models.content import StructuredContent
from ..models.requests import ExportTarget, ExportVariant
from ..utils.time import current_time_ms
from ..utils.validators import url_slug

SECTION_SEPARATOR = "---"

_TARGET_ALIASES: dict[str, ExportTarget] = {
    "md": "markdown",
    "markdown": "markdown",
    "txt": "text",
    "text": "text",
    "json": "json",
}

_CONTENT_TYPES: dict[str, str] = {
    "markdown": "text/markdown",
    "text": "text/plain",
    "json": "application/json",
}

_EXTENSIONS: dict[str, str] = {
    "markdown": "md",
    "text": "txt",
    "json": "json",
}


@dataclass(frozen=True)
class RenderedExport:
    bytes_data: bytes
    content_type: str
    filename: str
    target: ExportTarget


def resolve_target(job: ScrapeJob, override: Optional[str] = None) -> ExportTarget:
    """An explicit type override wins over the job's output format."""
    if override:
        target = _TARGET_ALIASES.get(override.strip().lower())
        if target is None:
            raise ExportError(f"unsupported export type: {override}")
        return target
    return _TARGET_ALIASES[job.output_format]


def render_markdown(content: StructuredContent) -> str:
    parts = [f"# {content.title}\n\n"]
    if content.summary:
        parts.append(f"{content.summary}\n\n")

    last = len(content.sections) - 1
    for index, section in enumerate(content.sections):
        parts.append(f"## {section.title}\n\n{section.content}\n\n")
        if section.topics:
            parts.append(f"**Key Topics:** {', '.join(section.topics)}\n\n")
        if index != last:
            parts.append(f"{SECTION_SEPARATOR}\n\n")

    meta = content.metadata
    parts.append(
        f"<!-- Words: {meta.word_count} | Sections: {meta.section_count} | Extracted: {meta.extracted_at} -->\n"
    )
    return "".join(parts)


def render_text(content: StructuredContent) -> str:
    parts = [f"{content.title}\n\n"]
    if content.summary:
        parts.append(f"{content.summary}\n\n")

    for section in content.sections:
        parts.append(f"{section.title}\n{'-' * len(section.title)}\n\n{section.content}\n\n")
        if section.topics:
            parts.append(f"Key Topics: {', '.join(section.topics)}\n\n")

    meta = content.metadata
    parts.append(f"Words: {meta.word_count} | Sections: {meta.section_count} | Extracted: {meta.extracted_at}\n")
    return "".join(parts)


def render_json(content: StructuredContent) -> str:
    return json.dumps(content.to_dict(), ensure_ascii=False, indent=2)


class ExportRenderer:
    """Turns a completed job into a downloadable byte stream.

    Rules:
    - Only completed jobs can be exported; the job is never modified
    - Raw exports require the job to have requested raw formatting
    """

    def render(
        self,
        job: ScrapeJob,
        *,
        target: Optional[str] = None,
        variant: ExportVariant = "structured",
    ) -> RenderedExport:
        if job.status != JobStatus.COMPLETED:
            raise ExportError("Content not ready for download", detail=f"status={job.status.value}")

        resolved = resolve_target(job, target)
        slug = url_slug(job.url)
        timestamp = current_time_ms()

        if variant == "raw":
            raw = (job.metadata or {}).get("rawFormatted")
            if not job.processing_options.raw_formatted or raw is None:
                raise ExportError("Raw formatted content was not requested for this job", detail=job.id)
            # Raw text is emitted as-is; anything but markdown is served as plain text.
            raw_target: ExportTarget = "markdown" if resolved == "markdown" else "text"
            return RenderedExport(
                bytes_data=str(raw).encode("utf-8"),
                content_type=_CONTENT_TYPES[raw_target],
                filename=f"raw-formatted-{slug}-{timestamp}.{_EXTENSIONS[raw_target]}",
                target=raw_target,
            )

        if job.structured_content is None:
            raise ExportError("Structured content not available", detail=job.id)

        if resolved == "json":
            body = render_json(job.structured_content)
        elif resolved == "markdown":
            body = render_markdown(job.structured_content)
        else:
            body = render_text(job.structured_content)

        return RenderedExport(
            bytes_data=body.encode("utf-8"),
            content_type=_CONTENT_TYPES[resolved],
            filename=f"knowledge-{slug}-{timestamp}.{_EXTENSIONS[resolved]}",
            target=resolved,
        )
