"""SQLAlchemy models for job tracking."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ScrapeJobRecord(Base):
    __tablename__ = "scrape_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    processing_options: Mapped[dict] = mapped_column(JSON, nullable=False)
    output_format: Mapped[str] = mapped_column(String(20), nullable=False, default="markdown")

    original_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    structured_content: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    # "metadata" is reserved on declarative classes
    job_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    word_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processing_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
