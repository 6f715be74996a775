"""Request/option models (wire format is camelCase)."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.validators import is_valid_http_url

OutputFormat = Literal["markdown", "json", "text"]
ExportTarget = Literal["markdown", "json", "text"]
ExportVariant = Literal["structured", "raw"]

MIN_CONTENT_LENGTH = 1000
MAX_CONTENT_LENGTH = 50000
MIN_TIMEOUT_MS = 30_000
MAX_TIMEOUT_MS = 300_000


class ProcessingOptions(BaseModel):
    """Per-job processing switches; immutable once the job exists."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    extract_main_content: bool = True
    include_metadata: bool = True
    process_images: bool = False
    ai_organization: bool = True
    raw_formatted: bool = False
    max_content_length: int = Field(default=10000, ge=MIN_CONTENT_LENGTH, le=MAX_CONTENT_LENGTH)
    timeout: int = Field(default=60000, ge=MIN_TIMEOUT_MS, le=MAX_TIMEOUT_MS)  # milliseconds

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    processing_options: ProcessingOptions = Field(default_factory=ProcessingOptions)
    output_format: OutputFormat = "markdown"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_http_url(v):
            raise ValueError("url must be a valid http:// or https:// URL")
        return v

    @field_validator("processing_options", mode="before")
    @classmethod
    def default_processing_options(cls, v: Optional[object]) -> object:
        return {} if v is None else v

    @field_validator("output_format", mode="before")
    @classmethod
    def default_output_format(cls, v: Optional[object]) -> object:
        return "markdown" if v is None or v == "" else v
