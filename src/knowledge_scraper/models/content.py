"""Structured content models (the canonical export document)."""

from __future__ import annotations

from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SectionPriority = Literal["primary", "secondary", "supporting"]
SECTION_PRIORITIES: tuple[str, ...] = ("primary", "secondary", "supporting")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentSection(_CamelModel):
    title: str
    content: str
    priority: SectionPriority
    topics: List[str] = Field(default_factory=list)


class StructuredContentMetadata(_CamelModel):
    word_count: int = Field(ge=0)
    section_count: int = Field(ge=0)
    topic_count: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    extracted_at: str


class StructuredContent(_CamelModel):
    title: str
    summary: str
    sections: List[ContentSection] = Field(default_factory=list)
    metadata: StructuredContentMetadata

    @model_validator(mode="after")
    def _check_counts(self) -> "StructuredContent":
        if self.metadata.section_count != len(self.sections):
            raise ValueError("metadata.sectionCount must equal the number of sections")
        topics = sum(len(s.topics) for s in self.sections)
        if self.metadata.topic_count != topics:
            raise ValueError("metadata.topicCount must equal the total number of topics")
        return self

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
