"""Data models for structured answers.

These models define the answer shape produced by the backend and assembled
by the streaming engine. JSON field names are camelCase (the wire and
persistence format); attribute names are snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ArticleSource(WireModel):
    """A news article an answer may cite as ``[number]``."""

    number: int = Field(ge=1, description="1-based citation number, unique within an answer")
    title: str
    source: str = Field(description="Publisher name")
    url: str
    published_at: datetime
    relevance: float = Field(default=0, description="Relevance score 0-100")


class AnswerDetails(WireModel):
    """The long-form body of an answer."""

    content: str = ""
    citations: list[int] = Field(default_factory=list)

    @field_validator("citations")
    @classmethod
    def _distinct_sorted(cls, value: list[int]) -> list[int]:
        return sorted(set(value))


class AnswerMetadata(WireModel):
    """Query metadata reported by the backend."""

    query_timestamp: datetime | None = None
    news_timestamp: datetime | None = None
    articles_analyzed: int = 0
    processing_time: float | None = Field(default=None, description="Milliseconds")
    thread_id: str | None = None
    new_articles_processed: int | None = None


class StructuredAnswer(WireModel):
    """A complete, citation-annotated answer."""

    tldr: str = ""
    details: AnswerDetails = Field(default_factory=AnswerDetails)
    confidence: int = Field(default=0, ge=0, le=100)
    sources: list[ArticleSource] = Field(default_factory=list)
    metadata: AnswerMetadata | None = None
