"""Structured answers and their citation annotations."""

from .citations import (
    BEARISH_MARKER,
    BULLISH_MARKER,
    Segment,
    SegmentKind,
    cited_sources,
    extract_citations,
    tokenize_annotations,
)
from .models import AnswerDetails, AnswerMetadata, ArticleSource, StructuredAnswer
from .parser import CitationReport, ParsedResponse, parse_structured_response, validate_citations

__all__ = [
    "AnswerDetails",
    "AnswerMetadata",
    "ArticleSource",
    "BEARISH_MARKER",
    "BULLISH_MARKER",
    "CitationReport",
    "ParsedResponse",
    "Segment",
    "SegmentKind",
    "StructuredAnswer",
    "cited_sources",
    "extract_citations",
    "parse_structured_response",
    "tokenize_annotations",
    "validate_citations",
]
