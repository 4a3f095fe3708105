"""Parsing of raw markdown answers into structured form.

The backend's model answers in three sections::

    ## TL;DR
    ## Details
    ## Confidence

When a stream delivers only raw tokens, the engine uses this module to
assemble a StructuredAnswer body at completion.
"""

import re
from dataclasses import dataclass, field

from .citations import extract_citations
from .models import AnswerDetails

NO_SUMMARY = "No summary available"
NO_DETAILS = "No details available"
DEFAULT_CONFIDENCE = 50

_SECTION_HEADER = re.compile(r"^\s*##\s*\S", re.MULTILINE)


@dataclass
class ParsedResponse:
    """Sections extracted from a raw answer."""

    tldr: str
    details: AnswerDetails
    confidence: int


@dataclass
class CitationReport:
    """Outcome of validating an answer's citations."""

    valid: bool
    issues: list[str] = field(default_factory=list)


def has_sections(text: str) -> bool:
    """Check whether text contains markdown ``##`` section headers."""
    return bool(_SECTION_HEADER.search(text))


def extract_section(text: str, section_name: str) -> str:
    """Return the trimmed body of a ``## <section_name>`` section.

    Args:
        text: Raw markdown
        section_name: Regular expression matching the header name

    Returns:
        Section body, or an empty string if the section is missing
    """
    pattern = re.compile(rf"##\s*{section_name}\s*\n([\s\S]*?)(?=##|$)", re.IGNORECASE)
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def extract_confidence(text: str) -> int:
    """Read the confidence percentage, clamped to 1-100."""
    section = extract_section(text, "Confidence")
    match = re.search(r"(\d+)%?", section)
    if not match:
        return DEFAULT_CONFIDENCE
    return max(1, min(100, int(match.group(1))))


def parse_structured_response(raw: str) -> ParsedResponse:
    """Parse a raw sectioned answer.

    Args:
        raw: Full markdown text produced by the model

    Returns:
        ParsedResponse with fallbacks for missing sections
    """
    tldr = extract_section(raw, "TL;?DR")
    details = extract_section(raw, "Details")

    return ParsedResponse(
        tldr=tldr or NO_SUMMARY,
        details=AnswerDetails(
            content=details or NO_DETAILS,
            citations=extract_citations(details),
        ),
        confidence=extract_confidence(raw),
    )


def validate_citations(details: AnswerDetails, source_count: int) -> CitationReport:
    """Check citations against the number of available sources.

    Flags citations outside ``1..source_count`` and long details with no
    citations at all.
    """
    issues: list[str] = []
    citations = details.citations or extract_citations(details.content)

    for citation in citations:
        if citation < 1 or citation > source_count:
            issues.append(
                f"Invalid citation [{citation}] - only {source_count} sources available"
            )

    if len(details.content) > 100 and not citations:
        issues.append("Details section lacks citations despite having substantial content")

    return CitationReport(valid=not issues, issues=issues)
