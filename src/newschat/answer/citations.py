"""Citation and sentiment extraction.

Hides the inline annotation syntax: ``[n]`` citations and the
``[BULLISH]`` / ``[BEARISH]`` sentiment markers.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .models import ArticleSource

BULLISH_MARKER = "[BULLISH]"
BEARISH_MARKER = "[BEARISH]"

_ANNOTATION_PATTERN = re.compile(r"\[(\d+)\]|\[(BULLISH|BEARISH)\]", re.IGNORECASE)
_CITATION_PATTERN = re.compile(r"\[(\d+)\]")


class SegmentKind(str, Enum):
    """Kind of a tokenized span."""

    TEXT = "text"
    CITATION = "citation"
    SENTIMENT = "sentiment"


@dataclass(frozen=True)
class Segment:
    """A span of annotated text.

    ``text`` is always the literal source text, so joining every segment's
    text reproduces the input. ``value`` is the citation number or the
    lowercase sentiment name.
    """

    kind: SegmentKind
    text: str
    value: int | str | None = None


def tokenize_annotations(text: str) -> list[Segment]:
    """Split text into literal spans, citations and sentiment markers.

    Scans left to right; matches never overlap and no literal text is lost.

    Args:
        text: Raw answer text

    Returns:
        Ordered list of segments
    """
    segments: list[Segment] = []
    position = 0

    for match in _ANNOTATION_PATTERN.finditer(text):
        if match.start() > position:
            segments.append(Segment(SegmentKind.TEXT, text[position:match.start()]))

        if match.group(1) is not None:
            segments.append(Segment(SegmentKind.CITATION, match.group(0), int(match.group(1))))
        else:
            sentiment = "bullish" if match.group(2)[0] in "bB" else "bearish"
            segments.append(Segment(SegmentKind.SENTIMENT, match.group(0), sentiment))
        position = match.end()

    if position < len(text):
        segments.append(Segment(SegmentKind.TEXT, text[position:]))

    return segments


def extract_citations(*texts: str) -> list[int]:
    """Collect the distinct citation numbers referenced in the given texts.

    Returns:
        Citation numbers in ascending order
    """
    found: set[int] = set()
    for text in texts:
        if text:
            found.update(int(n) for n in _CITATION_PATTERN.findall(text))
    return sorted(found)


def cited_sources(sources: Iterable[ArticleSource], *texts: str) -> list[ArticleSource]:
    """Filter sources to the ones cited in the texts.

    Uncited sources are dropped; the result is ordered by ascending
    citation number, not by the order of ``sources``.
    """
    by_number = {source.number: source for source in sources}
    return [by_number[n] for n in extract_citations(*texts) if n in by_number]
