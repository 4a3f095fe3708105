"""Text formatting utilities for the TUI.

Hides the details of how answers, citations, sentiment markers, confidence
scores and timestamps are turned into Rich renderables.
"""

from datetime import datetime, timezone

from rich.console import Group, RenderableType
from rich.text import Text

from ..answer.citations import SegmentKind, cited_sources, tokenize_annotations
from ..answer.models import ArticleSource, StructuredAnswer
from .config import CITATION_STYLE, STREAM_CURSOR

_SENTIMENT_LABELS = {
    "bullish": ("▲ Bullish", "bold green"),
    "bearish": ("▼ Bearish", "bold red"),
}


def confidence_label(score: int) -> str:
    """Human label for a confidence score."""
    if score >= 80:
        return "High"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Moderate"
    if score >= 20:
        return "Low"
    return "Very Low"


def confidence_style(score: int) -> str:
    """Rich style matching the confidence label."""
    if score >= 80:
        return "bold green"
    if score >= 60:
        return "bold blue"
    if score >= 40:
        return "bold yellow"
    if score >= 20:
        return "bold dark_orange"
    return "bold red"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def format_time_ago(moment: datetime, now: datetime | None = None) -> str:
    """Compact relative time used in the chat list (``5m ago``, ``3d ago``)."""
    now = _as_utc(now or datetime.now(timezone.utc))
    seconds = (now - _as_utc(moment)).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return moment.strftime("%Y-%m-%d")


def format_source_age(published_at: datetime, now: datetime | None = None) -> str:
    """Article age as shown on source cards (``5 hours ago``)."""
    now = _as_utc(now or datetime.now(timezone.utc))
    hours = round((now - _as_utc(published_at)).total_seconds() / 3600)
    if hours < 24:
        return f"{hours} hours ago"
    return f"{round(hours / 24)} days ago"


def render_annotated(text: str, base_style: str = "") -> Text:
    """Render text with highlighted citations and sentiment badges."""
    result = Text(overflow="fold")
    for segment in tokenize_annotations(text):
        if segment.kind == SegmentKind.CITATION:
            result.append(segment.text, style=CITATION_STYLE)
        elif segment.kind == SegmentKind.SENTIMENT:
            label, style = _SENTIMENT_LABELS[str(segment.value)]
            result.append(label, style=style)
        else:
            result.append(segment.text, style=base_style)
    return result


def render_source(source: ArticleSource, now: datetime | None = None) -> Text:
    """One line per cited source: number, title, publisher and age."""
    line = Text(overflow="fold")
    line.append(f"[{source.number}] ", style=CITATION_STYLE)
    line.append(source.title, style="bold")
    line.append(f"  {source.source} • {format_source_age(source.published_at, now)}", style="dim")
    line.append(f"\n    {source.url}", style="dim underline")
    return line


def render_answer(
    answer: StructuredAnswer,
    streaming: bool = False,
    now: datetime | None = None,
) -> RenderableType:
    """Render a structured answer.

    Args:
        answer: Final or in-progress answer
        streaming: Append a cursor while text is still arriving
        now: Reference time for source ages

    Returns:
        A Rich Group with TL;DR, details, confidence and cited sources
    """
    parts: list[RenderableType] = []

    if answer.tldr:
        parts.append(Text("TL;DR", style="bold cyan"))
        parts.append(render_annotated(answer.tldr))

    details = render_annotated(answer.details.content)
    if streaming:
        details.append(STREAM_CURSOR, style="blink bold blue")
    if answer.details.content or streaming:
        parts.append(Text(""))
        parts.append(Text("Details", style="bold cyan"))
        parts.append(details)

    if not streaming and answer.confidence:
        confidence = Text("Confidence: ", style="dim")
        confidence.append(
            f"{confidence_label(answer.confidence)} {answer.confidence}%",
            style=confidence_style(answer.confidence),
        )
        parts.append(Text(""))
        parts.append(confidence)

    sources = cited_sources(answer.sources, answer.tldr, answer.details.content)
    if sources:
        parts.append(Text(""))
        parts.append(Text("Sources", style="bold cyan"))
        parts.extend(render_source(source, now) for source in sources)

    return Group(*parts)
