"""Streaming session state and its transitions.

``StreamingState`` is an immutable snapshot; ``reduce_event`` is a pure
function from (snapshot, event) to the next snapshot. The engine owns the
current snapshot; nothing else mutates it.
"""

from dataclasses import dataclass, replace
from enum import Enum

from ..answer.citations import extract_citations
from ..answer.models import AnswerDetails, AnswerMetadata, ArticleSource, StructuredAnswer
from ..answer.parser import has_sections, parse_structured_response
from .events import SSEEvent, SSEEventType

STATUS_PREPARING = "Preparing..."
STATUS_ANALYZING = "Analyzing articles..."
STATUS_COMPLETE = "Complete"


class SessionPhase(str, Enum):
    """Lifecycle of one question/answer exchange."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class StreamingState:
    """Snapshot of the engine's state for one session."""

    session_id: int = 0
    phase: SessionPhase = SessionPhase.IDLE
    thread_id: str | None = None
    current_question: str = ""
    status: str = ""
    streaming_tldr: str = ""
    streaming_details: str = ""
    sources: tuple[ArticleSource, ...] = ()
    metadata: AnswerMetadata | None = None
    confidence: int = 0
    answer: StructuredAnswer | None = None
    error: str | None = None

    @property
    def is_streaming(self) -> bool:
        return self.phase in (SessionPhase.CONNECTING, SessionPhase.STREAMING)

    @property
    def is_terminal(self) -> bool:
        return self.phase in (SessionPhase.DONE, SessionPhase.ERROR)

    @property
    def has_text(self) -> bool:
        """True once any answer text has streamed in."""
        return bool(self.streaming_tldr or self.streaming_details)

    def preview_answer(self) -> StructuredAnswer | None:
        """The answer as it should be displayed right now.

        Returns the final answer when there is one; otherwise an in-progress
        answer built from the buffers, or None before any text or sources.
        """
        if self.answer is not None:
            return self.answer
        if not self.has_text and not self.sources:
            return None
        return StructuredAnswer(
            tldr=self.streaming_tldr,
            details=AnswerDetails(
                content=self.streaming_details,
                citations=extract_citations(self.streaming_details),
            ),
            confidence=self.confidence,
            sources=list(self.sources),
            metadata=self.metadata,
        )


def synthesize_answer(state: StreamingState) -> StructuredAnswer | None:
    """Assemble a final answer from the streamed buffers.

    Raw token streams carry the sectioned markdown answer, which is parsed;
    separate tldr/details buffers are used as they are.
    """
    if not state.has_text:
        return None

    if has_sections(state.streaming_tldr) and not state.streaming_details:
        parsed = parse_structured_response(state.streaming_tldr)
        tldr, details, confidence = parsed.tldr, parsed.details, parsed.confidence
    else:
        tldr = state.streaming_tldr.strip()
        content = state.streaming_details.strip()
        details = AnswerDetails(content=content, citations=extract_citations(content))
        confidence = state.confidence

    return StructuredAnswer(
        tldr=tldr,
        details=details,
        confidence=confidence,
        sources=list(state.sources),
        metadata=state.metadata,
    )


def reduce_event(state: StreamingState, event: SSEEvent) -> StreamingState:
    """Apply one event to a snapshot.

    Terminal snapshots absorb every event unchanged.
    """
    if state.is_terminal:
        return state

    phase = SessionPhase.STREAMING
    data = event.data

    if event.type == SSEEventType.METADATA:
        thread_id = state.thread_id or data.thread_id
        return replace(
            state,
            phase=phase,
            metadata=data,
            thread_id=thread_id,
            status=state.status if state.has_text else STATUS_ANALYZING,
        )

    if event.type == SSEEventType.SOURCES:
        sources = tuple(data)
        answer = state.answer
        if answer is not None:
            answer = answer.model_copy(update={"sources": list(sources)})
        return replace(state, phase=phase, sources=sources, answer=answer)

    if event.type == SSEEventType.STATUS:
        if state.has_text:
            return replace(state, phase=phase)
        return replace(state, phase=phase, status=data.message)

    if event.type == SSEEventType.TLDR:
        return replace(state, phase=phase, streaming_tldr=state.streaming_tldr + data.content)

    if event.type == SSEEventType.TOKEN:
        return replace(state, phase=phase, streaming_tldr=state.streaming_tldr + data.token)

    if event.type == SSEEventType.DETAILS:
        return replace(
            state, phase=phase, streaming_details=state.streaming_details + data.content
        )

    if event.type == SSEEventType.STRUCTURED:
        details = data.details
        if not details.citations:
            details = AnswerDetails(
                content=details.content,
                citations=extract_citations(details.content),
            )
        sources = data.sources if data.sources is not None else list(state.sources)
        answer = StructuredAnswer(
            tldr=data.tldr,
            details=details,
            confidence=data.confidence,
            sources=sources,
            metadata=state.metadata,
        )
        return replace(
            state,
            phase=phase,
            answer=answer,
            confidence=data.confidence,
            sources=tuple(sources),
        )

    if event.type == SSEEventType.DONE:
        metadata = state.metadata
        if data.processing_time is not None:
            metadata = (metadata or AnswerMetadata()).model_copy(
                update={"processing_time": data.processing_time}
            )
        finished = replace(state, metadata=metadata)
        answer = finished.answer or synthesize_answer(finished)
        if answer is not None and metadata is not None:
            answer = answer.model_copy(update={"metadata": metadata})
        return replace(
            finished,
            phase=SessionPhase.DONE,
            status=STATUS_COMPLETE,
            answer=answer,
        )

    if event.type == SSEEventType.ERROR:
        return replace(state, phase=SessionPhase.ERROR, error=data.error or "Unknown error")

    return state
