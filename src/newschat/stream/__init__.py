"""Streaming session module for newschat.

Consumes the backend's answer event stream and assembles structured answers.
"""

from .engine import StreamingSessionEngine
from .events import SSEEvent, SSEEventType, decode_event, iter_sse_events
from .state import SessionPhase, StreamingState, reduce_event, synthesize_answer
from .transport import AnswerTransport, HttpAnswerTransport

__all__ = [
    "AnswerTransport",
    "HttpAnswerTransport",
    "SSEEvent",
    "SSEEventType",
    "SessionPhase",
    "StreamingSessionEngine",
    "StreamingState",
    "decode_event",
    "iter_sse_events",
    "reduce_event",
    "synthesize_answer",
]
