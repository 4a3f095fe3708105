"""Server-sent event contract.

Hides the shape of each event payload and the ``event:`` / ``data:`` line
framing used by the backend's ``/ask`` stream.
"""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..answer.models import AnswerDetails, AnswerMetadata, ArticleSource, WireModel
from ..errors import StreamProtocolError

logger = logging.getLogger(__name__)


class SSEEventType(str, Enum):
    """Closed set of event types the backend emits."""

    METADATA = "metadata"
    SOURCES = "sources"
    STATUS = "status"
    TLDR = "tldr"
    DETAILS = "details"
    TOKEN = "token"
    STRUCTURED = "structured"
    DONE = "done"
    ERROR = "error"


class StatusPayload(BaseModel):
    message: str = ""


class TextDeltaPayload(BaseModel):
    """Delta for the ``tldr`` and ``details`` buffers."""

    content: str = ""


class TokenPayload(BaseModel):
    token: str = ""


class StructuredPayload(WireModel):
    """A complete answer delivered in one event."""

    tldr: str = ""
    details: AnswerDetails = Field(default_factory=AnswerDetails)
    confidence: int = Field(default=0, ge=0, le=100)
    sources: list[ArticleSource] | None = None


class DonePayload(WireModel):
    processing_time: float | None = None


class ErrorPayload(BaseModel):
    error: str = "Unknown error"


_PAYLOAD_ADAPTERS: dict[SSEEventType, TypeAdapter] = {
    SSEEventType.METADATA: TypeAdapter(AnswerMetadata),
    SSEEventType.SOURCES: TypeAdapter(list[ArticleSource]),
    SSEEventType.STATUS: TypeAdapter(StatusPayload),
    SSEEventType.TLDR: TypeAdapter(TextDeltaPayload),
    SSEEventType.DETAILS: TypeAdapter(TextDeltaPayload),
    SSEEventType.TOKEN: TypeAdapter(TokenPayload),
    SSEEventType.STRUCTURED: TypeAdapter(StructuredPayload),
    SSEEventType.DONE: TypeAdapter(DonePayload),
    SSEEventType.ERROR: TypeAdapter(ErrorPayload),
}


@dataclass(frozen=True)
class SSEEvent:
    """A typed event: the tag decides the payload type.

    Use ``SSEEvent.create`` to build one from a raw payload; it validates the
    payload against the tag.
    """

    type: SSEEventType
    data: Any = None

    @classmethod
    def create(cls, event_type: SSEEventType | str, data: Any = None) -> "SSEEvent":
        """Validate a raw payload for the given event type.

        Raises:
            ValueError: Unknown event type
            StreamProtocolError: Payload does not match the event type
        """
        kind = SSEEventType(event_type)
        if data is None:
            data = {}
        try:
            payload = _PAYLOAD_ADAPTERS[kind].validate_python(data)
        except ValidationError as e:
            raise StreamProtocolError(f"Malformed '{kind.value}' event: {e}") from e
        return cls(type=kind, data=payload)

    @classmethod
    def error(cls, message: str) -> "SSEEvent":
        return cls(type=SSEEventType.ERROR, data=ErrorPayload(error=message))

    @property
    def is_terminal(self) -> bool:
        return self.type in (SSEEventType.DONE, SSEEventType.ERROR)


def decode_event(event_name: str, data_text: str) -> SSEEvent | None:
    """Decode one frame.

    Args:
        event_name: Value of the ``event:`` field
        data_text: Joined ``data:`` lines (JSON)

    Returns:
        The event, or None for event types outside the contract

    Raises:
        StreamProtocolError: If the data is not valid JSON for the type
    """
    try:
        kind = SSEEventType(event_name)
    except ValueError:
        logger.debug("Ignoring unknown event type %r", event_name)
        return None

    try:
        data = json.loads(data_text) if data_text.strip() else {}
    except json.JSONDecodeError as e:
        raise StreamProtocolError(f"Invalid JSON in '{kind.value}' event: {e}") from e

    return SSEEvent.create(kind, data)


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[SSEEvent]:
    """Turn a stream of text lines into events.

    A frame is a run of ``field: value`` lines ended by a blank line. Only the
    ``event`` and ``data`` fields matter; comment lines (``:``) are skipped.
    A trailing frame without a final blank line is still delivered.
    """
    event_name = "message"
    data_lines: list[str] = []

    async for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if not line:
            if data_lines:
                event = decode_event(event_name, "\n".join(data_lines))
                if event is not None:
                    yield event
            event_name = "message"
            data_lines = []
            continue

        if line.startswith(":"):
            continue

        field_name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field_name == "event":
            event_name = value.strip()
        elif field_name == "data":
            data_lines.append(value)

    if data_lines:
        event = decode_event(event_name, "\n".join(data_lines))
        if event is not None:
            yield event
