"""Unit tests for the event contract and SSE framing."""
import pytest

from newschat.errors import StreamProtocolError
from newschat.stream import SSEEvent, SSEEventType, decode_event, iter_sse_events


async def _lines(*lines):
    for line in lines:
        yield line


async def _collect(*lines):
    return [event async for event in iter_sse_events(_lines(*lines))]


class TestSSEEvent:
    """Tests for typed event construction."""

    def test_metadata_payload(self):
        """Test that camelCase metadata is parsed into the model."""
        event = SSEEvent.create("metadata", {"threadId": "thread-9", "articlesAnalyzed": 12})

        assert event.type == SSEEventType.METADATA
        assert event.data.thread_id == "thread-9"
        assert event.data.articles_analyzed == 12
        assert not event.is_terminal

    def test_sources_payload(self, sources):
        """Test that a sources array becomes a list of ArticleSource."""
        event = SSEEvent.create("sources", [s.to_wire() for s in sources])
        assert event.data == sources

    def test_malformed_payload(self):
        """Test that a payload of the wrong shape is a protocol error."""
        with pytest.raises(StreamProtocolError):
            SSEEvent.create("sources", {"number": 1})

    def test_unknown_type(self):
        """Test that types outside the contract are rejected."""
        with pytest.raises(ValueError):
            SSEEvent.create("heartbeat", {})

    def test_terminal_events(self):
        """Test done and error are terminal."""
        assert SSEEvent.create("done", {}).is_terminal
        assert SSEEvent.error("boom").is_terminal
        assert SSEEvent.error("boom").data.error == "boom"

    def test_error_default_message(self):
        """Test that an error without a message gets a default."""
        assert SSEEvent.create("error", {}).data.error == "Unknown error"


class TestDecodeEvent:
    """Tests for decode_event."""

    def test_unknown_type_skipped(self):
        """Test that unknown event names decode to None."""
        assert decode_event("ping", "{}") is None

    def test_invalid_json(self):
        """Test that broken JSON is a protocol error."""
        with pytest.raises(StreamProtocolError):
            decode_event("tldr", "{not json")

    def test_empty_data(self):
        """Test that an empty data field means an empty payload."""
        event = decode_event("done", "")
        assert event.type == SSEEventType.DONE
        assert event.data.processing_time is None


class TestIterSSEEvents:
    """Tests for event/data line framing."""

    @pytest.mark.asyncio
    async def test_frames_in_order(self):
        """Test that frames separated by blank lines decode in order."""
        events = await _collect(
            "event: status",
            'data: {"message": "Analyzing"}',
            "",
            "event: token",
            'data: {"token": "BTC "}',
            "",
            "event: done",
            'data: {"processingTime": 900}',
            "",
        )

        assert [e.type for e in events] == [
            SSEEventType.STATUS,
            SSEEventType.TOKEN,
            SSEEventType.DONE,
        ]
        assert events[1].data.token == "BTC "
        assert events[2].data.processing_time == 900

    @pytest.mark.asyncio
    async def test_comments_and_unknown_events_skipped(self):
        """Test that comment lines and unknown event types are ignored."""
        events = await _collect(
            ": keep-alive",
            "",
            "event: ping",
            "data: {}",
            "",
            "event: tldr",
            'data: {"content": "Up"}',
            "",
        )

        assert len(events) == 1
        assert events[0].data.content == "Up"

    @pytest.mark.asyncio
    async def test_multiline_data_and_crlf(self):
        """Test that data lines are joined and CRLF endings stripped."""
        events = await _collect(
            "event: details\r\n",
            'data: {"content":\r\n',
            'data: "Line"}\r\n',
            "\r\n",
        )
        assert events[0].data.content == "Line"

    @pytest.mark.asyncio
    async def test_trailing_frame_without_blank_line(self):
        """Test that a final frame is delivered even without a terminator."""
        events = await _collect("event: error", 'data: {"error": "Backend down"}')
        assert events[0].data.error == "Backend down"

    @pytest.mark.asyncio
    async def test_invalid_frame_raises(self):
        """Test that a malformed frame surfaces as a protocol error."""
        with pytest.raises(StreamProtocolError):
            await _collect("event: tldr", "data: {oops", "")
