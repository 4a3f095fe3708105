"""Pytest configuration and shared fixtures."""
import asyncio
from datetime import datetime, timezone

import pytest

from newschat.answer import ArticleSource
from newschat.chat import ChatStore
from newschat.chat.in_memory import InMemoryChatPersistence
from newschat.stream import AnswerTransport, SSEEvent


class ScriptedTransport(AnswerTransport):
    """Replays a fixed event script for every question.

    ``pause_after`` holds the stream before the event at that index until
    ``resume`` is set; ``paused`` is set once it is waiting.
    """

    def __init__(self, events=(), error=None, pause_after=None):
        self.events = list(events)
        self.error = error
        self.pause_after = pause_after
        self.paused = asyncio.Event()
        self.resume = asyncio.Event()
        self.calls = []
        self.closed = False

    async def stream(self, question, thread_id=None):
        self.calls.append((question, thread_id))
        for index, event in enumerate(self.events):
            if index == self.pause_after:
                self.paused.set()
                await self.resume.wait()
            yield event
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


@pytest.fixture
def persistence():
    """Return an empty in-memory persistence backend."""
    return InMemoryChatPersistence()


@pytest.fixture
def store(persistence):
    """Return a chat store over in-memory persistence."""
    return ChatStore(persistence)


@pytest.fixture
def sources():
    """Return three article sources numbered 1-3."""
    published = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)
    return [
        ArticleSource(
            number=n,
            title=f"Article {n}",
            source="CoinDesk",
            url=f"https://news.example.com/{n}",
            published_at=published,
            relevance=90 - n,
        )
        for n in (1, 2, 3)
    ]


@pytest.fixture
def answer_script(sources):
    """Return a complete event script for thread ``thread-abc``."""
    return [
        SSEEvent.create("metadata", {"threadId": "thread-abc", "articlesAnalyzed": 3}),
        SSEEvent.create("sources", [s.to_wire() for s in sources]),
        SSEEvent.create("status", {"message": "Writing answer..."}),
        SSEEvent.create("tldr", {"content": "BTC rallied [1]"}),
        SSEEvent.create("details", {"content": "Bitcoin rose 5% [1] while "}),
        SSEEvent.create("details", {"content": "ETH fell [2]. [BEARISH]"}),
        SSEEvent.create("done", {"processingTime": 1250}),
    ]


@pytest.fixture
def make_transport():
    """Return the ScriptedTransport class for building fakes."""
    return ScriptedTransport
