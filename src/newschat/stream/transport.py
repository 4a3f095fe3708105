"""Transport for the question/answer event stream.

This module hides how a question reaches the backend and how the response
stream is opened. Implementations must handle:
- Request encoding
- HTTP error responses
- Connection failures (mapped to TransportError)

Supports async context manager protocol for proper resource cleanup:
    async with HttpAnswerTransport(api_url) as transport:
        async for event in transport.stream("What moved BTC?"):
            ...
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ..config import DEFAULT_TIMEOUT
from ..errors import TransportError
from .events import SSEEvent, iter_sse_events

logger = logging.getLogger(__name__)


class AnswerTransport(ABC):
    """Abstract source of answer events for a question."""

    @abstractmethod
    def stream(self, question: str, thread_id: str | None = None) -> AsyncIterator[SSEEvent]:
        """Send a question and yield the response events in arrival order.

        Args:
            question: The user's question
            thread_id: Existing thread to continue, or None for a new one

        Raises:
            TransportError: If the request fails or the stream breaks
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "AnswerTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Request failed ({response.status_code})"


class HttpAnswerTransport(AnswerTransport):
    """Streams answers from the backend's ``POST /ask`` endpoint."""

    def __init__(
        self,
        api_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the transport.

        Args:
            api_url: Backend base URL (without the ``/ask`` path)
            timeout: Read timeout in seconds
            client: Optional preconfigured client (owned by the caller)
        """
        self._api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    @property
    def api_url(self) -> str:
        return self._api_url

    async def stream(
        self, question: str, thread_id: str | None = None
    ) -> AsyncIterator[SSEEvent]:
        body: dict[str, str] = {"question": question}
        if thread_id:
            body["threadId"] = thread_id

        logger.debug("POST %s/ask (thread=%s)", self._api_url, thread_id)

        try:
            async with self._client.stream(
                "POST",
                f"{self._api_url}/ask",
                json=body,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise TransportError(_error_message(response), status_code=response.status_code)

                async for event in iter_sse_events(response.aiter_lines()):
                    yield event
        except httpx.HTTPError as e:
            raise TransportError(f"Connection to {self._api_url} failed: {e}") from e

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
