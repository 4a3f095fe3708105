"""The streaming session engine.

Runs one question/answer exchange at a time and owns the current
``StreamingState``. Every session carries an integer tag; events are only
applied while their tag is the active one, so switching threads or
resetting cancels interest in everything a previous session still sends.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from ..answer.parser import validate_citations
from ..errors import StreamProtocolError, TransportError
from .events import SSEEvent
from .state import STATUS_PREPARING, SessionPhase, StreamingState, reduce_event
from .transport import AnswerTransport

logger = logging.getLogger(__name__)

STREAM_CLOSED_EARLY = "Stream closed before the answer completed"
EMPTY_QUESTION = "Question must not be empty"

StateListener = Callable[[StreamingState], None]
ThreadListener = Callable[[str, StreamingState], Awaitable[None]]
CompletionListener = Callable[[StreamingState], Awaitable[None]]


def _running_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class StreamingSessionEngine:
    """Consumes answer events and exposes the resulting state.

    Observers:
        add_listener: called synchronously after every applied transition
        add_thread_listener: awaited once when the backend assigns a thread
            id to a session that started without one
        add_completion_listener: awaited once when a session turns terminal
    """

    def __init__(self, transport: AnswerTransport | None = None):
        self._transport = transport
        self._state = StreamingState()
        self._session_counter = 0
        self._task: asyncio.Task | None = None
        self._listeners: list[StateListener] = []
        self._thread_listeners: list[ThreadListener] = []
        self._completion_listeners: list[CompletionListener] = []

    @property
    def state(self) -> StreamingState:
        return self._state

    @property
    def session_id(self) -> int:
        return self._session_counter

    @property
    def thread_id(self) -> str | None:
        return self._state.thread_id

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_thread_listener(self, listener: ThreadListener) -> None:
        self._thread_listeners.append(listener)

    def add_completion_listener(self, listener: CompletionListener) -> None:
        self._completion_listeners.append(listener)

    def _set_state(self, state: StreamingState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _invalidate(self) -> int:
        self._session_counter += 1
        task = self._task
        if task is not None and task is not _running_task():
            if not task.done():
                task.cancel()
            self._task = None
        return self._session_counter

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def begin_session(self, question: str, thread_id: str | None = None) -> int:
        """Start a new tagged session and return its tag.

        Any previous session stops being applied.
        """
        session_id = self._invalidate()
        self._set_state(StreamingState(
            session_id=session_id,
            phase=SessionPhase.CONNECTING,
            thread_id=thread_id,
            current_question=question,
            status=STATUS_PREPARING,
        ))
        logger.info("Session %d started (thread=%s)", session_id, thread_id)
        return session_id

    def set_thread_id(self, thread_id: str | None) -> None:
        """Bind to a known thread without asking anything.

        Clears buffers, answer and error so nothing from a previous session
        leaks into the newly selected thread. Binding to the thread the
        engine already holds changes nothing.
        """
        if thread_id is not None and thread_id == self._state.thread_id:
            return
        session_id = self._invalidate()
        self._set_state(StreamingState(session_id=session_id, thread_id=thread_id))
        logger.debug("Engine bound to thread %s", thread_id)

    def reset(self) -> None:
        """Drop the current session and thread binding."""
        session_id = self._invalidate()
        self._set_state(StreamingState(session_id=session_id))

    # ------------------------------------------------------------------
    # Event application
    # ------------------------------------------------------------------

    async def dispatch(self, session_id: int, event: SSEEvent) -> bool:
        """Apply an event on behalf of a session.

        Returns:
            False if the session is no longer active (event discarded)
        """
        if session_id != self._session_counter:
            logger.debug("Discarding %s event from stale session %d", event.type.value, session_id)
            return False

        previous = self._state
        current = reduce_event(previous, event)
        if current is previous:
            return True

        self._set_state(current)

        if previous.thread_id is None and current.thread_id is not None:
            logger.info("Backend assigned thread %s", current.thread_id)
            for listener in list(self._thread_listeners):
                await listener(current.thread_id, current)

        if current.is_terminal and not previous.is_terminal:
            if current.phase == SessionPhase.ERROR:
                logger.warning("Session %d failed: %s", session_id, current.error)
            else:
                logger.info("Session %d complete", session_id)
                if current.answer is not None:
                    report = validate_citations(current.answer.details, len(current.answer.sources))
                    for issue in report.issues:
                        logger.warning("Session %d answer: %s", session_id, issue)
            for listener in list(self._completion_listeners):
                await listener(current)

        return True

    async def fail(self, session_id: int, message: str) -> bool:
        """Terminate a session with a local error."""
        return await self.dispatch(session_id, SSEEvent.error(message))

    async def ask_question(self, question: str, thread_id: str | None = None) -> StreamingState:
        """Ask a question and consume the whole response stream.

        Transport failures end the session with an error; nothing is retried.

        Args:
            question: Trimmed, non-empty question
            thread_id: Existing thread, or None to let the backend assign one

        Returns:
            The state after the session ended (or was superseded)
        """
        question = question.strip()
        session_id = self.begin_session(question, thread_id)

        if not question:
            await self.fail(session_id, EMPTY_QUESTION)
            return self._state

        if self._transport is None:
            await self.fail(session_id, "No transport configured")
            return self._state

        try:
            async with contextlib.aclosing(self._transport.stream(question, thread_id)) as events:
                async for event in events:
                    await self.dispatch(session_id, event)
                    if session_id != self._session_counter or self._state.is_terminal:
                        break
        except (TransportError, StreamProtocolError) as e:
            await self.fail(session_id, str(e))
            return self._state

        if session_id == self._session_counter and not self._state.is_terminal:
            await self.fail(session_id, STREAM_CLOSED_EARLY)

        return self._state

    def start_question(self, question: str, thread_id: str | None = None) -> asyncio.Task:
        """Run ``ask_question`` as a background task.

        The task is cancelled by ``set_thread_id`` and ``reset``.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()
        task = asyncio.ensure_future(self.ask_question(question, thread_id))
        self._task = task
        return task

