"""Session controller.

Sequences the chat store, the streaming engine and the thread reconciler
for each user question. Holds no business rules of its own beyond ordering
the calls and remembering which placeholder awaits the running answer.
"""

import asyncio
import logging

from ..chat.models import Chat, MessageRole
from ..chat.store import ChatStore
from ..stream.engine import StreamingSessionEngine
from ..stream.state import SessionPhase, StreamingState
from .reconciler import ThreadReconciler

logger = logging.getLogger(__name__)


class Location:
    """The routable location: which thread the user is looking at.

    ``None`` means a new, not yet assigned conversation.
    """

    def __init__(self, thread_id: str | None = None):
        self._history: list[str | None] = [thread_id]

    @property
    def thread_id(self) -> str | None:
        return self._history[-1]

    @property
    def history(self) -> tuple[str | None, ...]:
        return tuple(self._history)

    def push(self, thread_id: str | None) -> None:
        if thread_id != self.thread_id:
            self._history.append(thread_id)

    def replace(self, thread_id: str | None) -> None:
        self._history[-1] = thread_id

    def back(self) -> str | None:
        if len(self._history) > 1:
            self._history.pop()
        return self.thread_id


class SessionController:
    """Consumer-facing orchestration of one chat client.

    Example:
        controller = SessionController(store, StreamingSessionEngine(transport))
        state = await controller.ask("What happened with Bitcoin today?")
        print(controller.location.thread_id, state.answer.tldr)
    """

    def __init__(
        self,
        store: ChatStore,
        engine: StreamingSessionEngine,
        location: Location | None = None,
    ):
        self.store = store
        self.engine = engine
        self.location = location or Location()
        self.reconciler = ThreadReconciler(store, navigate=self._on_thread_bound)
        # (thread id, question, message id) of the placeholder awaiting an answer
        self._placeholder: tuple[str, str, str] | None = None

        engine.add_thread_listener(self._on_thread_assigned)
        engine.add_completion_listener(self._on_session_complete)

    @property
    def state(self) -> StreamingState:
        return self.engine.state

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def submit(self, question: str) -> asyncio.Task:
        """Record the question and start streaming its answer.

        In a routed thread the question and an assistant placeholder are
        stored immediately. Without a thread they are stored once the
        backend assigns one.

        Returns:
            The background task consuming the stream
        """
        question = question.strip()
        thread_id = self.location.thread_id

        if not question:
            self._placeholder = None
            return self.engine.start_question(question, thread_id)

        if thread_id is None:
            self._placeholder = None
            self.store.clear_current()
            self.reconciler.expect(question)
            return self.engine.start_question(question)

        self.reconciler.abandon()
        await self.store.register_thread(thread_id, question)
        self.store.load_chat(thread_id)
        await self.store.add_message(MessageRole.USER, question, thread_id=thread_id)
        placeholder = await self.store.add_message(MessageRole.ASSISTANT, "", thread_id=thread_id)
        self._placeholder = (thread_id, question, placeholder.id) if placeholder else None
        return self.engine.start_question(question, thread_id)

    async def ask(self, question: str) -> StreamingState:
        """Submit a question and wait for its session to finish."""
        task = await self.submit(question)
        return await task

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def open_thread(self, thread_id: str) -> Chat | None:
        """Switch to an existing chat.

        Stops applying events from whatever session was running.
        """
        chat = self.store.load_chat(thread_id)
        if chat is None:
            return None
        self.reconciler.abandon()
        self.location.push(thread_id)
        self.engine.set_thread_id(thread_id)
        return chat

    def new_chat(self) -> None:
        """Go to a fresh conversation; the backend assigns its thread."""
        self.reconciler.abandon()
        self.store.clear_current()
        self.location.push(None)
        self.engine.reset()

    async def delete_chat(self, thread_id: str) -> bool:
        """Delete a chat, leaving it first if it is open."""
        if self.location.thread_id == thread_id:
            self.new_chat()
        return await self.store.delete_chat(thread_id)

    def reset(self) -> None:
        """Drop the running session without changing the location."""
        self.reconciler.abandon()
        self.engine.reset()

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    async def _on_thread_assigned(self, thread_id: str, state: StreamingState) -> None:
        if self.location.thread_id is None:
            await self.reconciler.observe(thread_id)

    async def _on_thread_bound(self, thread_id: str) -> None:
        placeholder_id = self.reconciler.placeholder_id
        question = self.state.current_question
        self._placeholder = (thread_id, question, placeholder_id) if placeholder_id else None
        self.location.replace(thread_id)
        self.store.load_chat(thread_id)
        self.engine.set_thread_id(thread_id)

    async def _on_session_complete(self, state: StreamingState) -> None:
        placeholder = self._placeholder
        if placeholder is None or placeholder[:2] != (state.thread_id, state.current_question):
            logger.debug("Session %d finished without a placeholder to fill", state.session_id)
            return
        if self.store.current_thread_id != state.thread_id:
            return

        chat = self.store.current_chat
        last = chat.last_message if chat else None
        if last is None or last.id != placeholder[2]:
            return

        self._placeholder = None
        if state.phase == SessionPhase.DONE and state.answer is not None:
            await self.store.update_last_message(
                answer=state.answer,
                content=state.answer.details.content,
            )
        elif state.phase == SessionPhase.ERROR:
            await self.store.update_last_message(content=f"Error: {state.error}")
