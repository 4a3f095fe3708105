"""Thread reconciliation.

A question asked outside any thread gets its thread id from the backend
while the answer is already streaming. The reconciler binds that id into
the chat store exactly once per question: it registers the thread, inserts
the question and an empty assistant placeholder, then asks the navigator to
point the routable location at the new thread.
"""

import logging
from collections.abc import Awaitable, Callable

from ..chat.models import MessageRole
from ..chat.store import ChatStore

logger = logging.getLogger(__name__)

Navigator = Callable[[str], Awaitable[None]]


class ThreadReconciler:
    """Binds backend-assigned thread ids to the chat store once."""

    def __init__(self, store: ChatStore, navigate: Navigator | None = None):
        self._store = store
        self._navigate = navigate
        self._pending_question: str | None = None
        self._placeholder_id: str | None = None

    @property
    def pending_question(self) -> str | None:
        """The question awaiting a thread id, if any."""
        return self._pending_question

    @property
    def placeholder_id(self) -> str | None:
        """Id of the assistant placeholder inserted by the last reconciliation."""
        return self._placeholder_id

    def expect(self, question: str) -> None:
        """Arm reconciliation for a question asked without a thread."""
        self._pending_question = question
        self._placeholder_id = None

    def abandon(self) -> None:
        """Disarm; an answer still in flight stays unpersisted."""
        if self._pending_question is not None:
            logger.debug("Abandoning unreconciled question")
        self._pending_question = None

    async def observe(self, thread_id: str) -> bool:
        """Handle a backend-assigned thread id.

        Only the first call after ``expect`` has any effect.

        Returns:
            True if this call performed the reconciliation
        """
        question = self._pending_question
        if question is None:
            return False
        # Cleared before the first await so a concurrent observe sees nothing
        self._pending_question = None

        await self._store.register_thread(thread_id, question)
        await self._store.add_message(MessageRole.USER, question, thread_id=thread_id)
        placeholder = await self._store.add_message(MessageRole.ASSISTANT, "", thread_id=thread_id)
        self._placeholder_id = placeholder.id if placeholder else None
        logger.info("Reconciled pending question into thread %s", thread_id)

        if self._navigate is not None:
            await self._navigate(thread_id)
        return True
