"""Main Textual TUI application.

Orchestrates the UI components and routes user interaction to the
SessionController. Widgets observe the chat store and the streaming engine
through listeners; no business rules live here.
"""

import asyncio
import logging

from rich.console import RenderableType
from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ..chat.models import MessageRole
from ..chat.store import ChatStore
from ..session.controller import SessionController
from ..stream.engine import StreamingSessionEngine
from ..stream.state import STATUS_PREPARING, SessionPhase, StreamingState
from ..stream.transport import AnswerTransport
from .config import STREAM_CURSOR, parse_log_level
from .formatting import render_answer
from .screens import DeleteChatScreen
from .styles import APP_CSS
from .themes import NEWSROOM_DARK
from .widgets import (
    ChatHistoryWidget,
    ChatInputBar,
    ChatSidebar,
    DebugPanel,
    DebugPanelHandler,
    StatusBar,
)

logger = logging.getLogger(__name__)


def render_live(state: StreamingState) -> RenderableType:
    """Renderable for the in-flight answer of a session."""
    if state.phase == SessionPhase.ERROR:
        return Text(f"Error: {state.error}", style="bold red")

    preview = state.preview_answer()
    if preview is not None:
        return render_answer(preview, streaming=state.is_streaming)

    placeholder = Text(state.status or STATUS_PREPARING, style="dim italic")
    placeholder.append(f" {STREAM_CURSOR}", style="blink bold blue")
    return placeholder


class NewsChatApp(App):
    """Textual TUI for news chat."""

    CSS = APP_CSS
    TITLE = "NewsChat"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+n", "new_chat", "New Chat"),
        Binding("ctrl+x", "delete_chat", "Delete Chat"),
        Binding("escape", "cancel_session", "Cancel"),
        Binding("ctrl+r", "copy_last_answer", "Copy Answer"),
        Binding("ctrl+l", "clear_log", "Clear Log"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        controller: SessionController,
        thread_id: str | None = None,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._controller = controller
        self._initial_thread_id = thread_id
        self._log_level = log_level
        self._log_handler: DebugPanelHandler | None = None
        self._showing_live = False

    @property
    def controller(self) -> SessionController:
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        yield ChatSidebar(id="chat-list")

        with Vertical(id="main-panel"):
            yield ChatHistoryWidget(id="chat-history")
            yield DebugPanel(id="debug-panel")

        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status-bar", backend=self._controller.store.backend_type)
            yield ChatInputBar(id="chat-input-bar")

        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(NEWSROOM_DARK)
        self.theme = "newsroom-dark"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        self._log_handler = DebugPanelHandler(log_panel)
        package_logger = logging.getLogger("newschat")
        package_logger.addHandler(self._log_handler)
        package_logger.setLevel(logging.DEBUG)
        package_logger.propagate = False

        if self._log_level is not None:
            log_panel.log_level = parse_log_level(self._log_level)
            log_panel.show()
            log_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")

        self._controller.store.add_listener(self._on_store_changed)
        self._controller.engine.add_listener(self._on_engine_state)

        if self._initial_thread_id is not None:
            if self._controller.open_thread(self._initial_thread_id) is None:
                self.notify(f"Unknown chat: {self._initial_thread_id}", severity="warning")

        self.sub_title = f"{len(self._controller.store)} chats | {self._controller.store.backend_type}"
        self._refresh_sidebar()
        self._refresh_view()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def on_unmount(self) -> None:
        """Detach listeners and the log handler."""
        self._controller.store.remove_listener(self._on_store_changed)
        self._controller.engine.remove_listener(self._on_engine_state)
        if self._log_handler is not None:
            logging.getLogger("newschat").removeHandler(self._log_handler)
            self._log_handler = None

    # ------------------------------------------------------------------
    # View updates
    # ------------------------------------------------------------------

    def _is_live(self, state: StreamingState) -> bool:
        """Whether the session's answer belongs on screen as a live message."""
        if state.phase == SessionPhase.IDLE:
            return False

        thread_id = self._controller.location.thread_id
        if thread_id is None:
            return bool(state.current_question)
        if state.thread_id != thread_id:
            return False

        chat = self._controller.store.get_chat(thread_id)
        if chat is None or len(chat.messages) < 2:
            return False
        question, placeholder = chat.messages[-2], chat.messages[-1]
        return (
            placeholder.role == MessageRole.ASSISTANT
            and placeholder.answer is None
            and not placeholder.content
            and question.content == state.current_question
        )

    def _refresh_sidebar(self) -> None:
        sidebar = self.query_one("#chat-list", ChatSidebar)
        sidebar.set_chats(self._controller.store.chats, self._controller.location.thread_id)

    def _refresh_view(self) -> None:
        history = self.query_one("#chat-history", ChatHistoryWidget)
        state = self._controller.state
        live = render_live(state) if self._is_live(state) else None
        self._showing_live = live is not None

        thread_id = self._controller.location.thread_id
        chat = self._controller.store.get_chat(thread_id) if thread_id else None
        if chat is not None:
            history.show_messages(chat.title, chat.messages, live)
        elif live is not None:
            history.show_pending(state.current_question, live)
        else:
            history.show_messages(None, [])

    def _on_store_changed(self) -> None:
        self.sub_title = f"{len(self._controller.store)} chats | {self._controller.store.backend_type}"
        self._refresh_sidebar()
        self._refresh_view()

    def _on_engine_state(self, state: StreamingState) -> None:
        self.query_one("#status-bar", StatusBar).update_state(state)
        self.query_one("#chat-input-bar", ChatInputBar).set_busy(state.is_streaming)

        history = self.query_one("#chat-history", ChatHistoryWidget)
        is_live = self._is_live(state)
        if is_live and self._showing_live and history.update_live(render_live(state)):
            return
        if is_live or self._showing_live:
            self._refresh_view()

    # ------------------------------------------------------------------
    # User interaction
    # ------------------------------------------------------------------

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle question submission."""
        question = event.value
        if not question:
            return
        logger.debug("Question submitted: %s", question[:50])
        self._ask(question)

    @work(exclusive=True, group="ask")
    async def _ask(self, question: str) -> None:
        """Run one question as a background async worker."""
        task = await self._controller.submit(question)
        state = await task

        if state.session_id != self._controller.engine.session_id:
            return
        if state.phase == SessionPhase.DONE:
            self.notify("Answer complete", severity="information", timeout=3)
        elif state.phase == SessionPhase.ERROR:
            self.notify(f"Error: {(state.error or '')[:50]}", severity="error", timeout=5)

    def on_chat_sidebar_chat_selected(self, event: ChatSidebar.ChatSelected) -> None:
        """Open the chosen chat."""
        if self._controller.open_thread(event.thread_id) is None:
            self.notify("Chat no longer exists", severity="warning")
        self._refresh_sidebar()
        self._refresh_view()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def action_new_chat(self) -> None:
        """Start a fresh conversation."""
        self._controller.new_chat()
        self._refresh_sidebar()
        self._refresh_view()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def action_delete_chat(self) -> None:
        """Delete the highlighted chat after confirmation."""
        sidebar = self.query_one("#chat-list", ChatSidebar)
        thread_id = sidebar.highlighted_thread_id or self._controller.location.thread_id
        chat = self._controller.store.get_chat(thread_id) if thread_id else None
        if chat is None:
            self.notify("No chat selected", severity="warning")
            return

        def _confirmed(confirmed: bool | None) -> None:
            if confirmed:
                self._delete(chat.thread_id)

        self.push_screen(DeleteChatScreen(chat), _confirmed)

    @work(group="delete")
    async def _delete(self, thread_id: str) -> None:
        if await self._controller.delete_chat(thread_id):
            self.notify("Chat deleted", timeout=2)
        self._refresh_sidebar()
        self._refresh_view()

    def action_cancel_session(self) -> None:
        """Stop the running session."""
        if self._controller.state.is_streaming:
            self._controller.reset()
            self.query_one("#status-bar", StatusBar).update_state(self._controller.state)
            self.notify("Cancelled", severity="warning", timeout=2)

    def action_copy_last_answer(self) -> None:
        """Copy the last assistant answer to the clipboard."""
        chat = self._controller.store.current_chat
        for message in reversed(chat.messages if chat else []):
            if message.role == MessageRole.ASSISTANT and message.content:
                text = message.content
                if message.answer is not None and message.answer.tldr:
                    text = f"{message.answer.tldr}\n\n{text}"
                self.copy_to_clipboard(text)
                self.notify("Answer copied")
                return
        self.notify("No answer to copy", severity="warning")

    def action_clear_log(self) -> None:
        """Clear the log panel."""
        self.query_one("#debug-panel", DebugPanel).clear()
        self.notify("Log cleared", timeout=2)

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)


async def run_textual_tui(
    store: ChatStore,
    transport: AnswerTransport,
    thread_id: str | None = None,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        store: Chat store (not yet connected)
        transport: Transport used to ask questions
        thread_id: Chat to open on start, None for a new conversation
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    await store.connect()
    engine = StreamingSessionEngine(transport)
    controller = SessionController(store, engine)
    app = NewsChatApp(controller, thread_id=thread_id, log_level=log_level)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        engine.reset()
        await transport.close()
        await store.disconnect()
