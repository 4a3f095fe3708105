"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Chat list rendering and selection
- Question input limits and history
- Status line formatting
- Log rendering and level filtering
- Chat message and live answer rendering
"""

import logging
from datetime import datetime

from rich.console import RenderableType
from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message
from textual.widgets import Button, OptionList, RichLog, Static, TextArea
from textual.widgets.option_list import Option

from ..chat.models import ChatListItem, ChatMessage, MessageRole
from ..config import MAX_QUESTION_LENGTH
from ..stream.state import SessionPhase, StreamingState
from .config import (
    CHAT_LIST_PREVIEW_LENGTH,
    INPUT_HISTORY_MAX_SIZE,
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
)
from .formatting import format_time_ago, render_annotated, render_answer


class ChatSidebar(OptionList):
    """List of stored chats, most recently updated first."""

    BORDER_TITLE = "Chats"

    class ChatSelected(Message):
        """Posted when the user picks a chat from the list."""

        def __init__(self, thread_id: str) -> None:
            super().__init__()
            self.thread_id = thread_id

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._items: list[ChatListItem] = []

    def set_chats(self, items: list[ChatListItem], current: str | None = None) -> None:
        """Replace the listed chats and highlight the current one."""
        self._items = list(items)
        self.clear_options()
        self.add_options([self._option_for(item) for item in self._items])
        self.border_subtitle = f"{len(self._items)} chats"

        for index, item in enumerate(self._items):
            if item.thread_id == current:
                self.highlighted = index
                break

    @staticmethod
    def _option_for(item: ChatListItem) -> Option:
        prompt = Text(overflow="ellipsis", no_wrap=True)
        prompt.append(item.title, style="bold")
        prompt.append(f"\n{format_time_ago(item.updated_at)}", style="dim")
        if item.last_message:
            preview = " ".join(item.last_message.split())[:CHAT_LIST_PREVIEW_LENGTH]
            prompt.append(f"  {preview}", style="dim italic")
        return Option(prompt, id=item.thread_id)

    @property
    def highlighted_thread_id(self) -> str | None:
        if self.highlighted is None or self.highlighted >= len(self._items):
            return None
        return self._items[self.highlighted].thread_id

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if event.option.id is not None:
            self.post_message(self.ChatSelected(event.option.id))


class ChatInputBar(Horizontal):
    """Question input with a Send button and a length limit."""

    class Submitted(Message):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Ask question (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False
        self._update_counter(0)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        """Enforce the question length limit."""
        text_area = event.text_area
        if len(text_area.text) > MAX_QUESTION_LENGTH:
            text_area.text = text_area.text[:MAX_QUESTION_LENGTH]
            text_area.move_cursor(text_area.document.end)
        self._update_counter(len(text_area.text))

    def _update_counter(self, length: int) -> None:
        self.border_subtitle = f"{length}/{MAX_QUESTION_LENGTH}"

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == text_area.document.end

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:  # Up
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:  # Down
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        if text_area.disabled:
            return
        value = text_area.text.strip()
        if value:
            if not self._history or self._history[-1] != value:
                self._history.append(value)
                del self._history[:-INPUT_HISTORY_MAX_SIZE]
            self._history_index = -1
            text_area.text = ""
            self.post_message(self.Submitted(value))

    def set_busy(self, busy: bool) -> None:
        """Disable input while an answer is streaming."""
        self.query_one("#chat-input", TextArea).disabled = busy
        self.query_one("#send-btn", Button).disabled = busy
        if not busy:
            self.focus_input()

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class StatusBar(Static):
    """One-line status of the current session."""

    _PHASE_STYLES = {
        SessionPhase.IDLE: ("●", "dim"),
        SessionPhase.CONNECTING: ("◌", "yellow"),
        SessionPhase.STREAMING: ("◉", "cyan"),
        SessionPhase.DONE: ("✔", "green"),
        SessionPhase.ERROR: ("✖", "red"),
    }

    def __init__(self, *args, backend: str = "", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._backend = backend

    def on_mount(self) -> None:
        self.update_state(StreamingState())

    def update_state(self, state: StreamingState) -> None:
        icon, style = self._PHASE_STYLES[state.phase]
        line = Text()
        line.append(f"{icon} ", style=style)

        if state.phase == SessionPhase.ERROR:
            line.append(state.error or "Error", style="bold red")
        elif state.phase == SessionPhase.IDLE:
            line.append("Ready", style="dim")
        else:
            line.append(state.status or state.phase.value, style=style)

        metadata = state.metadata
        if metadata is not None:
            line.append(f"  Articles: {metadata.articles_analyzed}", style="bold magenta")
            if metadata.processing_time is not None:
                line.append(f"  Time: {metadata.processing_time / 1000:.2f}s", style="bold yellow")
        if state.thread_id:
            line.append(f"  Thread: {state.thread_id}", style="dim")
        if self._backend:
            line.append(f"  Store: {self._backend}", style="dim")

        self.update(line)


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Shows timestamped records from all components.
    Supports standard log levels: DEBUG < INFO < WARNING < ERROR.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    _LEVEL_COLORS = {
        logging.DEBUG: "dim white",
        logging.INFO: "cyan",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
    }

    _COMPONENT_COLORS = {
        "TUI": "cyan",
        "store": "bright_green",
        "engine": "green",
        "transport": "magenta",
        "reconciler": "bright_blue",
        "controller": "bright_yellow",
    }

    def __init__(self, *args, log_level: int = logging.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=False,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {logging.getLevelName(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def add_entry(self, component: str, message: str, level: int = logging.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (TUI, engine, store, ...)
            message: Log message
            level: Log level (a ``logging`` level)
        """
        if level < self._log_level:
            return

        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        entry = Text()
        entry.append(datetime.now().strftime(LOG_TIMESTAMP_FORMAT), style="dim")
        entry.append(f" {logging.getLevelName(level):<7} ", style=self._LEVEL_COLORS.get(level, "white"))
        entry.append(f"[{component}] ", style=self._COMPONENT_COLORS.get(component, "white"))
        entry.append(message)
        self.write(entry)

    def info(self, component: str, message: str) -> None:
        """Log an INFO level message."""
        self.add_entry(component, message, logging.INFO)

    def show(self) -> None:
        """Show the log panel."""
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        """Hide the log panel."""
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True

    def get_plain_text(self) -> str:
        """Get plain text content of the log for copying."""
        return "\n".join(line.text for line in self.lines)

    def on_click(self, event: Click) -> None:
        """Copy log content to clipboard when clicked."""
        event.stop()
        text = self.get_plain_text()
        if not text.strip():
            self.app.notify("Log is empty", timeout=2)
            return
        self.app.copy_to_clipboard(text)
        self.app.notify("Log copied", timeout=2)


class DebugPanelHandler(logging.Handler):
    """Routes ``logging`` records into a DebugPanel.

    The component shown is the last part of the logger name
    (``newschat.stream.engine`` -> ``engine``).
    """

    def __init__(self, panel: DebugPanel) -> None:
        super().__init__(level=logging.DEBUG)
        self._panel = panel

    def emit(self, record: logging.LogRecord) -> None:
        try:
            component = record.name.rsplit(".", 1)[-1]
            self._panel.add_entry(component, record.getMessage(), record.levelno)
        except Exception:
            self.handleError(record)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable conversation of the selected chat.

    The last assistant message can be bound to the live session; its body
    is then re-rendered in place as events arrive.
    """

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "New conversation"
    ALLOW_SELECT = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._live_body: Static | None = None

    @property
    def has_live_answer(self) -> bool:
        return self._live_body is not None

    def show_messages(
        self,
        title: str | None,
        messages: list[ChatMessage],
        live: RenderableType | None = None,
    ) -> None:
        """Rebuild the view.

        Args:
            title: Chat title, or None for a conversation not stored yet
            messages: Stored messages in order
            live: Renderable for the in-flight answer; replaces the body of
                the trailing assistant message, or is appended if there is
                none
        """
        self.remove_children()
        self._live_body = None
        self.border_subtitle = title or "New conversation"

        for index, message in enumerate(messages):
            is_last = index == len(messages) - 1
            if is_last and live is not None and message.role == MessageRole.ASSISTANT:
                self._mount_live(live, message.timestamp)
            else:
                self._mount_message(message)

        if live is not None and self._live_body is None:
            self._mount_live(live, None)

        if not messages and live is None:
            self.mount(Static(
                Text("Ask anything about the latest crypto news.", style="dim italic"),
                classes="empty-hint",
            ))

        self.scroll_end(animate=False)

    def show_pending(self, question: str, live: RenderableType) -> None:
        """Show a question whose chat has not been created yet."""
        pending = ChatMessage(role=MessageRole.USER, content=question)
        self.show_messages(None, [pending], live)

    def update_live(self, live: RenderableType) -> bool:
        """Re-render the live answer in place. Returns False if none is shown."""
        if self._live_body is None:
            return False
        self._live_body.update(live)
        self.scroll_end(animate=False)
        return True

    def _header(self, role: MessageRole, timestamp: datetime | None) -> Static:
        if role == MessageRole.USER:
            label = "> You"
        else:
            label = "< Assistant"
        if timestamp is not None:
            label += f" [{timestamp.astimezone().strftime('%H:%M:%S')}]"
        return Static(Text(label), classes="message-header")

    def _container(self, role: MessageRole) -> Vertical:
        role_class = "user-message" if role == MessageRole.USER else "assistant-message"
        return Vertical(classes=f"chat-message {role_class}")

    def _mount_message(self, message: ChatMessage) -> None:
        if message.answer is not None:
            body: RenderableType = render_answer(message.answer)
        elif message.role == MessageRole.ASSISTANT and not message.content:
            body = Text("...", style="dim")
        elif message.role == MessageRole.ASSISTANT:
            body = render_annotated(message.content)
        else:
            body = Text(message.content)

        container = self._container(message.role)
        container.compose_add_child(self._header(message.role, message.timestamp))
        container.compose_add_child(Static(body, classes="message-content"))
        if message.content.startswith("Error:") and message.answer is None:
            container.add_class("error-message")
        self.mount(container)

    def _mount_live(self, live: RenderableType, timestamp: datetime | None) -> None:
        container = self._container(MessageRole.ASSISTANT)
        container.add_class("live-message")
        self._live_body = Static(live, classes="message-content")
        container.compose_add_child(self._header(MessageRole.ASSISTANT, timestamp))
        container.compose_add_child(self._live_body)
        self.mount(container)
