"""Modal screens for the TUI.

This module hides how chat deletion is confirmed: what the dialog shows
about the chat and which keys answer it.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Center, Grid
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from ..chat.models import Chat


class DeleteChatScreen(ModalScreen[bool]):
    """Asks before a chat is removed; dismisses with True to delete."""

    CSS = """
    DeleteChatScreen {
        align: center middle;
        background: $background 60%;
    }

    #delete-dialog {
        grid-size: 2;
        grid-gutter: 1 2;
        grid-rows: auto auto auto 3;
        width: 56;
        height: auto;
        padding: 1 2;
        border: thick $error 80%;
        background: $surface;
    }

    #delete-heading {
        column-span: 2;
        width: 100%;
        text-style: bold;
        color: $error;
    }

    #delete-chat-title {
        column-span: 2;
        width: 100%;
        padding: 0 1;
        background: $panel;
    }

    #delete-details {
        column-span: 2;
        width: 100%;
        color: $text-muted;
    }

    #delete-dialog Button {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("y", "answer(True)", "Delete", show=False),
        Binding("n", "answer(False)", "Keep", show=False),
        Binding("escape", "answer(False)", "Keep", show=False),
    ]

    def __init__(self, chat: Chat) -> None:
        super().__init__()
        self._chat = chat

    def compose(self) -> ComposeResult:
        count = len(self._chat.messages)
        with Grid(id="delete-dialog"):
            yield Label("Delete this chat?", id="delete-heading")
            yield Label(self._chat.title, id="delete-chat-title")
            yield Label(
                f"{count} message{'s' if count != 1 else ''} will be removed. "
                "The backend thread is not affected.",
                id="delete-details",
            )
            with Center():
                yield Button("Delete (y)", id="delete-yes", variant="error")
            with Center():
                yield Button("Keep (n)", id="delete-no", variant="default")

    def on_mount(self) -> None:
        self.query_one("#delete-no", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "delete-yes")

    def action_answer(self, delete: bool) -> None:
        self.dismiss(delete)
