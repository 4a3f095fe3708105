"""Terminal UI module for newschat.

Provides a Textual-based TUI over the SessionController.

Module structure (Parnas principle - each module hides a design decision):
- config.py: UI constants and log levels
- formatting.py: Answer, citation and timestamp rendering
- widgets.py: Custom widgets (chat list, history, input, status, log panel)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palette
- screens.py: Modal dialogs (delete confirmation)
- app.py: Application orchestration (user interaction flow)
"""

from .app import NewsChatApp, run_textual_tui
from .config import parse_log_level
from .widgets import ChatHistoryWidget, ChatInputBar, ChatSidebar, DebugPanel, StatusBar

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "ChatSidebar",
    "DebugPanel",
    "NewsChatApp",
    "StatusBar",
    "parse_log_level",
    "run_textual_tui",
]
