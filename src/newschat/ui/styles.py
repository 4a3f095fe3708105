"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.

Layout:
- Left column: chat list
- Right column: conversation with the log panel under it
- Bottom row: status line and question input
"""

APP_CSS = """
/* ============================================
   Main Screen Layout - 2x2 Grid
   ============================================ */
Screen {
    layout: grid;
    grid-size: 2 2;
    grid-columns: 1fr 3fr;
    grid-rows: 1fr auto;
    background: $background;
}

/* ============================================
   Chat List Panel
   ============================================ */
#chat-list {
    height: 100%;
    background: $panel;
    border: round $accent 60%;
    border-title-color: $accent;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus {
        border: round $accent;
    }

    & > .option-list--option-highlighted {
        background: $accent 20%;
    }
}

/* ============================================
   Main Panel Container
   ============================================ */
#main-panel {
    height: 100%;
    background: transparent;
    padding: 0;
}

/* ============================================
   Chat History Panel - Primary Focus Area
   ============================================ */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus {
        border: round $primary;
    }

    &:focus-within {
        border: round $primary-lighten-1;
    }
}

.empty-hint {
    padding: 1 2;
}

/* ============================================
   Debug/Log Panel
   ============================================ */
#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 14;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-y: scroll;
    overflow-x: auto;
    scrollbar-gutter: stable;
    margin-top: 1;

    &:focus {
        border: round $warning;
    }
}

/* ============================================
   Bottom Bar - Status + Input
   ============================================ */
#bottom-bar {
    column-span: 2;
    height: auto;
    padding: 1;
    background: $panel;
    border-top: solid $border;
}

#status-bar {
    height: 1;
    padding: 0 2;
    margin-bottom: 1;
    background: $surface;
    border: none;
    color: $foreground;
}

/* ============================================
   Chat Input Bar - Text Entry + Send
   ============================================ */
ChatInputBar {
    height: 5;
    border: round $primary 60%;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;

    &:focus {
        background: transparent;
    }

    &:disabled {
        opacity: 60%;
    }
}

#send-btn {
    width: 10;
    height: 100%;
    margin: 0 0 0 1;
    min-width: 8;
    border: tall $success;
    background: $success;
    color: $background;
    text-style: bold;

    &:hover {
        background: $success-lighten-1;
        border: tall $success-lighten-1;
    }

    &:disabled {
        background: $surface;
        border: tall $border;
        color: $text-muted;
    }
}

/* ============================================
   Chat Messages - Conversation Display
   ============================================ */
.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 1 2;
    border: none;
    background: transparent;
}

.user-message {
    border-left: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
    }
}

.assistant-message {
    border-left: tall $secondary;
    background: $secondary 8%;

    & .message-header {
        color: $secondary;
        text-style: bold;
    }
}

.live-message {
    border-left: tall $primary;
}

.error-message {
    border-left: tall $error;
    background: $error 8%;

    & .message-content {
        color: $error;
    }
}

.message-header {
    height: auto;
    padding: 0;
    margin-bottom: 0;
}

.message-content {
    height: auto;
    padding: 0;
    margin: 0;
    color: $foreground;
}

/* ============================================
   Notification Toasts
   ============================================ */
Toast {
    background: $surface;
    border: tall $border;
    padding: 0 1;

    &.-information {
        border: tall $primary;
        background: $primary 12%;
    }

    &.-error {
        border: tall $error;
        background: $error 12%;
    }

    &.-warning {
        border: tall $warning;
        background: $warning 12%;
    }
}

/* ============================================
   Scrollbars
   ============================================ */
* {
    scrollbar-background: $panel;
    scrollbar-color: $surface-lighten-1;
    scrollbar-color-hover: $primary 50%;
    scrollbar-color-active: $primary;
    scrollbar-size: 1 1;
}

Header {
    background: $panel;
    color: $foreground;
    dock: top;
    height: 1;
}

Footer {
    background: $panel;
    height: auto;
}
"""
