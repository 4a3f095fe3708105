"""UI configuration constants.

Display glyphs, styles and size limits used by the TUI widgets.
"""

import logging

# Log panel thresholds accepted by --log-level
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(name: str) -> int:
    """Map a level name to a ``logging`` level; unknown names show everything."""
    return LOG_LEVELS.get(name.strip().lower(), logging.DEBUG)


# Streaming affordance shown after in-progress text
STREAM_CURSOR = "▌"

# Citation markers in answer text
CITATION_STYLE = "bold blue"

# Sidebar rows show the title followed by the last message
CHAT_LIST_PREVIEW_LENGTH = 60

# Previously asked questions kept for up/down recall
INPUT_HISTORY_MAX_SIZE = 100

# Log panel
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500
