"""Configuration for newschat.

Centralizes constants and environment-driven settings.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Question constraints (enforced by the input surfaces)
MAX_QUESTION_LENGTH = 500

# Chat titles are derived from the first user message
TITLE_MAX_LENGTH = 50
TITLE_ELLIPSIS = "..."
DEFAULT_CHAT_TITLE = "New Chat"

# Namespaced key holding the whole chat map
STORAGE_KEY = "crypto-news-chats"

# Backend defaults
DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    api_url: str = DEFAULT_API_URL
    store_backend: str = "file"
    store_path: Path = Path.home() / ".newschat"
    timeout: float = DEFAULT_TIMEOUT
    log_level: str | None = None


def load_settings() -> Settings:
    """Build settings from environment variables.

    Environment variables:
        NEWSCHAT_API_URL: Base URL of the news-analysis backend
        NEWSCHAT_STORE_BACKEND: Chat store backend (memory, file, sqlite)
        NEWSCHAT_STORE_PATH: Directory or database file for the chat store
        NEWSCHAT_TIMEOUT: Stream read timeout in seconds
        NEWSCHAT_LOG_LEVEL: Log level (debug/info/warning/error)
    """
    store_path = os.getenv("NEWSCHAT_STORE_PATH")
    return Settings(
        api_url=os.getenv("NEWSCHAT_API_URL", DEFAULT_API_URL).rstrip("/"),
        store_backend=os.getenv("NEWSCHAT_STORE_BACKEND", "file"),
        store_path=Path(store_path).expanduser() if store_path else Path.home() / ".newschat",
        timeout=float(os.getenv("NEWSCHAT_TIMEOUT", str(DEFAULT_TIMEOUT))),
        log_level=os.getenv("NEWSCHAT_LOG_LEVEL"),
    )
