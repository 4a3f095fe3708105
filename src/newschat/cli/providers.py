"""Provider factory functions for CLI.

Centralizes creation of the chat store and answer transport from settings.
Hides configuration details from command implementations.
"""

from ..chat import ChatStore, create_chat_store
from ..config import Settings, load_settings
from ..stream import AnswerTransport, HttpAnswerTransport

SQLITE_FILENAME = "chats.db"


def get_store(settings: Settings | None = None) -> ChatStore:
    """Create the chat store from settings.

    Returns:
        ChatStore over the configured backend (not yet connected)

    Environment variables:
        NEWSCHAT_STORE_BACKEND: memory, file or sqlite (default: file)
        NEWSCHAT_STORE_PATH: Storage directory (default: ~/.newschat)
    """
    settings = settings or load_settings()
    backend = settings.store_backend

    if backend == "file":
        return create_chat_store("file", path=settings.store_path)
    if backend == "sqlite":
        path = settings.store_path
        if path.suffix != ".db":
            path = path / SQLITE_FILENAME
        return create_chat_store("sqlite", path=path)
    return create_chat_store(backend)


def get_transport(settings: Settings | None = None) -> AnswerTransport:
    """Create the HTTP answer transport from settings.

    Environment variables:
        NEWSCHAT_API_URL: Backend base URL (default: http://localhost:3001)
        NEWSCHAT_TIMEOUT: Stream read timeout in seconds (default: 120)
    """
    settings = settings or load_settings()
    return HttpAnswerTransport(settings.api_url, timeout=settings.timeout)
