"""Exception hierarchy for newschat.

Only transport and storage failures are modelled as exceptions. Logic races
(unknown thread ids, no current chat) are silent no-ops in the store and
never raise.
"""


class NewsChatError(Exception):
    """Base class for all newschat errors."""


class TransportError(NewsChatError):
    """The question could not be delivered or the stream failed mid-flight."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StreamProtocolError(NewsChatError):
    """An event frame could not be decoded."""


class StorageError(NewsChatError):
    """A persistence backend failed to read or write."""
