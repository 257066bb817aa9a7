"""Error taxonomy raised by outputs."""

from __future__ import annotations


class SinkError(Exception):
    """Base class for every error raised by an output."""


class ConnectError(SinkError):
    """Output could not be made ready."""


class TransportError(ConnectError):
    """Endpoint is malformed or unreachable."""


class BackendError(ConnectError):
    """Existence check or create operation failed against the store."""


class WriteError(SinkError):
    """A flush could not be persisted completely.

    ``failed`` holds the number of documents known to have failed, when the
    store reports it. The underlying store error is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, failed: int | None = None) -> None:
        super().__init__(message)
        self.failed = failed


class NotConnectedError(WriteError):
    """Write attempted before a successful connect."""


__all__ = [
    "BackendError",
    "ConnectError",
    "NotConnectedError",
    "SinkError",
    "TransportError",
    "WriteError",
]
