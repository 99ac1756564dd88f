"""Errors raised by the rosbridge streaming layer."""


class InvalidEndpoint(ValueError):
    """Raised when a rosbridge address is not a canonical ws:// or wss:// URL."""


class EncodeError(ValueError):
    """Raised when a request cannot be encoded as a rosbridge JSON frame."""


class TransportError(ConnectionError):
    """
    Describes a socket-level failure of a single connection.

    Transport errors are never raised to callers of ``send``; the connection
    records them and moves to the disconnected state instead.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
