"""Abstract interfaces for the two ends of a console bridge.

The bridge only ever talks to a ConsoleTransport (the upstream byte
stream) and a ConsolePeer (the WebSocket client). Keeping both behind
these interfaces lets the state machine run against in-memory fakes in
tests and against asyncio TLS streams and Starlette WebSockets in
production.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ConsoleTransport(ABC):
    """Upstream byte stream to a console host.

    Example usage::

        transport = await TlsTransport.connect("vm1.example.net", 443)
        await transport.write(b"CONNECT /console HTTP/1.0\\r\\n\\r\\n")
        chunk = await transport.read()
        transport.destroy()
    """

    @abstractmethod
    async def read(self) -> bytes:
        """Return the next chunk as delivered by the stream.

        Returns:
            The chunk, or ``b""`` at end-of-stream.

        Raises:
            TransportError: If the stream fails mid-session.
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Send ``data`` upstream unchanged.

        Raises:
            TransportError: If the stream is closed or the write fails.
        """
        ...

    @abstractmethod
    def destroy(self) -> None:
        """Tear the stream down. Safe to call more than once."""
        ...

    def describe(self) -> str:
        """Short human-readable summary used in console listings."""
        return type(self).__name__


class ConsolePeer(ABC):
    """The client side of a bridge, usually a WebSocket."""

    @abstractmethod
    async def send(self, data: bytes) -> None:
        """Deliver ``data`` to the client as one binary message.

        Raises:
            PeerClosedError: If the client has already gone away.
        """
        ...

    @abstractmethod
    async def receive(self) -> bytes | None:
        """Wait for the next client message; None once the client closed."""
        ...

    @abstractmethod
    async def close(self, code: int, reason: str = "") -> None:
        """Close the client connection. Safe to call more than once."""
        ...


class TransportError(Exception):
    """Raised when the upstream transport cannot connect, read or write."""

    def __init__(self, message: str, hostname: str = "") -> None:
        super().__init__(message)
        self.hostname = hostname


class PeerClosedError(Exception):
    """Raised when sending to a peer that has already disconnected."""
