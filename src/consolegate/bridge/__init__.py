"""Console bridge module for consolegate.

Connects a WebSocket client to an upstream console over TLS: sends the
CONNECT handshake, waits for the upstream to accept, then relays bytes.

Public API:
    ConsoleBridge -- Handshake-then-relay state machine
    ConsoleTransport / ConsolePeer -- The two ends a bridge talks to
    TlsTransport -- asyncio TLS implementation of ConsoleTransport
"""

from consolegate.bridge.base import (
    ConsolePeer,
    ConsoleTransport,
    PeerClosedError,
    TransportError,
)
from consolegate.bridge.session import ConsoleBridge

__all__ = [
    "ConsoleBridge",
    "ConsolePeer",
    "ConsoleTransport",
    "PeerClosedError",
    "TlsTransport",
    "TransportError",
]


def __getattr__(name: str) -> type:
    """Lazy import for the concrete TLS transport."""
    if name == "TlsTransport":
        from consolegate.bridge.transport import TlsTransport
        return TlsTransport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
